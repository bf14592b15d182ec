"""Tests for the installer facade."""

from __future__ import annotations

import dataclasses
import json

import pytest

from clawsetup.documents import ConfigRepository, ProfileRepository
from clawsetup.errors import ConfigError, MalformedDocument
from clawsetup.installer import Installer
from clawsetup.merge import ChannelSettings, DesiredSettings


@pytest.fixture
def installer(settings, env):
    return Installer(settings, env=env)


def _desired(**overrides):
    values = {"provider": "anthropic", "secret": "sk-ant-1", "model": "anthropic/claude-sonnet-4-5"}
    values.update(overrides)
    return DesiredSettings(**values)


def test_configure_writes_config_and_profiles(installer, settings):
    installer.configure(_desired(channel=ChannelSettings(token="123:abc")))

    config = ConfigRepository(settings.config_path).load()
    profiles = ProfileRepository(settings.profiles_path).load()

    assert config["agents"]["defaults"]["workspace"] == str(settings.workspace)
    assert config["channels"]["telegram"]["accounts"]["main"]["token"] == "123:abc"
    assert profiles["profiles"]["anthropic:default"] == {
        "type": "api_key",
        "provider": "anthropic",
        "token": "sk-ant-1",
    }
    assert profiles["lastGood"] == {"anthropic": "anthropic:default"}


def test_configure_twice_keeps_token_and_file_bytes(installer, settings):
    installer.configure(_desired())
    first = settings.config_path.read_bytes()

    installer.configure(_desired())

    assert settings.config_path.read_bytes() == first


def test_reconfigure_with_new_provider_keeps_both(installer, settings):
    installer.configure(_desired())
    token = ConfigRepository(settings.config_path).load()["gateway"]["auth"]["token"]

    installer.configure(_desired(provider="openai", secret="sk-oa", model="openai/gpt-4o"))

    config = ConfigRepository(settings.config_path).load()
    profiles = ProfileRepository(settings.profiles_path).load()
    assert config["gateway"]["auth"]["token"] == token
    assert set(config["agents"]["defaults"]["models"]) == {"anthropic/claude-sonnet-4-5", "openai/gpt-4o"}
    assert set(profiles["profiles"]) == {"anthropic:default", "openai:default"}


def test_env_token_override_is_applied(settings, env):
    installer = Installer(dataclasses.replace(settings, token_override="T2"), env=env)
    settings.config_path.parent.mkdir(parents=True)
    settings.config_path.write_text(json.dumps({"gateway": {"auth": {"token": "T1"}}}), encoding="utf-8")

    config = installer.configure(_desired())

    assert config["gateway"]["auth"]["token"] == "T2"


def test_service_keys_are_stored(installer, settings):
    installer.configure(_desired(service_keys={"brave": "BSA-1"}))
    profiles = ProfileRepository(settings.profiles_path).load()
    assert profiles["profiles"]["brave:default"]["token"] == "BSA-1"


def test_unknown_provider_is_rejected(installer, settings):
    with pytest.raises(ConfigError):
        installer.configure(_desired(provider="acme"))
    assert not settings.config_path.exists()


def test_malformed_config_aborts_by_default(installer, settings):
    settings.config_path.parent.mkdir(parents=True)
    settings.config_path.write_text("{broken", encoding="utf-8")

    with pytest.raises(MalformedDocument):
        installer.configure(_desired())

    assert settings.config_path.read_text(encoding="utf-8") == "{broken"


def test_malformed_config_reset_on_request(installer, settings):
    settings.config_path.parent.mkdir(parents=True)
    settings.config_path.write_text("{broken", encoding="utf-8")

    config = installer.configure(_desired(), reset_malformed=True)

    assert config["agents"]["defaults"]["model"]["primary"] == "anthropic/claude-sonnet-4-5"


def test_malformed_profiles_leave_config_unwritten(installer, settings):
    settings.profiles_path.parent.mkdir(parents=True)
    settings.profiles_path.write_text("{not json", encoding="utf-8")

    with pytest.raises(MalformedDocument):
        installer.configure(_desired())

    assert not settings.config_path.exists()
    assert settings.profiles_path.read_text(encoding="utf-8") == "{not json"


def test_malformed_profiles_keep_existing_config_bytes(installer, settings):
    installer.configure(_desired())
    before = settings.config_path.read_bytes()
    settings.profiles_path.write_text("{not json", encoding="utf-8")

    with pytest.raises(MalformedDocument):
        installer.configure(_desired(provider="openai", secret="sk-oa", model="openai/gpt-4o"))

    assert settings.config_path.read_bytes() == before


def test_set_skill(installer, settings):
    installer.configure(_desired())
    installer.set_skill("search", True)
    installer.set_skill("shell", False)

    entries = ConfigRepository(settings.config_path).load()["plugins"]["entries"]
    assert entries["search"] == {"enabled": True}
    assert entries["shell"] == {"enabled": False}


def test_set_unknown_skill(installer, settings):
    with pytest.raises(ConfigError):
        installer.set_skill("teleport", True)
    assert not settings.config_path.exists()


def test_remove_profile_updates_both_documents(installer, settings):
    installer.configure(_desired())
    installer.configure(_desired(provider="openai", secret="sk-oa", model="openai/gpt-4o"))

    installer.remove_profile("openai")

    config = ConfigRepository(settings.config_path).load()
    profiles = ProfileRepository(settings.profiles_path).load()
    assert set(config["auth"]["profiles"]) == {"anthropic:default"}
    assert set(profiles["profiles"]) == {"anthropic:default"}
    assert profiles["lastGood"] == {"anthropic": "anthropic:default"}


def test_remove_profile_without_profile_file(installer, settings):
    settings.config_path.parent.mkdir(parents=True)
    settings.config_path.write_text(
        json.dumps({"auth": {"profiles": {"openai:default": {"provider": "openai", "mode": "api_key"}}}}),
        encoding="utf-8",
    )

    config = installer.remove_profile("openai:default")

    assert config["auth"]["profiles"] == {}
    assert not settings.profiles_path.exists()


def test_named_agent_lifecycle(installer, settings):
    installer.configure(_desired())

    installer.add_agent("research")
    installer.set_agent_workspace("research", "/srv/research")
    agents = ConfigRepository(settings.config_path).load()["agents"]
    assert agents["research"] == {
        "workspace": "/srv/research",
        "model": {"primary": "anthropic/claude-sonnet-4-5"},
    }

    installer.remove_agent("research")
    agents = ConfigRepository(settings.config_path).load()["agents"]
    assert "research" not in agents
    assert "defaults" in agents


def test_main_agent_is_protected(installer):
    with pytest.raises(ConfigError):
        installer.remove_agent("main")


def test_dashboard_url_reads_persisted_token(installer, settings):
    settings.config_path.parent.mkdir(parents=True)
    settings.config_path.write_text(
        json.dumps({"gateway": {"port": 18800, "auth": {"token": "abc123"}}}), encoding="utf-8"
    )
    assert installer.dashboard_url() == "http://127.0.0.1:18800/?token=abc123"


def test_dashboard_url_without_token(installer):
    assert installer.dashboard_url() == "http://127.0.0.1:18789/"


def test_start_gateway_delegates_to_supervisor(installer, runner):
    ready = installer.start_gateway()
    assert ready.port == 18789
    assert ("gateway", "install", "--force") in runner.subcommands()


def test_approve_pairing(installer, runner):
    runner.respond_text(("pairing", "approve"), stdout="Approved telegram sender 42")
    assert installer.approve_pairing("XYZ").channel == "telegram"


def test_service_version(installer, runner):
    runner.respond_text(("--version",), stdout="2026.2.1\n")
    assert installer.service_version() == "2026.2.1"


def test_service_version_missing_binary(installer, runner):
    runner.respond_text(("--version",), stderr="Error: command not found: openclaw", returncode=127)
    assert installer.service_version() is None


def test_stream_logs_uses_gateway_log(installer, settings):
    handle = installer.stream_logs(lambda line: None)
    try:
        assert settings.log_path.exists()
    finally:
        handle.stop()
        handle.join(timeout=2)
