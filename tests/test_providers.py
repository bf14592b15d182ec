import pytest

from clawsetup.errors import ConfigError
from clawsetup.providers import SUPPORTED_PROVIDERS, default_model, find_provider


def test_provider_ids_are_unique():
    ids = [provider.id for provider in SUPPORTED_PROVIDERS]
    assert len(ids) == len(set(ids))


def test_every_provider_has_an_auth_mode():
    assert all(provider.auth_modes for provider in SUPPORTED_PROVIDERS)


def test_find_provider():
    provider = find_provider("anthropic")
    assert provider.name == "Anthropic"
    assert "ANTHROPIC_API_KEY" in [mode.env_var for mode in provider.auth_modes]


def test_default_model():
    assert default_model("openai") == "openai/gpt-4o"


def test_unknown_provider():
    with pytest.raises(ConfigError):
        find_provider("acme")


def test_provider_without_models_needs_explicit_model():
    with pytest.raises(ConfigError):
        default_model("openrouter")
