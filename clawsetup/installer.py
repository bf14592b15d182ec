"""Installer facade wiring reconciliation, supervision, pairing and log streaming."""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

import structlog

from clawsetup.config import InstallerSettings
from clawsetup.documents import ConfigRepository, JsonDocumentStore, ProfileRepository
from clawsetup.environment import Environment
from clawsetup.errors import MalformedDocument
from clawsetup.log_tailer import LineCallback, TailHandle, start_streaming
from clawsetup.merge import (
    PORT_PATH,
    TOKEN_PATH,
    ConfigDocument,
    DesiredSettings,
    add_agent,
    get_path,
    merge,
    remove_agent,
    remove_auth_profile,
    set_agent_workspace,
    set_skill_enabled,
)
from clawsetup.pairing import PairingApproved, PairingCoordinator
from clawsetup.profiles import profile_id, remove_profile, upsert_profile, upsert_service_keys
from clawsetup.providers import find_provider
from clawsetup.service_cli import ServiceCLI, parse_version
from clawsetup.supervisor import LOOPBACK_HOST, GatewayReady, GatewaySupervisor

logger = structlog.get_logger("clawsetup.installer")


class Installer:
    """
    Facade over one OpenClaw installation root.

    Responsibilities:
    - Reconcile desired settings into openclaw.json and auth-profiles.json
    - Start, stop and restart the gateway service
    - Approve pairing codes and stream the gateway log
    - Edit skills, agents and stored credentials in place
    """

    def __init__(
        self,
        settings: InstallerSettings,
        env: Optional[Environment] = None,
        supervisor: Optional[GatewaySupervisor] = None,
    ) -> None:
        """Initialize installer for the settings' root directory."""
        self._settings = settings
        self._env = env or Environment.default(settings.search_paths)
        self._config_repo = ConfigRepository(settings.config_path)
        self._profile_repo = ProfileRepository(settings.profiles_path)
        self._cli = ServiceCLI(settings.cli, self._env.runner)
        self._supervisor = supervisor or GatewaySupervisor(
            cli=self._cli,
            config_repo=self._config_repo,
            env=self._env,
            default_port=settings.gateway_port,
        )
        self._pairing = PairingCoordinator(self._cli)

    @property
    def settings(self) -> InstallerSettings:
        return self._settings

    def configure(self, desired: DesiredSettings, reset_malformed: bool = False) -> ConfigDocument:
        """
        Reconcile desired settings into both persisted documents.

        Both documents are loaded and merged before either is written, so a
        malformed profile file leaves openclaw.json untouched.
        """
        find_provider(desired.provider)
        if not desired.workspace:
            desired = desired.with_workspace(str(self._settings.workspace))

        existing = self._load(self._config_repo, reset_malformed)
        profiles = self._load(self._profile_repo, reset_malformed)

        merged = merge(existing, desired, self._settings.token_override, self._env.rng)
        profiles = upsert_profile(profiles, desired.provider, desired.secret, desired.kind)
        if desired.service_keys:
            profiles = upsert_service_keys(profiles, desired.service_keys)

        self._config_repo.save(merged)
        self._profile_repo.save(profiles)

        logger.info(
            "config_reconciled",
            provider=desired.provider,
            model=desired.model,
            channel=desired.channel.name if desired.channel and desired.channel.token else None,
        )
        return merged

    def set_skill(self, skill: str, enabled: bool) -> ConfigDocument:
        return self._edit_config(
            lambda document: set_skill_enabled(document, skill, enabled),
            "skill_toggled",
            skill=skill,
            enabled=enabled,
        )

    def remove_profile(self, provider: str) -> ConfigDocument:
        """
        Forget a provider credential.

        Accepts a provider id or a full profile id. The entry is dropped from
        ``auth.profiles`` in openclaw.json and from auth-profiles.json.
        """
        pid = provider if ":" in provider else profile_id(provider)
        config = self._config_repo.load()
        profiles = self._profile_repo.load()

        config = remove_auth_profile(config, pid)
        profiles = remove_profile(profiles, pid)

        self._config_repo.save(config)
        if self._profile_repo.exists():
            self._profile_repo.save(profiles)
        logger.info("profile_removed", profile=pid)
        return config

    def add_agent(self, name: str) -> ConfigDocument:
        return self._edit_config(lambda document: add_agent(document, name), "agent_added", agent=name)

    def remove_agent(self, name: str) -> ConfigDocument:
        return self._edit_config(lambda document: remove_agent(document, name), "agent_removed", agent=name)

    def set_agent_workspace(self, name: str, workspace: str) -> ConfigDocument:
        return self._edit_config(
            lambda document: set_agent_workspace(document, name, workspace),
            "agent_workspace_set",
            agent=name,
            workspace=workspace,
        )

    def start_gateway(self) -> GatewayReady:
        return self._supervisor.start()

    def restart_gateway(self) -> GatewayReady:
        """Full stop/install/start cycle; `start_gateway` already stops first."""
        return self._supervisor.start()

    def stop_gateway(self) -> bool:
        return self._supervisor.stop()

    def approve_pairing(self, code: str, channel: Optional[str] = None) -> PairingApproved:
        return self._pairing.approve(code, channel)

    def stream_logs(self, on_line: LineCallback) -> TailHandle:
        return start_streaming(self._settings.log_path, on_line)

    def dashboard_url(self) -> str:
        """Dashboard URL rebuilt from the persisted port and token."""
        document = self._config_repo.load()
        port = get_path(document, PORT_PATH)
        if not isinstance(port, int) or isinstance(port, bool):
            port = self._settings.gateway_port
        token = get_path(document, TOKEN_PATH)
        if isinstance(token, str) and token:
            return f"http://{LOOPBACK_HOST}:{port}/?token={quote(token, safe='')}"
        return f"http://{LOOPBACK_HOST}:{port}/"

    def service_version(self) -> Optional[str]:
        return parse_version(self._cli.version())

    @staticmethod
    def _load(store: JsonDocumentStore, reset_malformed: bool) -> Dict[str, Any]:
        try:
            return store.load()
        except MalformedDocument as exc:
            if not reset_malformed:
                raise
            logger.warning("document_reset", path=str(store.path), error=str(exc))
            return {}

    def _edit_config(
        self, edit: Callable[[ConfigDocument], ConfigDocument], event: str, **fields: Any
    ) -> ConfigDocument:
        document = edit(self._config_repo.load())
        self._config_repo.save(document)
        logger.info(event, **fields)
        return document
