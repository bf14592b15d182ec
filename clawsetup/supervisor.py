"""Gateway supervisor: stop, install, reconcile, start and probe the service."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import structlog

from clawsetup.documents import ConfigRepository
from clawsetup.environment import Environment
from clawsetup.errors import ConfigCorrupt, MalformedDocument, ProbeExhausted
from clawsetup.merge import PORT_PATH, get_path, reconcile_after_install
from clawsetup.service_cli import (
    ServiceCLI,
    check_install,
    check_start,
    status_text,
    stop_succeeded,
)

logger = structlog.get_logger("clawsetup.supervisor")

LOOPBACK_HOST = "127.0.0.1"
WARMUP_S = 5.0
MAX_PROBE_ATTEMPTS = 8
PROBE_INTERVAL_S = 3.0

TROUBLESHOOTING = (
    "Make sure no other process is listening on port {port}.",
    "Run `openclaw gateway status` for the service manager's view.",
    "Read logs/gateway.log in the OpenClaw home directory.",
    "Check that the configured provider key and model are valid.",
    "Reinstall the service with `openclaw gateway install --force` and retry.",
)


class GatewayState(str, Enum):
    """Lifecycle states of one start invocation."""

    IDLE = "idle"
    STOPPING = "stopping"
    INSTALLING = "installing"
    RECONCILING = "reconciling"
    STARTING = "starting"
    PROBING = "probing"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ProbeAttempt:
    """One readiness probe."""

    index: int
    timestamp: float
    reachable: bool
    status_text: Optional[str] = None


@dataclass
class GatewaySession:
    """In-memory state of one start invocation."""

    state: GatewayState = GatewayState.IDLE
    pre_install: Dict[str, Any] = field(default_factory=dict)
    post_install: Dict[str, Any] = field(default_factory=dict)
    merged: Dict[str, Any] = field(default_factory=dict)
    attempts: List[ProbeAttempt] = field(default_factory=list)

    def enter(self, state: GatewayState) -> None:
        logger.debug("gateway_state", previous=self.state.value, state=state.value)
        self.state = state


@dataclass(frozen=True)
class GatewayReady:
    """Successful start: the gateway accepted a connection on ``port``."""

    port: int
    attempts: Tuple[ProbeAttempt, ...]


class GatewaySupervisor:
    """
    Drives the gateway through install -> start -> probe.

    `gateway install --force` may rewrite openclaw.json from scratch, so the
    configuration is snapshotted before install and re-applied afterwards.
    Holds no state between calls.
    """

    def __init__(
        self,
        cli: ServiceCLI,
        config_repo: ConfigRepository,
        env: Environment,
        default_port: int,
        warmup_s: float = WARMUP_S,
        max_attempts: int = MAX_PROBE_ATTEMPTS,
        interval_s: float = PROBE_INTERVAL_S,
    ) -> None:
        """Initialize supervisor with CLI wrapper, config store and environment."""
        self._cli = cli
        self._config_repo = config_repo
        self._env = env
        self._default_port = default_port
        self._warmup_s = warmup_s
        self._max_attempts = max_attempts
        self._interval_s = interval_s

    def start(self) -> GatewayReady:
        """Run the full cycle; raises on the first fatal failure."""
        session = GatewaySession()
        logger.info("gateway_start_requested")

        session.enter(GatewayState.STOPPING)
        self._stop_quietly()

        session.pre_install = self._read_config("pre-install")

        session.enter(GatewayState.INSTALLING)
        check_install(self._cli.install())
        logger.info("gateway_installed")

        session.enter(GatewayState.RECONCILING)
        session.post_install = self._read_config("post-install")
        session.merged = reconcile_after_install(session.pre_install, session.post_install)
        self._config_repo.save(session.merged)
        logger.info("gateway_config_reconciled")

        session.enter(GatewayState.STARTING)
        check_start(self._cli.start())
        logger.info("gateway_started")

        session.enter(GatewayState.PROBING)
        return self._probe(session, self._port_for(session.merged))

    def stop(self) -> bool:
        """Stop the gateway; returns False when the CLI reports failure."""
        result = self._cli.stop()
        ok = stop_succeeded(result)
        if ok:
            logger.info("gateway_stopped")
        else:
            logger.warning("gateway_stop_failed", returncode=result.returncode)
        return ok

    def _stop_quietly(self) -> None:
        try:
            result = self._cli.stop()
            if not stop_succeeded(result):
                logger.debug("gateway_stop_ignored", returncode=result.returncode)
        except Exception as exc:
            logger.debug("gateway_stop_ignored", error=str(exc))

    def _read_config(self, label: str) -> Dict[str, Any]:
        try:
            return self._config_repo.load()
        except MalformedDocument as exc:
            raise ConfigCorrupt(f"Unreadable {label} configuration: {exc}") from exc

    def _port_for(self, document: Dict[str, Any]) -> int:
        port = get_path(document, PORT_PATH)
        if isinstance(port, int) and not isinstance(port, bool):
            return port
        return self._default_port

    def _probe(self, session: GatewaySession, port: int) -> GatewayReady:
        clock = self._env.clock
        clock.sleep(self._warmup_s)

        last_status = "<not queried>"
        for index in range(1, self._max_attempts + 1):
            if self._env.connect(LOOPBACK_HOST, port):
                session.attempts.append(ProbeAttempt(index, clock.now(), True))
                session.enter(GatewayState.READY)
                logger.info("gateway_ready", port=port, attempt=index)
                return GatewayReady(port=port, attempts=tuple(session.attempts))

            last_status = self._query_status()
            session.attempts.append(ProbeAttempt(index, clock.now(), False, last_status))
            logger.info("gateway_probe_failed", port=port, attempt=index, max_attempts=self._max_attempts)
            if index < self._max_attempts:
                clock.sleep(self._interval_s)

        final_status = self._query_status()
        session.enter(GatewayState.FAILED)
        logger.error("gateway_probe_exhausted", port=port, attempts=len(session.attempts))
        raise ProbeExhausted(
            self._diagnostic(port, last_status, final_status),
            tuple(session.attempts),
        )

    def _query_status(self) -> str:
        try:
            return status_text(self._cli.status())
        except Exception as exc:
            logger.debug("gateway_status_unavailable", error=str(exc))
            return f"status unavailable: {exc}"

    def _diagnostic(self, port: int, last_status: str, final_status: str) -> str:
        checklist = "\n".join(f"  - {item.format(port=port)}" for item in TROUBLESHOOTING)
        return (
            f"Gateway did not accept connections on {LOOPBACK_HOST}:{port} "
            f"after {self._max_attempts} attempts.\n"
            f"Last status: {last_status}\n"
            f"Final status: {final_status}\n"
            f"Troubleshooting:\n{checklist}"
        )
