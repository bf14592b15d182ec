"""Installer settings loaded from the process environment."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple
import os

from clawsetup.errors import ConfigError

DEFAULT_GATEWAY_PORT = 18789
DEFAULT_CLI = "openclaw"

CONFIG_FILENAME = "openclaw.json"
PROFILES_RELPATH = Path("agents") / "main" / "agent" / "auth-profiles.json"
GATEWAY_LOG_RELPATH = Path("logs") / "gateway.log"


def _default_search_paths() -> Tuple[str, ...]:
    """Directories where npm-installed binaries usually live."""
    home = Path.home()
    return (
        str(home / ".npm-global" / "bin"),
        str(home / ".local" / "bin"),
        "/usr/local/bin",
        "/opt/homebrew/bin",
    )


@dataclass(frozen=True)
class InstallerSettings:
    """Resolved settings for one installation root."""

    root: Path
    cli: str = DEFAULT_CLI
    gateway_port: int = DEFAULT_GATEWAY_PORT
    token_override: Optional[str] = None
    log_level: str = "INFO"
    log_format: str = "console"
    search_paths: Tuple[str, ...] = field(default_factory=_default_search_paths)

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME

    @property
    def profiles_path(self) -> Path:
        return self.root / PROFILES_RELPATH

    @property
    def log_path(self) -> Path:
        return self.root / GATEWAY_LOG_RELPATH

    @property
    def workspace(self) -> Path:
        return self.root / "workspace"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "InstallerSettings":
        """Build settings from OPENCLAW_* and CLAWSETUP_* variables."""
        env = os.environ if environ is None else environ

        root = env.get("OPENCLAW_HOME") or str(Path.home() / ".openclaw")
        port_raw = env.get("OPENCLAW_GATEWAY_PORT")
        port = DEFAULT_GATEWAY_PORT
        if port_raw:
            try:
                port = int(port_raw)
            except ValueError as exc:
                raise ConfigError(f"OPENCLAW_GATEWAY_PORT must be an integer: {port_raw}") from exc
            if not 0 < port < 65536:
                raise ConfigError(f"OPENCLAW_GATEWAY_PORT out of range: {port}")

        log_format = env.get("CLAWSETUP_LOG_FORMAT", "console").lower()
        if log_format not in ("console", "json"):
            raise ConfigError(f"CLAWSETUP_LOG_FORMAT must be 'console' or 'json': {log_format}")

        return cls(
            root=Path(root).expanduser(),
            cli=env.get("OPENCLAW_BIN") or DEFAULT_CLI,
            gateway_port=port,
            token_override=env.get("OPENCLAW_GATEWAY_TOKEN") or None,
            log_level=env.get("CLAWSETUP_LOG_LEVEL", "INFO").upper(),
            log_format=log_format,
        )
