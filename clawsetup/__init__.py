"""OpenClaw installer core: configuration reconciliation and gateway supervision."""

__version__ = "0.1.0"

__all__ = [
    "Installer",
    "InstallerSettings",
    "DesiredSettings",
    "ChannelSettings",
    "ConfigRepository",
    "ProfileRepository",
    "GatewaySupervisor",
    "GatewayReady",
    "GatewayState",
    "PairingCoordinator",
    "PairingStatus",
    "ProfileKind",
    "Environment",
    "ServiceCLI",
    "merge",
    "reconcile_after_install",
    "resolve_token",
    "upsert_profile",
    "upsert_service_keys",
    "classify_pairing_output",
    "start_streaming",
    "ClawSetupError",
    "ConfigError",
    "IOFailure",
    "MalformedDocument",
    "ConfigCorrupt",
    "InstallFailed",
    "StartFailed",
    "ProbeExhausted",
    "PairingRejected",
    "PairingError",
]

from clawsetup.config import InstallerSettings
from clawsetup.documents import ConfigRepository, ProfileRepository
from clawsetup.environment import Environment
from clawsetup.errors import (
    ClawSetupError,
    ConfigCorrupt,
    ConfigError,
    InstallFailed,
    IOFailure,
    MalformedDocument,
    PairingError,
    PairingRejected,
    ProbeExhausted,
    StartFailed,
)
from clawsetup.installer import Installer
from clawsetup.log_tailer import start_streaming
from clawsetup.merge import ChannelSettings, DesiredSettings, merge, reconcile_after_install
from clawsetup.pairing import PairingCoordinator, PairingStatus, classify_pairing_output
from clawsetup.profiles import ProfileKind, upsert_profile, upsert_service_keys
from clawsetup.service_cli import ServiceCLI
from clawsetup.supervisor import GatewayReady, GatewayState, GatewaySupervisor
from clawsetup.tokens import resolve_token
