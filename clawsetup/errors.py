"""Custom exceptions for the installer core."""


class ClawSetupError(Exception):
    """Base class for every failure raised by the installer core."""


class ConfigError(ClawSetupError):
    """Raised when installer settings are invalid or missing."""


class IOFailure(ClawSetupError):
    """Raised when a filesystem read or write fails."""


class MalformedDocument(ClawSetupError):
    """Raised when a persisted JSON document cannot be parsed as a document."""


class ConfigCorrupt(ClawSetupError):
    """Raised when pre- and post-install configuration cannot be reconciled."""


class CommandFailed(ClawSetupError):
    """Raised when a service CLI command reports failure."""

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(f"{message}\n{output}".rstrip() if output else message)
        self.output = output


class InstallFailed(CommandFailed):
    """Raised when `gateway install` fails."""


class StartFailed(CommandFailed):
    """Raised when `gateway start` fails."""


class ProbeExhausted(ClawSetupError):
    """Raised when the gateway never accepted connections within the attempt budget."""

    def __init__(self, diagnostic: str, attempts: tuple = ()) -> None:
        super().__init__(diagnostic)
        self.diagnostic = diagnostic
        self.attempts = attempts


class PairingRejected(ClawSetupError):
    """Raised when the service has no pending pairing request for a code."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class PairingError(ClawSetupError):
    """Raised when the pairing command fails for any other reason."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail
