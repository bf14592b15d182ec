"""
Wrapper around the external ``openclaw`` command-line program.

The program does not use exit codes reliably, so each command has one
function here that turns its raw result into success or failure. Callers
never inspect command output themselves.
"""

from __future__ import annotations

from typing import Optional, Tuple

from clawsetup.environment import CommandResult, CommandRunner
from clawsetup.errors import InstallFailed, StartFailed

FAILURE_MARKERS: Tuple[str, ...] = ("error", "failed", "failure")


def reports_failure(result: CommandResult) -> bool:
    """True when the exit code or the output text signals failure."""
    if result.returncode != 0:
        return True
    lowered = result.output.lower()
    return any(marker in lowered for marker in FAILURE_MARKERS)


def check_install(result: CommandResult) -> None:
    if reports_failure(result):
        raise InstallFailed("Gateway install failed", result.output)


def check_start(result: CommandResult) -> None:
    if reports_failure(result):
        raise StartFailed("Gateway start failed", result.output)


def stop_succeeded(result: CommandResult) -> bool:
    return not reports_failure(result)


def status_text(result: CommandResult) -> str:
    """Human-readable status line, including the exit code when it is non-zero."""
    text = result.output or "<no output>"
    if result.returncode != 0:
        return f"{text} (exit code {result.returncode})"
    return text


def parse_version(result: CommandResult) -> Optional[str]:
    if result.returncode != 0:
        return None
    lines = result.stdout.strip().splitlines()
    return lines[-1].strip() if lines else None


class ServiceCLI:
    """Invokes the documented subcommands of the service CLI."""

    def __init__(self, binary: str, runner: CommandRunner) -> None:
        """Initialize with executable name and command runner."""
        self._binary = binary
        self._runner = runner

    @property
    def binary(self) -> str:
        return self._binary

    def version(self) -> CommandResult:
        return self._run("--version")

    def install(self) -> CommandResult:
        return self._run("gateway", "install", "--force")

    def start(self) -> CommandResult:
        return self._run("gateway", "start")

    def stop(self) -> CommandResult:
        return self._run("gateway", "stop")

    def status(self) -> CommandResult:
        return self._run("gateway", "status")

    def approve_pairing(self, code: str, channel: str) -> CommandResult:
        return self._run("pairing", "approve", code, "--channel", channel)

    def _run(self, *args: str) -> CommandResult:
        return self._runner((self._binary, *args))
