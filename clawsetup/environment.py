"""Injectable capabilities: process runner, clock, TCP connector, random source."""

from __future__ import annotations

import os
import secrets
import socket
import subprocess
import time
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, Sequence, Tuple

import structlog

logger = structlog.get_logger("clawsetup.environment")

COMMAND_TIMEOUT_S = 300


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""

    args: Tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


CommandRunner = Callable[[Sequence[str]], CommandResult]
Connector = Callable[[str, int], bool]


class SubprocessRunner:
    """
    Runs commands with ``subprocess.run`` and never raises for a failing command.

    A missing executable or a timeout is reported as a non-zero result so
    callers classify every outcome the same way.
    """

    def __init__(
        self,
        search_paths: Sequence[str] = (),
        timeout_s: float = COMMAND_TIMEOUT_S,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._search_paths = tuple(search_paths)
        self._timeout_s = timeout_s
        self._environ = dict(os.environ if environ is None else environ)

    def __call__(self, args: Sequence[str]) -> CommandResult:
        argv = tuple(args)
        logger.debug("command_started", args=argv[:3])
        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self._timeout_s,
                env=self._child_env(),
                check=False,
            )
        except FileNotFoundError:
            return CommandResult(argv, 127, stderr=f"Error: command not found: {argv[0]}")
        except subprocess.TimeoutExpired as exc:
            return CommandResult(
                argv,
                124,
                stdout=_as_text(exc.stdout),
                stderr=f"Error: command timed out after {self._timeout_s}s",
            )
        return CommandResult(argv, completed.returncode, completed.stdout or "", completed.stderr or "")

    def _child_env(self) -> dict:
        env = dict(self._environ)
        parts = [p for p in env.get("PATH", "").split(os.pathsep) if p]
        for extra in self._search_paths:
            if extra not in parts:
                parts.append(extra)
        env["PATH"] = os.pathsep.join(parts)
        return env


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


class SystemClock:
    """Wall clock with blocking sleep."""

    def now(self) -> float:
        return time.time()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


def tcp_connect(host: str, port: int, timeout_s: float = 1.0) -> bool:
    """Attempt a TCP connection to host:port."""
    try:
        with socket.create_connection((host, port), timeout=timeout_s):
            return True
    except OSError:
        return False


@dataclass
class Environment:
    """Bundle of capabilities shared by the supervisor and coordinators."""

    runner: CommandRunner
    clock: SystemClock = field(default_factory=SystemClock)
    connect: Connector = tcp_connect
    rng: object = field(default_factory=secrets.SystemRandom)

    @classmethod
    def default(cls, search_paths: Sequence[str] = ()) -> "Environment":
        return cls(runner=SubprocessRunner(search_paths))
