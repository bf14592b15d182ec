"""Shared fakes for the installer tests."""

from __future__ import annotations

import random
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple, Union

import pytest

from clawsetup.config import InstallerSettings
from clawsetup.environment import CommandResult, Environment

Response = Union[CommandResult, Callable[[Tuple[str, ...]], CommandResult]]


class FakeRunner:
    """Command runner keyed by the subcommand words after the binary."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, ...]] = []
        self._responses: Dict[Tuple[str, ...], Response] = {}

    def respond(self, subcommand: Sequence[str], response: Response) -> None:
        self._responses[tuple(subcommand)] = response

    def respond_text(self, subcommand: Sequence[str], stdout: str = "", returncode: int = 0, stderr: str = "") -> None:
        self.respond(subcommand, CommandResult(("openclaw", *subcommand), returncode, stdout, stderr))

    def subcommands(self) -> List[Tuple[str, ...]]:
        return [call[1:] for call in self.calls]

    def __call__(self, args: Sequence[str]) -> CommandResult:
        argv = tuple(args)
        self.calls.append(argv)
        for length in range(len(argv) - 1, 0, -1):
            response = self._responses.get(argv[1 : 1 + length])
            if response is not None:
                return response(argv) if callable(response) else response
        return CommandResult(argv, 0, "", "")


class FakeClock:
    """Clock that advances only when slept on."""

    def __init__(self) -> None:
        self.current = 1000.0
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds


class FakeConnector:
    """TCP connector that starts accepting on a given attempt (None = never)."""

    def __init__(self, succeed_on: int | None = None) -> None:
        self.succeed_on = succeed_on
        self.calls: List[Tuple[str, int]] = []

    def __call__(self, host: str, port: int) -> bool:
        self.calls.append((host, port))
        return self.succeed_on is not None and len(self.calls) >= self.succeed_on


@pytest.fixture
def root(tmp_path: Path) -> Path:
    return tmp_path / "openclaw-home"


@pytest.fixture
def settings(root: Path) -> InstallerSettings:
    return InstallerSettings(root=root, search_paths=())


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector(succeed_on=1)


@pytest.fixture
def env(runner: FakeRunner, clock: FakeClock, connector: FakeConnector) -> Environment:
    return Environment(runner=runner, clock=clock, connect=connector, rng=random.Random(7))
