"""Approval of messaging-channel pairing codes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import structlog

from clawsetup.errors import PairingError, PairingRejected
from clawsetup.service_cli import ServiceCLI

logger = structlog.get_logger("clawsetup.pairing")

NO_PENDING_MARKER = "no pending pairing request found"
REJECTED_REASON = "invalid or expired code"


class PairingStatus(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    ERROR = "error"


@dataclass(frozen=True)
class PairingApproved:
    code: str
    channel: str
    output: str


def classify_pairing_output(text: str) -> PairingStatus:
    """
    Map raw `pairing approve` output to a status.

    The CLI prints free text; this is the only place that interprets it.
    """
    lowered = text.lower()
    if NO_PENDING_MARKER in lowered:
        return PairingStatus.REJECTED
    if "error" in lowered:
        return PairingStatus.ERROR
    return PairingStatus.APPROVED


class PairingCoordinator:
    """Runs `pairing approve` and translates the result."""

    def __init__(self, cli: ServiceCLI, default_channel: str = "telegram") -> None:
        self._cli = cli
        self._default_channel = default_channel

    def approve(self, code: str, channel: str | None = None) -> PairingApproved:
        code = code.strip()
        channel = channel or self._default_channel
        if not code:
            raise PairingRejected(REJECTED_REASON)

        output = self._cli.approve_pairing(code, channel).output
        status = classify_pairing_output(output)
        logger.info("pairing_result", channel=channel, status=status.value)

        if status is PairingStatus.REJECTED:
            raise PairingRejected(REJECTED_REASON)
        if status is PairingStatus.ERROR:
            raise PairingError(output)
        return PairingApproved(code=code, channel=channel, output=output)
