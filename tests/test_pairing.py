import pytest

from clawsetup.errors import PairingError, PairingRejected
from clawsetup.pairing import PairingCoordinator, PairingStatus, classify_pairing_output
from clawsetup.service_cli import ServiceCLI


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Error: no pending pairing request found for code ABC123", PairingStatus.REJECTED),
        ("NO PENDING PAIRING REQUEST FOUND", PairingStatus.REJECTED),
        ("Pairing approved for user X", PairingStatus.APPROVED),
        ("", PairingStatus.APPROVED),
        ("Error: internal timeout", PairingStatus.ERROR),
        ("unexpected ERROR while approving", PairingStatus.ERROR),
    ],
)
def test_classify_pairing_output(text, expected):
    assert classify_pairing_output(text) is expected


@pytest.fixture
def coordinator(runner):
    return PairingCoordinator(ServiceCLI("openclaw", runner))


def test_approve_runs_cli_with_code_and_channel(coordinator, runner):
    runner.respond_text(("pairing", "approve"), stdout="Pairing approved for user X")

    result = coordinator.approve(" ABC123 ")

    assert result.code == "ABC123"
    assert result.channel == "telegram"
    assert runner.calls == [("openclaw", "pairing", "approve", "ABC123", "--channel", "telegram")]


def test_approve_rejected_code(coordinator, runner):
    runner.respond_text(
        ("pairing", "approve"),
        stderr="Error: no pending pairing request found for code ABC123",
        returncode=1,
    )

    with pytest.raises(PairingRejected) as excinfo:
        coordinator.approve("ABC123")

    assert excinfo.value.reason == "invalid or expired code"


def test_approve_other_error_carries_raw_output(coordinator, runner):
    runner.respond_text(("pairing", "approve"), stderr="Error: internal timeout")

    with pytest.raises(PairingError) as excinfo:
        coordinator.approve("ABC123", channel="discord")

    assert excinfo.value.detail == "Error: internal timeout"
    assert runner.calls[0][-1] == "discord"


def test_blank_code_is_rejected_without_running_cli(coordinator, runner):
    with pytest.raises(PairingRejected):
        coordinator.approve("   ")
    assert runner.calls == []
