"""Provider credential profiles (auth-profiles.json)."""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any, Dict, Mapping

from clawsetup.errors import MalformedDocument

ProfileDocument = Dict[str, Any]

PROFILE_DOCUMENT_VERSION = 1


class ProfileKind(str, Enum):
    """How a stored credential is presented to the provider."""

    TOKEN = "token"
    API_KEY = "api_key"

    @classmethod
    def parse(cls, value: "str | ProfileKind") -> "ProfileKind":
        if isinstance(value, ProfileKind):
            return value
        normalized = {"apikey": "api_key", "api-key": "api_key"}.get(value.lower(), value.lower())
        try:
            return cls(normalized)
        except ValueError as exc:
            raise ValueError(f"Unknown profile kind: {value}") from exc


def profile_id(provider: str) -> str:
    """Deterministic profile id for a provider or auxiliary service."""
    return f"{provider}:default"


def _writable_copy(existing: ProfileDocument | None) -> ProfileDocument:
    if existing is None:
        existing = {}
    if not isinstance(existing, dict):
        raise MalformedDocument("Profile document must be a JSON object")
    document = copy.deepcopy(existing)
    for key in ("profiles", "lastGood"):
        if not isinstance(document.get(key), dict):
            document[key] = {}
    document.setdefault("version", PROFILE_DOCUMENT_VERSION)
    return document


def _put(document: ProfileDocument, provider: str, secret: str, kind: ProfileKind) -> None:
    pid = profile_id(provider)
    document["profiles"][pid] = {
        "type": kind.value,
        "provider": provider,
        "token": secret,
    }
    document["lastGood"][provider] = pid


def upsert_profile(
    existing: ProfileDocument | None,
    provider: str,
    secret: str,
    kind: "str | ProfileKind",
) -> ProfileDocument:
    """
    Write the ``{provider}:default`` profile and mark it last-good.

    Every other profile and top-level key passes through unchanged. The
    input document is not modified.
    """
    document = _writable_copy(existing)
    _put(document, provider, secret, ProfileKind.parse(kind))
    return document


def upsert_service_keys(
    existing: ProfileDocument | None,
    keys: Mapping[str, str],
    kind: "str | ProfileKind" = ProfileKind.API_KEY,
) -> ProfileDocument:
    """Bulk upsert of auxiliary per-service credentials; empty secrets are skipped."""
    document = _writable_copy(existing)
    resolved = ProfileKind.parse(kind)
    for service_id, secret in keys.items():
        if secret:
            _put(document, service_id, secret, resolved)
    return document


def remove_profile(existing: ProfileDocument | None, pid: str) -> ProfileDocument:
    """Drop one profile and any ``lastGood`` entry that points at it."""
    document = _writable_copy(existing)
    document["profiles"].pop(pid, None)
    document["lastGood"] = {
        provider: target for provider, target in document["lastGood"].items() if target != pid
    }
    return document
