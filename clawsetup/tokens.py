"""Gateway token resolution."""

from __future__ import annotations

import secrets
import string
from typing import Optional

TOKEN_LENGTH = 32
TOKEN_ALPHABET = string.ascii_letters + string.digits


def generate_token(rng=None, length: int = TOKEN_LENGTH) -> str:
    """Return a random alphanumeric token."""
    source = rng if rng is not None else secrets.SystemRandom()
    return "".join(source.choice(TOKEN_ALPHABET) for _ in range(length))


def resolve_token(env_override: Optional[str], persisted: Optional[str], rng=None) -> str:
    """
    Pick the gateway token for one reconciliation pass.

    Precedence: a non-empty environment override, then a non-empty persisted
    token, then a freshly generated one. A persisted token is never replaced
    unless an override is supplied.
    """
    if env_override:
        return env_override
    if isinstance(persisted, str) and persisted:
        return persisted
    return generate_token(rng)
