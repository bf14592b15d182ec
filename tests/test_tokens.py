import random

from clawsetup.tokens import TOKEN_ALPHABET, TOKEN_LENGTH, generate_token, resolve_token


def test_env_override_wins_over_persisted_token():
    assert resolve_token("T2", "T1") == "T2"


def test_persisted_token_is_reused():
    assert resolve_token(None, "T1") == "T1"
    assert resolve_token("", "T1") == "T1"


def test_new_token_is_generated_when_nothing_is_available():
    token = resolve_token(None, None)
    assert len(token) == TOKEN_LENGTH
    assert set(token) <= set(TOKEN_ALPHABET)


def test_empty_persisted_token_is_not_reused():
    token = resolve_token(None, "", rng=random.Random(1))
    assert len(token) == 32


def test_generated_tokens_differ():
    assert generate_token() != generate_token()


def test_injected_random_source_is_deterministic():
    assert generate_token(random.Random(3)) == generate_token(random.Random(3))
