import pytest

from paynudge.core.security import (
    TokenExpiredError,
    TokenValidationError,
    create_access_token,
    decode_token,
    secrets_match,
)


def test_access_token_round_trip_subject():
    token = create_access_token("42")
    assert decode_token(token)["sub"] == "42"


def test_expired_token_rejected():
    token = create_access_token("42", expires_minutes=-1)
    with pytest.raises(TokenExpiredError):
        decode_token(token)


def test_garbage_token_rejected():
    with pytest.raises(TokenValidationError):
        decode_token("not-a-token")


def test_secrets_match_requires_both_sides():
    assert secrets_match("abc", "abc") is True
    assert secrets_match("abc", "abd") is False
    assert secrets_match(None, "abc") is False
    assert secrets_match("", "") is False
