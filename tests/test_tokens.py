from __future__ import annotations

import time
from dataclasses import replace

import jwt
import pytest

from auth_service.errors import TokenExpiredError, TokenInvalidError, UnauthenticatedError
from auth_service.security.tokens import TokenService, extract_bearer_token


def test_access_token_carries_identity_claims(tokens):
    token = tokens.issue_access_token(user_id="user-1", email="a@example.com", roles=["patient"])

    claims = tokens.verify_access_token(token)
    assert claims["userId"] == "user-1"
    assert claims["email"] == "a@example.com"
    assert claims["roles"] == ["patient"]
    assert claims["iss"] == "auth-service-test"
    assert claims["exp"] - claims["iat"] == 900


def test_refresh_token_only_names_the_account(tokens):
    token = tokens.issue_refresh_token(user_id="user-1")

    claims = tokens.verify_refresh_token(token)
    assert claims["userId"] == "user-1"
    assert "email" not in claims
    assert "roles" not in claims
    assert claims["exp"] - claims["iat"] == 3600


def test_tokens_issued_back_to_back_are_distinct(tokens):
    first = tokens.issue_refresh_token(user_id="user-1")
    second = tokens.issue_refresh_token(user_id="user-1")
    assert first != second


def test_token_kinds_do_not_verify_as_each_other(tokens):
    access = tokens.issue_access_token(user_id="user-1", email="a@example.com", roles=["patient"])
    refresh = tokens.issue_refresh_token(user_id="user-1")

    with pytest.raises(TokenInvalidError, match="Invalid refresh token"):
        tokens.verify_refresh_token(access)
    with pytest.raises(TokenInvalidError, match="Invalid access token"):
        tokens.verify_access_token(refresh)


def test_expired_tokens_raise_token_expired(tokens):
    expired = TokenService(replace(tokens.settings, access_ttl_seconds=-10, refresh_ttl_seconds=-10))

    with pytest.raises(TokenExpiredError, match="Access token has expired"):
        tokens.verify_access_token(
            expired.issue_access_token(user_id="u", email="a@example.com", roles=["patient"])
        )
    with pytest.raises(TokenExpiredError, match="Refresh token has expired"):
        tokens.verify_refresh_token(expired.issue_refresh_token(user_id="u"))


def test_token_errors_are_unauthenticated(tokens):
    with pytest.raises(UnauthenticatedError) as excinfo:
        tokens.verify_access_token("not-a-jwt")
    assert excinfo.value.status_code == 401


def test_foreign_issuer_is_rejected(tokens):
    other = TokenService(replace(tokens.settings, issuer="another-service"))
    token = other.issue_access_token(user_id="u", email="a@example.com", roles=["patient"])

    with pytest.raises(TokenInvalidError):
        tokens.verify_access_token(token)


def test_tampered_signature_is_rejected(tokens):
    token = tokens.issue_access_token(user_id="u", email="a@example.com", roles=["patient"])
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    with pytest.raises(TokenInvalidError):
        tokens.verify_access_token(tampered)


def test_other_verification_failures_propagate_unchanged(tokens):
    now = int(time.time())
    token = jwt.encode(
        {
            "userId": "u",
            "iss": tokens.settings.issuer,
            "iat": now,
            "nbf": now + 3600,
            "exp": now + 7200,
        },
        tokens.settings.access_secret,
        algorithm="HS256",
    )

    with pytest.raises(jwt.ImmatureSignatureError):
        tokens.verify_access_token(token)


@pytest.mark.parametrize(
    "header",
    [None, "", "Token abc", "Bearer", "Bearer a b", "bearer abc123", "Bearer ", "Bearer  abc"],
)
def test_extract_bearer_token_rejects_other_shapes(header):
    assert extract_bearer_token(header) is None


def test_extract_bearer_token_returns_token():
    assert extract_bearer_token("Bearer abc123") == "abc123"
