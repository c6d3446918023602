"""Utilities for issuing and validating application JWTs."""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt

from ..config import TokenSettings
from ..errors import TokenExpiredError, TokenInvalidError

BEARER_SCHEME = "Bearer"

# Structural failures; anything else raised by PyJWT (e.g. ImmatureSignatureError)
# is left to propagate.
_INVALID_TOKEN_ERRORS = (
    jwt.DecodeError,
    jwt.InvalidIssuedAtError,
    jwt.InvalidIssuerError,
    jwt.InvalidAlgorithmError,
    jwt.MissingRequiredClaimError,
)


class TokenService:
    """Stateless signer/verifier for access and refresh tokens.

    Access and refresh tokens are signed with independent secrets and lifetimes
    so that neither kind verifies as the other.
    """

    def __init__(self, settings: TokenSettings) -> None:
        self._settings = settings

    @property
    def settings(self) -> TokenSettings:
        return self._settings

    def _sign(self, claims: dict[str, Any], secret: str, ttl_seconds: int) -> str:
        now = int(time.time())
        payload: dict[str, Any] = {
            **claims,
            "iss": self._settings.issuer,
            "iat": now,
            "exp": now + ttl_seconds,
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(payload, secret, algorithm=self._settings.algorithm)

    def _verify(self, token: str, secret: str, *, kind: str) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[self._settings.algorithm],
                issuer=self._settings.issuer,
                options={"require": ["exp", "iss"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError(f"{kind} token has expired") from exc
        except _INVALID_TOKEN_ERRORS as exc:
            raise TokenInvalidError(f"Invalid {kind.lower()} token") from exc

    def issue_access_token(self, *, user_id: str, email: str, roles: list[str]) -> str:
        """Create a signed access token carrying the caller's identity.

        Parameters
        ----------
        user_id:
            Account identifier embedded as the ``userId`` claim.
        email:
            Lower-cased account email.
        roles:
            Role tags granted to the account.

        Returns
        -------
        str
            The encoded JWT.
        """
        claims = {"userId": user_id, "email": email, "roles": list(roles)}
        return self._sign(claims, self._settings.access_secret, self._settings.access_ttl_seconds)

    def issue_refresh_token(self, *, user_id: str) -> str:
        """Create a signed refresh token that only names the account."""
        return self._sign(
            {"userId": user_id},
            self._settings.refresh_secret,
            self._settings.refresh_ttl_seconds,
        )

    def verify_access_token(self, token: str) -> dict[str, Any]:
        """Decode and verify an access token returning its claims.

        Raises
        ------
        TokenExpiredError
            When the token is past its ``exp``.
        TokenInvalidError
            When the signature, structure or issuer is wrong.
        jwt.PyJWTError
            Any other verification failure, unchanged.
        """
        return self._verify(token, self._settings.access_secret, kind="Access")

    def verify_refresh_token(self, token: str) -> dict[str, Any]:
        """Decode and verify a refresh token; same failure modes as access tokens."""
        return self._verify(token, self._settings.refresh_secret, kind="Refresh")


def extract_bearer_token(header: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header value.

    Any other shape yields ``None`` rather than an error.
    """
    if not header:
        return None
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
        return None
    return parts[1]
