"""Bearer-token authentication for routes that need an existing session."""

from __future__ import annotations

from fastapi import Header, Request

from ..domain.contracts import IdentityContext
from ..errors import UnauthenticatedError
from .tokens import TokenService, extract_bearer_token


def authenticate(tokens: TokenService, authorization: str | None) -> IdentityContext:
    """Verify the bearer access token in ``authorization``.

    The account store is not consulted: a token that verifies is trusted until
    it expires.
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise UnauthenticatedError("No token provided")
    claims = tokens.verify_access_token(token)
    return IdentityContext(
        user_id=str(claims.get("userId", "")),
        email=claims.get("email", ""),
        roles=list(claims.get("roles", [])),
    )


def require_identity(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> IdentityContext:
    """FastAPI dependency resolving the caller's identity from the request."""
    tokens: TokenService = request.app.state.token_service
    return authenticate(tokens, authorization)
