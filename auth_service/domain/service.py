"""Authentication workflows tying the account store to token issuance."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

import jwt

from .account import Account, AccountStatus, DEFAULT_ROLES, Profile
from .contracts import AccountStore, AuthResult, NewAccount, RegisterInput
from ..errors import AuthServiceError, ConflictError, NotFoundError, UnauthenticatedError
from ..security.tokens import TokenService

logger = logging.getLogger(__name__)

INVALID_REFRESH_TOKEN = "Invalid or expired refresh token provided"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthService:
    """Register, login, refresh, logout and profile workflows.

    All session state lives in the account's single refresh-token slot: issuing
    a new refresh token overwrites (and so revokes) the previous one.
    """

    def __init__(self, store: AccountStore, tokens: TokenService) -> None:
        """Store dependencies used to orchestrate persistence and token issuance."""
        self._store = store
        self._tokens = tokens

    def _issue_access_token(self, account_id: str, email: str, roles: list) -> str:
        return self._tokens.issue_access_token(
            user_id=account_id,
            email=email,
            roles=[getattr(role, "value", role) for role in roles],
        )

    def register(self, payload: RegisterInput) -> AuthResult:
        """Create an account and open its first session.

        Tokens are minted before the insert so the account is written once,
        already holding its refresh token.

        Raises
        ------
        ConflictError
            When an account with the same (case-insensitive) email exists.
        """
        email = payload.email.strip().lower()
        if self._store.find_by_email(email) is not None:
            raise ConflictError("User with this email already exists")

        roles = list(payload.roles) if payload.roles else list(DEFAULT_ROLES)
        account_id = str(uuid.uuid4())
        access_token = self._issue_access_token(account_id, email, roles)
        refresh_token = self._tokens.issue_refresh_token(user_id=account_id)

        account = self._store.create(
            NewAccount(
                account_id=account_id,
                email=email,
                password=payload.password,
                first_name=payload.first_name,
                last_name=payload.last_name,
                roles=roles,
                status=AccountStatus.active,
                refresh_token=refresh_token,
                last_login_at=_utcnow(),
            )
        )
        logger.info("New user registered: %s", account.email)
        return AuthResult(user=account.summary(), access_token=access_token, refresh_token=refresh_token)

    def login(self, email: str, password: str) -> AuthResult:
        """Authenticate with email and password, replacing any existing session."""
        account = self._store.find_by_email(email, include_password=True)
        if account is None:
            raise UnauthenticatedError("Invalid email")
        if not self._store.verify_password(account, password):
            raise UnauthenticatedError("Invalid password")

        access_token = self._issue_access_token(account.account_id, account.email, account.roles)
        refresh_token = self._tokens.issue_refresh_token(user_id=account.account_id)

        account.refresh_token = refresh_token
        account.last_login_at = _utcnow()
        self._store.save(account, skip_validation=True, fields=("refresh_token", "last_login_at"))

        logger.info("User logged in: %s", account.email)
        return AuthResult(user=account.summary(), access_token=access_token, refresh_token=refresh_token)

    def refresh_access_token(self, refresh_token: str) -> str:
        """Exchange the account's current refresh token for a new access token.

        The refresh token itself is not rotated. Every token or account
        failure is reported as the same generic ``UnauthenticatedError``.
        """
        try:
            claims = self._tokens.verify_refresh_token(refresh_token)
            account = self._store.find_by_id(str(claims.get("userId", "")), include_refresh_token=True)
            if account is None or account.refresh_token != refresh_token:
                raise UnauthenticatedError("Invalid refresh token")
            if not account.is_active:
                raise UnauthenticatedError("User is not active")
        except (AuthServiceError, jwt.PyJWTError) as exc:
            logger.info("refresh rejected: %s", exc)
            raise UnauthenticatedError(INVALID_REFRESH_TOKEN) from exc

        access_token = self._issue_access_token(account.account_id, account.email, account.roles)
        logger.info("New access token generated for user: %s", account.email)
        return access_token

    def logout(self, account_id: str) -> None:
        """Clear the account's refresh token, ending its session."""
        account = self._get_account(account_id)
        account.refresh_token = None
        self._store.save(account, skip_validation=True, fields=("refresh_token",))
        logger.info("User logged out: %s", account.email)

    def get_profile(self, account_id: str) -> Profile:
        return self._get_account(account_id).profile()

    def _get_account(self, account_id: str) -> Account:
        account = self._store.find_by_id(account_id)
        if account is None:
            raise NotFoundError("User not found")
        return account
