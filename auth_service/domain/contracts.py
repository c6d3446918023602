"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from .account import Account, AccountStatus, AccountSummary, Role


@dataclass(slots=True)
class RegisterInput:
    """Validated inputs required to register an account."""

    email: str
    password: str
    first_name: str
    last_name: str
    roles: list[Role] | None = None


@dataclass(slots=True)
class NewAccount:
    """Fields handed to the store for a single atomic insert."""

    account_id: str
    email: str
    password: str = field(repr=False)
    first_name: str
    last_name: str
    roles: list[Role]
    status: AccountStatus = AccountStatus.active
    refresh_token: str | None = field(default=None, repr=False)
    last_login_at: datetime | None = None


@dataclass(slots=True)
class AuthResult:
    """Account summary plus the token pair minted by register or login."""

    user: AccountSummary
    access_token: str
    refresh_token: str


@dataclass(slots=True, frozen=True)
class IdentityContext:
    """Caller identity taken from a verified access token."""

    user_id: str
    email: str
    roles: list[str]


class AccountStore(Protocol):
    """Persistence contract consumed by :class:`~auth_service.domain.service.AuthService`."""

    def find_by_email(self, email: str, *, include_password: bool = False) -> Account | None:
        ...

    def find_by_id(self, account_id: str, *, include_refresh_token: bool = False) -> Account | None:
        ...

    def create(self, payload: NewAccount) -> Account:
        """Insert a new account; raise ``ConflictError`` when the email is taken."""
        ...

    def save(
        self,
        account: Account,
        *,
        skip_validation: bool = False,
        fields: tuple[str, ...] | None = None,
    ) -> Account:
        """Write only ``fields`` (see :func:`~auth_service.domain.account.resolve_save_fields`)."""
        ...

    def verify_password(self, account: Account, plaintext: str) -> bool:
        ...
