from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    patient = "patient"
    doctor = "doctor"
    admin = "admin"


class AccountStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    suspended = "suspended"


DEFAULT_ROLES: tuple[Role, ...] = (Role.patient,)

# Columns a store may write on save; the session slot is the last two.
MUTABLE_FIELDS: tuple[str, ...] = (
    "first_name",
    "last_name",
    "roles",
    "status",
    "refresh_token",
    "last_login_at",
)
SESSION_FIELDS: tuple[str, ...] = ("refresh_token", "last_login_at")


def resolve_save_fields(fields: tuple[str, ...] | None, *, skip_validation: bool) -> tuple[str, ...]:
    """Return the columns a save should write.

    Without an explicit selection, a validated save writes every mutable
    field and an unvalidated one writes only the session slot.
    """
    if fields is None:
        return SESSION_FIELDS if skip_validation else MUTABLE_FIELDS
    unknown = set(fields) - set(MUTABLE_FIELDS)
    if unknown:
        raise ValueError(f"not a mutable account field: {', '.join(sorted(unknown))}")
    return tuple(fields)


@dataclass(slots=True)
class Account:
    """Aggregate root for a user identity and its single session slot.

    ``password_hash`` and ``refresh_token`` stay ``None`` unless the store was
    asked to load them.
    """

    account_id: str
    email: str
    first_name: str
    last_name: str
    roles: list[Role]
    status: AccountStatus
    created_at: datetime
    last_login_at: datetime | None = None
    password_hash: str | None = field(default=None, repr=False)
    refresh_token: str | None = field(default=None, repr=False)

    @property
    def is_active(self) -> bool:
        return self.status is AccountStatus.active

    def summary(self) -> AccountSummary:
        return AccountSummary(
            account_id=self.account_id,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            roles=list(self.roles),
            status=self.status,
        )

    def profile(self) -> Profile:
        return Profile(
            account_id=self.account_id,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            roles=list(self.roles),
            status=self.status,
            last_login_at=self.last_login_at,
            created_at=self.created_at,
        )


@dataclass(slots=True, frozen=True)
class AccountSummary:
    """Account fields returned alongside freshly issued tokens."""

    account_id: str
    email: str
    first_name: str
    last_name: str
    roles: list[Role]
    status: AccountStatus


@dataclass(slots=True, frozen=True)
class Profile:
    """Read-only projection of an account; never carries credentials."""

    account_id: str
    email: str
    first_name: str
    last_name: str
    roles: list[Role]
    status: AccountStatus
    last_login_at: datetime | None
    created_at: datetime
