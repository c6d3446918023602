"""Field validation applied by account stores before they write a record."""

from __future__ import annotations

import re
from typing import Iterable

from ..errors import RecordValidationError
from .account import Role

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8
MAX_NAME_LENGTH = 50


def _check_name(label: str, value: str, problems: list[str]) -> None:
    if not value or not value.strip():
        problems.append(f"{label} is required")
    elif len(value) > MAX_NAME_LENGTH:
        problems.append(f"{label} cannot exceed {MAX_NAME_LENGTH} characters")


def validate_account_fields(
    *,
    email: str,
    first_name: str,
    last_name: str,
    roles: Iterable[Role | str],
    password: str | None = None,
) -> None:
    """Raise :class:`RecordValidationError` listing every invalid field.

    ``password`` is only checked when given, i.e. on create; stored records
    hold a hash which cannot be re-validated.
    """
    problems: list[str] = []

    if not EMAIL_PATTERN.match(email or ""):
        problems.append("Please provide a valid email")
    if password is not None and len(password) < MIN_PASSWORD_LENGTH:
        problems.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    _check_name("First name", first_name, problems)
    _check_name("Last name", last_name, problems)

    roles = list(roles)
    if not roles:
        problems.append("At least one role is required")
    known = {role.value for role in Role}
    for role in roles:
        value = role.value if isinstance(role, Role) else role
        if value not in known:
            problems.append(f"{value} is not a valid role")

    if problems:
        raise RecordValidationError(problems)
