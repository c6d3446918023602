"""bcrypt helpers used by account stores."""

from __future__ import annotations

import bcrypt

DEFAULT_ROUNDS = 12


def _encode(password: str) -> bytes:
    # bcrypt only reads the first 72 bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str, *, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt hash for ``password``."""
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Compare ``password`` with a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(_encode(password), hashed.encode("utf-8"))
    except ValueError:
        # malformed hash
        return False
