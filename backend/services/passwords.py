"""bcrypt password hashing."""

from __future__ import annotations

import bcrypt

from config import settings

# bcrypt only looks at the first 72 bytes of the password.
_BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode()[:_BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int | None = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_encode(password), salt).decode()


def verify_password(stored_hash: str, password: str) -> bool:
    """Verify password against stored bcrypt hash."""
    if not stored_hash:
        return False

    try:
        return bcrypt.checkpw(_encode(password), stored_hash.encode())
    except (ValueError, UnicodeDecodeError):
        return False
