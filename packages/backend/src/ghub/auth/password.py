"""Password hashing for email/password accounts.

Learn: bcrypt with the work factor from GHUB_PASSWORD_HASH_ROUNDS (tests
turn it down to 4). bcrypt only reads the first 72 bytes of a secret.

A sign-in for an unknown email still pays for one bcrypt check, against
a hash nobody knows the password for, so "no such user" and "wrong
password" take the same time.
"""

import functools
import secrets

import bcrypt

from ghub.config import settings

BCRYPT_MAX_BYTES = 72


def _secret(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int | None = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.password_hash_rounds)
    return bcrypt.hashpw(_secret(password), salt).decode("ascii")


@functools.lru_cache(maxsize=1)
def _unmatchable_hash() -> str:
    return hash_password(secrets.token_urlsafe(32))


def verify_password(password: str, password_hash: str | None) -> bool:
    """True only for a stored hash that matches. None means "no such user"."""
    candidate = password_hash or _unmatchable_hash()
    try:
        matched = bcrypt.checkpw(_secret(password), candidate.encode("ascii"))
    except ValueError:
        return False
    return matched and password_hash is not None
