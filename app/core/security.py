"""Password hashing helpers shared across the application."""

from __future__ import annotations

from passlib import exc as passlib_exc
from passlib.context import CryptContext

# pure-python schemes only; new hashes use the first one
pwd_context = CryptContext(
    schemes=["pbkdf2_sha512", "pbkdf2_sha256"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    """Hash a plaintext password using the configured crypt context."""

    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    """Verify a plaintext password against a stored hash."""

    if not password_hash:
        return False
    try:
        return pwd_context.verify(plain_password, password_hash)
    except (passlib_exc.UnknownHashError, ValueError):
        return False


def is_password_hash(value: str | None) -> bool:
    """Return ``True`` if *value* looks like a supported password hash."""

    if not value:
        return False

    try:
        return pwd_context.identify(value) is not None
    except ValueError:
        return False


def needs_password_rehash(password_hash: str) -> bool:
    """Return ``True`` if the stored hash should be upgraded."""

    try:
        return pwd_context.needs_update(password_hash)
    except passlib_exc.UnknownHashError:
        return True


__all__ = [
    "hash_password",
    "verify_password",
    "pwd_context",
    "is_password_hash",
    "needs_password_rehash",
]
