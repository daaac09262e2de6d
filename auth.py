from __future__ import annotations

import logging
import re

from sqlalchemy.orm import Session

from app.core.security import (
    hash_password,
    is_password_hash,
    needs_password_rehash,
    verify_password,
)
from models import User

logger = logging.getLogger(__name__)

_PHONE_SEPARATORS = re.compile(r"[\s\-().]")


def normalize_phone(value: str | None) -> str:
    """Strip spaces, dashes, dots and parentheses from a phone number."""

    if not value:
        return ""
    return _PHONE_SEPARATORS.sub("", value.strip())


def get_user_by_phone(db: Session, phone: str | None) -> User | None:
    normalized = normalize_phone(phone)
    if not normalized:
        return None
    return db.query(User).filter(User.phone == normalized).first()


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def authenticate_user(db: Session, phone: str, password: str) -> User | None:
    """Return the user for ``phone`` if ``password`` matches, else ``None``.

    The password is the user's ``no_induk``. Accounts that also carry a
    ``password_hash`` must verify against it too; a plaintext value left in
    that column by older imports is accepted once and replaced by a hash.
    """

    user = get_user_by_phone(db, phone)
    if user is None or not password:
        return None
    if password.strip() != (user.no_induk or "").strip():
        return None

    stored = user.password_hash
    if not stored:
        return user

    if is_password_hash(stored):
        if not verify_password(password, stored):
            return None
        if needs_password_rehash(stored):
            user.password_hash = hash_password(password)
            db.commit()
        return user

    if stored != password:
        return None
    user.password_hash = hash_password(password)
    db.commit()
    logger.info("upgraded plaintext password for user %s", user.id)
    return user
