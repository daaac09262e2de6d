"""Role and school scoping checks consulted before every mutation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from models import Item, Room
from utils.errors import AuthorizationError

SCOPE_ALL = "all"
SCOPE_SCHOOL = "school"

# Roles missing from this table are denied everything.
ROLE_SCOPES: dict[str, str] = {
    "admin": SCOPE_ALL,
    "kepala_sekolah": SCOPE_SCHOOL,
    "guru": SCOPE_ALL,
    "staff": SCOPE_ALL,
    "murid": SCOPE_ALL,
}


def _as_int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class AccessPolicy:
    """Answers ``can_access_*`` for one user against one session.

    ``user`` is anything exposing ``role`` and ``school_id`` (the ORM
    ``User`` or :class:`security.SessionUser`); ``None`` means nobody is
    logged in.
    """

    db: Session
    user: Optional[object]

    @property
    def scope(self) -> Optional[str]:
        if self.user is None:
            return None
        return ROLE_SCOPES.get(getattr(self.user, "role", None) or "")

    @property
    def school_id(self) -> Optional[int]:
        return _as_int(getattr(self.user, "school_id", None))

    def _matches_school(self, school_id) -> bool:
        own = self.school_id
        return own is not None and own == _as_int(school_id)

    def can_access_school(self, school_id) -> bool:
        scope = self.scope
        if scope == SCOPE_ALL:
            return True
        if scope == SCOPE_SCHOOL:
            return self._matches_school(school_id)
        return False

    def can_access_room(self, room_id) -> bool:
        scope = self.scope
        if scope == SCOPE_ALL:
            return True
        if scope == SCOPE_SCHOOL:
            school_id = self.db.execute(
                select(Room.school_id).where(Room.id == room_id)
            ).scalar_one_or_none()
            return school_id is not None and self._matches_school(school_id)
        return False

    def can_access_item(self, item_id) -> bool:
        scope = self.scope
        if scope == SCOPE_ALL:
            return True
        if scope == SCOPE_SCHOOL:
            school_id = self.db.execute(
                select(Room.school_id)
                .join(Item, Item.room_id == Room.id)
                .where(Item.id == item_id)
            ).scalar_one_or_none()
            return school_id is not None and self._matches_school(school_id)
        return False

    def require_school(self, school_id) -> None:
        if not self.can_access_school(school_id):
            raise AuthorizationError()

    def require_room(self, room_id) -> None:
        if not self.can_access_room(room_id):
            raise AuthorizationError()

    def require_item(self, item_id) -> None:
        if not self.can_access_item(item_id):
            raise AuthorizationError()

    def require_admin(self) -> None:
        if getattr(self.user, "role", None) != "admin":
            raise AuthorizationError()

    def visible_school_id(self) -> Optional[int]:
        """School id list queries must be narrowed to, or ``None`` for no narrowing."""

        if self.scope == SCOPE_SCHOOL:
            # a head of school without a school sees nothing
            return self.school_id if self.school_id is not None else -1
        return None
