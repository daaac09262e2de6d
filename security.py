# security.py
from dataclasses import dataclass, field

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from auth import get_user_by_id
from database import get_db
from utils.access import AccessPolicy


@dataclass
class SessionUser:
    id: int
    name: str
    role: str
    school_id: int | None = field(default=None)
    phone: str | None = field(default=None)


def current_user(request: Request, db: Session = Depends(get_db)) -> SessionUser:
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
        )
    u = get_user_by_id(db, int(user_id))
    if not u:
        request.session.clear()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
        )
    return SessionUser(u.id, u.name, u.role, u.school_id, u.phone)


def access_policy(
    db: Session = Depends(get_db), user: SessionUser = Depends(current_user)
) -> AccessPolicy:
    """Access policy bound to the request's session user and db session."""

    return AccessPolicy(db, user)
