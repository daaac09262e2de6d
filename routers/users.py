import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from auth import normalize_phone
from database import get_db
from models import ROLES, School, User
from routers.facility_schemas import UserPayload
from security import access_policy
from utils.access import AccessPolicy
from utils.errors import ConflictError, ValidationError
from utils.http import get_or_404, require_reference
from utils.transaction import atomic

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

DEFAULT_ROLE = "guru"


def _user_row(user: User, school_name: Optional[str] = None) -> dict:
    data = user.to_dict()
    data["school_name"] = school_name
    return data


def _user_fields(
    db: Session, payload: UserPayload, *, existing_id: Optional[int] = None
) -> dict:
    name = (payload.name or "").strip()
    no_induk = (payload.no_induk or "").strip()
    phone = normalize_phone(payload.phone)
    if not name or not no_induk or not phone:
        raise ValidationError("Name, no_induk, and phone are required")

    role = payload.role or DEFAULT_ROLE
    if role not in ROLES:
        raise ValidationError(f"Role must be one of: {', '.join(ROLES)}")
    if payload.school_id is not None:
        require_reference(db, School, payload.school_id, "Referenced school does not exist")
    if role == "kepala_sekolah" and payload.school_id is None:
        raise ValidationError("A head of school must be assigned to a school")

    clash = db.query(User).filter(or_(User.no_induk == no_induk, User.phone == phone))
    if existing_id is not None:
        clash = clash.filter(User.id != existing_id)
    if clash.first() is not None:
        raise ConflictError(
            "A user with this no_induk or phone already exists", code="duplicate_user"
        )

    return {
        "name": name,
        "no_induk": no_induk,
        "phone": phone,
        "role": role,
        "school_id": payload.school_id,
    }


@router.get("")
def list_users(
    role: Optional[str] = None,
    school_id: Optional[int] = None,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    policy.require_admin()
    query = db.query(User, School.name.label("school_name")).outerjoin(
        School, School.id == User.school_id
    )
    if role:
        query = query.filter(User.role == role)
    if school_id is not None:
        query = query.filter(User.school_id == school_id)
    rows = query.order_by(User.name.asc()).all()
    return [_user_row(r.User, r.school_name) for r in rows]


@router.get("/{user_id}")
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    policy.require_admin()
    user = get_or_404(db, User, user_id, "User not found")
    return _user_row(user, user.school.name if user.school else None)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserPayload,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    policy.require_admin()
    fields = _user_fields(db, payload)

    with atomic(db, "create user"):
        user = User(**fields)
        db.add(user)
    logger.info("user %s created with role %s", user.id, user.role)
    return _user_row(user, user.school.name if user.school else None)


@router.put("/{user_id}")
def update_user(
    user_id: int,
    payload: UserPayload,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    policy.require_admin()
    user = get_or_404(db, User, user_id, "User not found")
    fields = _user_fields(db, payload, existing_id=user.id)

    with atomic(db, "update user"):
        for key, value in fields.items():
            setattr(user, key, value)
    logger.info("user %s updated", user_id)
    return _user_row(user, user.school.name if user.school else None)


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    policy.require_admin()
    user = get_or_404(db, User, user_id, "User not found")
    if user.id == getattr(policy.user, "id", None):
        raise ConflictError("You cannot delete your own account", code="self_delete")

    with atomic(db, "delete user"):
        db.delete(user)
    logger.info("user %s deleted", user_id)
    return {"message": f"User {user_id} deleted successfully"}
