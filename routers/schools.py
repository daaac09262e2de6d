import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from database import get_db
from models import Room, School, User
from routers.facility_schemas import SchoolPayload
from security import access_policy
from utils.access import AccessPolicy
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.http import get_or_404, require_reference
from utils.transaction import atomic

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schools", tags=["Schools"])


def _school_query(db: Session):
    room_count = (
        select(func.count(Room.id))
        .where(Room.school_id == School.id)
        .correlate(School)
        .scalar_subquery()
    )
    return db.query(
        School,
        User.name.label("kepala_sekolah_name"),
        room_count.label("room_count"),
    ).outerjoin(User, User.id == School.kepala_sekolah_id)


def _school_row(row) -> dict:
    school: School = row.School
    return {
        "id": school.id,
        "name": school.name,
        "address": school.address,
        "phone": school.phone,
        "email": school.email,
        "kepala_sekolah_id": school.kepala_sekolah_id,
        "kepala_sekolah_name": row.kepala_sekolah_name,
        "room_count": row.room_count,
    }


def school_detail(db: Session, school_id: int) -> dict:
    row = _school_query(db).filter(School.id == school_id).first()
    if row is None:
        raise NotFoundError("School not found")
    return _school_row(row)


def _school_fields(db: Session, payload: SchoolPayload) -> dict:
    name = (payload.name or "").strip()
    if not name:
        raise ValidationError("School name is required")
    if payload.kepala_sekolah_id is not None:
        require_reference(
            db, User, payload.kepala_sekolah_id, "Referenced head of school does not exist"
        )
    return {
        "name": name,
        "address": payload.address,
        "phone": payload.phone,
        "email": payload.email,
        "kepala_sekolah_id": payload.kepala_sekolah_id,
    }


@router.get("")
def list_schools(
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    query = _school_query(db)
    visible = policy.visible_school_id()
    if visible is not None:
        query = query.filter(School.id == visible)
    return [_school_row(r) for r in query.order_by(School.name.asc()).all()]


@router.get("/{school_id}")
def get_school(
    school_id: int,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    data = school_detail(db, school_id)
    policy.require_school(school_id)
    return data


@router.post("", status_code=status.HTTP_201_CREATED)
def create_school(
    payload: SchoolPayload,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    policy.require_admin()
    fields = _school_fields(db, payload)

    with atomic(db, "create school"):
        school = School(**fields)
        db.add(school)
    logger.info("school %s created", school.id)
    return school_detail(db, school.id)


@router.put("/{school_id}")
def update_school(
    school_id: int,
    payload: SchoolPayload,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    school = get_or_404(db, School, school_id, "School not found")
    policy.require_school(school.id)
    fields = _school_fields(db, payload)

    with atomic(db, "update school"):
        for key, value in fields.items():
            setattr(school, key, value)
        school.updated_at = datetime.utcnow()
    logger.info("school %s updated", school_id)
    return school_detail(db, school_id)


@router.delete("/{school_id}")
def delete_school(
    school_id: int,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    school = get_or_404(db, School, school_id, "School not found")
    policy.require_admin()

    rooms = db.query(func.count(Room.id)).filter(Room.school_id == school_id).scalar()
    if rooms:
        raise ConflictError(
            "Cannot delete school with rooms. Delete or move the rooms first.",
            code="school_has_rooms",
        )

    with atomic(db, "delete school"):
        db.delete(school)
    logger.info("school %s deleted", school_id)
    return {"message": f"School {school_id} deleted successfully"}
