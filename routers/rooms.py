import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from database import get_db
from models import Item, Room, RoomStatus, RoomType, School, User
from routers.facility_schemas import RoomPayload
from security import access_policy
from utils.access import AccessPolicy
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.http import get_or_404, require_reference
from utils.transaction import atomic

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rooms", tags=["Rooms"])

DEFAULT_STATUS_ID = 1


def _room_query(db: Session):
    item_count = (
        select(func.count(Item.id))
        .where(Item.room_id == Room.id)
        .correlate(Room)
        .scalar_subquery()
    )
    return (
        db.query(
            Room,
            School.name.label("school_name"),
            RoomStatus.name.label("status_name"),
            RoomType.name.label("type_name"),
            User.name.label("responsible_user_name"),
            item_count.label("item_count"),
        )
        .join(School, School.id == Room.school_id)
        .outerjoin(RoomStatus, RoomStatus.id == Room.status_id)
        .outerjoin(RoomType, RoomType.id == Room.type_id)
        .outerjoin(User, User.id == Room.responsible_user_id)
    )


def _room_row(row) -> dict:
    room: Room = row.Room
    return {
        "id": room.id,
        "name": room.name,
        "school_id": room.school_id,
        "school_name": row.school_name,
        "status_id": room.status_id,
        "status_name": row.status_name,
        "type_id": room.type_id,
        "type_name": row.type_name,
        "responsible_user_id": room.responsible_user_id,
        "responsible_user_name": row.responsible_user_name,
        "floor": room.floor,
        "building": room.building,
        "notes": room.notes,
        "item_count": row.item_count,
    }


def room_detail(db: Session, room_id: int) -> dict:
    row = _room_query(db).filter(Room.id == room_id).first()
    if row is None:
        raise NotFoundError("Room not found")
    return _room_row(row)


def _room_fields(db: Session, payload: RoomPayload) -> dict:
    name = (payload.name or "").strip()
    if not name or payload.school_id is None or payload.type_id is None:
        raise ValidationError("Name, school_id, and type_id are required")

    require_reference(db, School, payload.school_id, "Referenced school does not exist")
    require_reference(db, RoomType, payload.type_id, "Referenced room type does not exist")
    status_id = payload.status_id or DEFAULT_STATUS_ID
    require_reference(db, RoomStatus, status_id, "Referenced room status does not exist")
    if payload.responsible_user_id is not None:
        require_reference(
            db, User, payload.responsible_user_id, "Referenced user does not exist"
        )

    return {
        "name": name,
        "school_id": payload.school_id,
        "status_id": status_id,
        "type_id": payload.type_id,
        "responsible_user_id": payload.responsible_user_id,
        "floor": payload.floor,
        "building": payload.building,
        "notes": payload.notes,
    }


@router.get("")
def list_rooms(
    school_id: Optional[int] = None,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    query = _room_query(db)
    if school_id is not None:
        query = query.filter(Room.school_id == school_id)
    visible = policy.visible_school_id()
    if visible is not None:
        query = query.filter(Room.school_id == visible)
    rows = query.order_by(School.name.asc(), Room.name.asc()).all()
    return [_room_row(r) for r in rows]


@router.get("/{room_id}")
def get_room(
    room_id: int,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    data = room_detail(db, room_id)
    policy.require_room(room_id)
    return data


@router.post("", status_code=status.HTTP_201_CREATED)
def create_room(
    payload: RoomPayload,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    fields = _room_fields(db, payload)
    policy.require_school(fields["school_id"])

    with atomic(db, "create room"):
        room = Room(**fields)
        db.add(room)
    logger.info("room %s created in school %s", room.id, room.school_id)
    return room_detail(db, room.id)


@router.put("/{room_id}")
def update_room(
    room_id: int,
    payload: RoomPayload,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    room = get_or_404(db, Room, room_id, "Room not found")
    policy.require_school(room.school_id)
    fields = _room_fields(db, payload)
    if fields["school_id"] != room.school_id:
        policy.require_school(fields["school_id"])

    with atomic(db, "update room"):
        for key, value in fields.items():
            setattr(room, key, value)
        room.updated_at = datetime.utcnow()
    logger.info("room %s updated", room_id)
    return room_detail(db, room_id)


@router.delete("/{room_id}")
def delete_room(
    room_id: int,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    room = get_or_404(db, Room, room_id, "Room not found")
    policy.require_school(room.school_id)

    items = db.query(func.count(Item.id)).filter(Item.room_id == room_id).scalar()
    if items:
        raise ConflictError(
            "Cannot delete room with items. Transfer or delete the items first.",
            code="room_has_items",
        )

    with atomic(db, "delete room"):
        db.delete(room)
    logger.info("room %s deleted", room_id)
    return {"message": f"Room {room_id} deleted successfully"}
