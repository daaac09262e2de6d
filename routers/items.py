from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from models import Item, ItemCategory, Room, School
from routers.inventory_schemas import ItemOut, ItemPayload
from security import SessionUser, access_policy, current_user
from utils.access import AccessPolicy
from utils.errors import NotFoundError
from utils.item_ops import create_item, delete_item, update_item

router = APIRouter(prefix="/items", tags=["Items"])


def _item_query(db: Session):
    return (
        db.query(
            Item,
            ItemCategory.name.label("category_name"),
            Room.name.label("room_name"),
            School.id.label("school_id"),
            School.name.label("school_name"),
        )
        .join(Room, Room.id == Item.room_id)
        .join(School, School.id == Room.school_id)
        .outerjoin(ItemCategory, ItemCategory.id == Item.category_id)
    )


def _item_row(row) -> dict:
    data = row.Item.to_dict()
    data.update(
        category_name=row.category_name,
        room_name=row.room_name,
        school_id=row.school_id,
        school_name=row.school_name,
    )
    return data


def item_detail(db: Session, item_id: int) -> dict:
    row = _item_query(db).filter(Item.id == item_id).first()
    if row is None:
        raise NotFoundError("Item not found")
    return _item_row(row)


@router.get("", response_model=list[ItemOut])
def list_items(
    room_id: Optional[int] = None,
    school_id: Optional[int] = None,
    category_id: Optional[int] = None,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    query = _item_query(db)
    if room_id is not None:
        query = query.filter(Item.room_id == room_id)
    if school_id is not None:
        query = query.filter(Room.school_id == school_id)
    if category_id is not None:
        query = query.filter(Item.category_id == category_id)
    visible = policy.visible_school_id()
    if visible is not None:
        query = query.filter(Room.school_id == visible)

    rows = query.order_by(School.name.asc(), Room.name.asc(), Item.name.asc()).all()
    return [_item_row(r) for r in rows]


@router.get("/{item_id}", response_model=ItemOut)
def get_item(
    item_id: int,
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(access_policy),
):
    data = item_detail(db, item_id)
    policy.require_item(item_id)
    return data


@router.post("", response_model=ItemOut, status_code=status.HTTP_201_CREATED)
def add_item(
    payload: ItemPayload,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(current_user),
    policy: AccessPolicy = Depends(access_policy),
):
    item = create_item(db, payload.model_dump(), user_id=user.id, policy=policy)
    return item_detail(db, item.id)


@router.put("/{item_id}", response_model=ItemOut)
def edit_item(
    item_id: int,
    payload: ItemPayload,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(current_user),
    policy: AccessPolicy = Depends(access_policy),
):
    item, _changes = update_item(
        db, item_id, payload.model_dump(), user_id=user.id, policy=policy
    )
    return item_detail(db, item.id)


@router.delete("/{item_id}")
def remove_item(
    item_id: int,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(current_user),
    policy: AccessPolicy = Depends(access_policy),
):
    return delete_item(db, item_id, user_id=user.id, policy=policy)
