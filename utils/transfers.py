"""Moving item quantity between rooms.

A transfer decrements the source item (deleting it once it reaches zero),
merges into a destination item with the same name and category or creates
one, and writes the ``item_transfers`` row together with the ``transfer``
history row. All of it commits or rolls back as one unit.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import allow_cross_school_transfers
from models import Item, ItemTransfer, Room
from utils.access import AccessPolicy
from utils.errors import (
    ConflictError,
    InsufficientQuantityError,
    NotFoundError,
    ValidationError,
)
from utils.history import TransferRecord, write_history
from utils.http import validate_quantity
from utils.transaction import atomic

logger = logging.getLogger(__name__)


def _required_id(value: Any) -> int:
    if value in (None, "", 0) or isinstance(value, bool):
        raise ValidationError(
            "Item ID, source room ID, destination room ID, and quantity are required"
        )
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("Item and room IDs must be integers")


def _locked_item(db: Session, item_id: int) -> Optional[Item]:
    return db.execute(
        select(Item)
        .where(Item.id == item_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def _matching_destination(db: Session, source: Item, room_id: int) -> Optional[Item]:
    return (
        db.execute(
            select(Item)
            .where(
                Item.name == source.name,
                Item.category_id == source.category_id,
                Item.room_id == room_id,
            )
            .order_by(Item.id.asc())
            .with_for_update()
        )
        .scalars()
        .first()
    )


def transfer_item(
    db: Session,
    *,
    item_id: Any,
    from_room_id: Any,
    to_room_id: Any,
    quantity: Any,
    user_id: Optional[int] = None,
    notes: Optional[str] = None,
    policy: Optional[AccessPolicy] = None,
) -> ItemTransfer:
    """Move ``quantity`` units of an item from one room to another."""

    item_id = _required_id(item_id)
    from_room_id = _required_id(from_room_id)
    to_room_id = _required_id(to_room_id)
    if quantity in (None, "", 0):
        raise ValidationError(
            "Item ID, source room ID, destination room ID, and quantity are required"
        )
    quantity = validate_quantity(quantity)

    if from_room_id == to_room_id:
        raise ValidationError("Cannot transfer to the same room")

    item = db.get(Item, item_id)
    if item is None or item.room_id != from_room_id:
        raise NotFoundError("Item not found in the source room")
    if policy is not None:
        policy.require_item(item.id)

    if item.quantity < quantity:
        raise InsufficientQuantityError(item.quantity, quantity)

    destination_room = db.get(Room, to_room_id)
    if destination_room is None:
        raise NotFoundError("Destination room not found")
    if policy is not None:
        policy.require_room(destination_room.id)

    source_room = db.get(Room, from_room_id)
    if source_room is None:
        raise NotFoundError("Source room not found")

    if (
        source_room.school_id != destination_room.school_id
        and not allow_cross_school_transfers()
    ):
        raise ConflictError(
            "Cannot transfer items between different schools",
            code="cross_school_transfer",
        )

    with atomic(db, "transfer item"):
        source = _locked_item(db, item_id)
        if source is None or source.room_id != from_room_id:
            raise NotFoundError("Item not found in the source room")
        if source.quantity < quantity:
            raise InsufficientQuantityError(source.quantity, quantity)

        now = datetime.utcnow()
        source.quantity -= quantity
        source.updated_at = now
        consumed = source.quantity <= 0

        destination = _matching_destination(db, source, to_room_id)
        if destination is not None:
            destination.quantity += quantity
            destination.updated_at = now
        else:
            destination = Item(
                name=source.name,
                category_id=source.category_id,
                room_id=to_room_id,
                quantity=quantity,
                condition=source.condition,
                acquisition_date=source.acquisition_date,
                notes=source.notes,
                created_at=now,
                updated_at=now,
            )
            db.add(destination)
        db.flush()

        transfer = ItemTransfer(
            item_id=source.id,
            destination_item_id=destination.id,
            item_name=source.name,
            quantity=quantity,
            from_room_id=from_room_id,
            to_room_id=to_room_id,
            transferred_by_user_id=user_id,
            notes=notes or "",
            transfer_date=now,
        )
        db.add(transfer)
        write_history(
            db,
            TransferRecord(
                item_id=source.id,
                item_name=source.name,
                quantity=quantity,
                source_room_id=from_room_id,
                destination_room_id=to_room_id,
                source_room_name=source_room.name,
                destination_room_name=destination_room.name,
                user_id=user_id,
                notes=notes,
            ),
            action_date=now,
        )
        # audit rows reference the source before it goes away; the
        # ON DELETE SET NULL keys then detach them
        db.flush()
        if consumed:
            db.delete(source)

    logger.info(
        "transfer %s: %s x item %s from room %s to room %s (user=%s, consumed=%s)",
        transfer.id,
        quantity,
        item_id,
        from_room_id,
        to_room_id,
        user_id,
        consumed,
    )
    return transfer
