"""Read side of the audit trail: ``item_history`` and ``item_transfers``.

Both readers return plain dicts enriched with display names, newest first.
Room and user references may be NULL once the referenced row is gone, so
every join is an outer join and the stored name snapshots are preferred
over the joined names.
"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, aliased

from models import ItemHistory, ItemTransfer, Room, School, User
from utils.errors import NotFoundError


def _history_query():
    room = aliased(Room)
    source_room = aliased(Room)
    destination_room = aliased(Room)
    source_school = aliased(School)
    destination_school = aliased(School)

    stmt = (
        select(
            ItemHistory,
            User.name.label("user_name"),
            room.name.label("room_name"),
            source_room.name.label("joined_source_room_name"),
            destination_room.name.label("joined_destination_room_name"),
            source_school.id.label("source_school_id"),
            source_school.name.label("source_school_name"),
            destination_school.id.label("destination_school_id"),
            destination_school.name.label("destination_school_name"),
        )
        .outerjoin(User, User.id == ItemHistory.user_id)
        .outerjoin(room, room.id == ItemHistory.room_id)
        .outerjoin(source_room, source_room.id == ItemHistory.source_room_id)
        .outerjoin(
            destination_room, destination_room.id == ItemHistory.destination_room_id
        )
        .outerjoin(source_school, source_school.id == source_room.school_id)
        .outerjoin(
            destination_school, destination_school.id == destination_room.school_id
        )
    )
    return stmt


def _history_row(row) -> dict[str, Any]:
    entry: ItemHistory = row.ItemHistory
    return {
        "id": entry.id,
        "item_id": entry.item_id,
        "item_name": entry.item_name,
        "room_id": entry.room_id,
        "room_name": row.room_name,
        "action_type": entry.action_type,
        "quantity": entry.quantity,
        "notes": entry.notes,
        "action_date": entry.action_date,
        "user_id": entry.user_id,
        "user_name": row.user_name,
        "source_room_id": entry.source_room_id,
        "destination_room_id": entry.destination_room_id,
        "source_room_name": entry.source_room_name or row.joined_source_room_name,
        "destination_room_name": entry.destination_room_name
        or row.joined_destination_room_name,
        "source_school_id": row.source_school_id,
        "source_school_name": row.source_school_name,
        "destination_school_id": row.destination_school_id,
        "destination_school_name": row.destination_school_name,
    }


def list_history(
    db: Session,
    *,
    room_id: Optional[int] = None,
    item_id: Optional[int] = None,
    action_type: Optional[str] = None,
) -> list[dict[str, Any]]:
    """History rows matching every given filter, most recent first.

    ``room_id`` matches a row whose own room, transfer source or transfer
    destination is that room, so a room's history includes items that left it.
    """

    stmt = _history_query()
    if room_id is not None:
        stmt = stmt.where(
            or_(
                ItemHistory.room_id == room_id,
                ItemHistory.source_room_id == room_id,
                ItemHistory.destination_room_id == room_id,
            )
        )
    if item_id is not None:
        stmt = stmt.where(ItemHistory.item_id == item_id)
    if action_type is not None:
        stmt = stmt.where(ItemHistory.action_type == action_type)

    stmt = stmt.order_by(ItemHistory.action_date.desc(), ItemHistory.id.desc())
    return [_history_row(row) for row in db.execute(stmt).all()]


def _transfer_query():
    from_room = aliased(Room)
    to_room = aliased(Room)
    from_school = aliased(School)
    to_school = aliased(School)

    return (
        select(
            ItemTransfer,
            from_room.name.label("from_room_name"),
            to_room.name.label("to_room_name"),
            from_school.name.label("from_school_name"),
            to_school.name.label("to_school_name"),
            User.name.label("transferred_by_name"),
        )
        .outerjoin(from_room, from_room.id == ItemTransfer.from_room_id)
        .outerjoin(to_room, to_room.id == ItemTransfer.to_room_id)
        .outerjoin(from_school, from_school.id == from_room.school_id)
        .outerjoin(to_school, to_school.id == to_room.school_id)
        .outerjoin(User, User.id == ItemTransfer.transferred_by_user_id)
    )


def _transfer_row(row) -> dict[str, Any]:
    transfer: ItemTransfer = row.ItemTransfer
    return {
        "id": transfer.id,
        "item_id": transfer.item_id,
        "destination_item_id": transfer.destination_item_id,
        "item_name": transfer.item_name,
        "quantity": transfer.quantity,
        "from_room_id": transfer.from_room_id,
        "to_room_id": transfer.to_room_id,
        "from_room_name": row.from_room_name,
        "to_room_name": row.to_room_name,
        "from_school_name": row.from_school_name,
        "to_school_name": row.to_school_name,
        "school_name": row.from_school_name or row.to_school_name,
        "transferred_by_user_id": transfer.transferred_by_user_id,
        "transferred_by_name": row.transferred_by_name,
        "notes": transfer.notes,
        "transfer_date": transfer.transfer_date,
    }


def list_transfers(
    db: Session,
    *,
    item_id: Optional[int] = None,
    room_id: Optional[int] = None,
    from_room_id: Optional[int] = None,
    to_room_id: Optional[int] = None,
    user_id: Optional[int] = None,
) -> list[dict[str, Any]]:
    """Transfer rows matching every given filter, most recent first.

    ``item_id`` matches either side of the move; ``room_id`` matches either
    the source or the destination room.
    """

    stmt = _transfer_query()
    if item_id is not None:
        stmt = stmt.where(
            or_(
                ItemTransfer.item_id == item_id,
                ItemTransfer.destination_item_id == item_id,
            )
        )
    if room_id is not None:
        stmt = stmt.where(
            or_(ItemTransfer.from_room_id == room_id, ItemTransfer.to_room_id == room_id)
        )
    if from_room_id is not None:
        stmt = stmt.where(ItemTransfer.from_room_id == from_room_id)
    if to_room_id is not None:
        stmt = stmt.where(ItemTransfer.to_room_id == to_room_id)
    if user_id is not None:
        stmt = stmt.where(ItemTransfer.transferred_by_user_id == user_id)

    stmt = stmt.order_by(ItemTransfer.transfer_date.desc(), ItemTransfer.id.desc())
    return [_transfer_row(row) for row in db.execute(stmt).all()]


def transfer_detail(db: Session, transfer_id: int) -> dict[str, Any]:
    row = db.execute(
        _transfer_query().where(ItemTransfer.id == transfer_id)
    ).first()
    if row is None:
        raise NotFoundError("Transfer not found")
    return _transfer_row(row)
