"""Fixed-shape history records and the writers that persist them.

Each mutation kind has its own record type with exactly the columns it
fills, so no call site assembles column lists by hand. Writers only add the
row to the session; committing belongs to the caller's transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from sqlalchemy.orm import Session

from models import ItemHistory


@dataclass(frozen=True)
class AddRecord:
    item_id: int
    item_name: str
    room_id: int
    quantity: int
    user_id: Optional[int] = None
    notes: Optional[str] = None

    action_type = "add"


@dataclass(frozen=True)
class DeleteRecord:
    item_id: int
    item_name: str
    room_id: Optional[int]
    quantity: int
    user_id: Optional[int] = None

    action_type = "delete"

    @property
    def notes(self) -> str:
        return f"Item deleted: {self.item_name}"


@dataclass(frozen=True)
class UpdateRecord:
    item_id: int
    item_name: str
    room_id: Optional[int]
    quantity: int  # the new quantity, not a delta
    changes: tuple[str, ...]
    user_id: Optional[int] = None

    action_type = "update"

    @property
    def notes(self) -> str:
        return "; ".join(self.changes)


@dataclass(frozen=True)
class TransferRecord:
    item_id: Optional[int]
    item_name: str
    quantity: int
    source_room_id: int
    destination_room_id: int
    source_room_name: Optional[str]
    destination_room_name: Optional[str]
    user_id: Optional[int] = None
    notes: Optional[str] = None

    action_type = "transfer"


HistoryRecord = Union[AddRecord, DeleteRecord, UpdateRecord, TransferRecord]


def _base_row(record: HistoryRecord, action_date: Optional[datetime]) -> ItemHistory:
    return ItemHistory(
        item_id=record.item_id,
        item_name=record.item_name,
        action_type=record.action_type,
        quantity=record.quantity,
        notes=record.notes or "",
        user_id=record.user_id,
        action_date=action_date or datetime.utcnow(),
    )


def _write_add(record: AddRecord, action_date: Optional[datetime]) -> ItemHistory:
    row = _base_row(record, action_date)
    row.room_id = record.room_id
    return row


def _write_delete(record: DeleteRecord, action_date: Optional[datetime]) -> ItemHistory:
    row = _base_row(record, action_date)
    row.room_id = record.room_id
    return row


def _write_update(record: UpdateRecord, action_date: Optional[datetime]) -> ItemHistory:
    row = _base_row(record, action_date)
    row.room_id = record.room_id
    return row


def _write_transfer(
    record: TransferRecord, action_date: Optional[datetime]
) -> ItemHistory:
    row = _base_row(record, action_date)
    row.source_room_id = record.source_room_id
    row.destination_room_id = record.destination_room_id
    row.source_room_name = record.source_room_name
    row.destination_room_name = record.destination_room_name
    return row


_WRITERS = {
    AddRecord: _write_add,
    DeleteRecord: _write_delete,
    UpdateRecord: _write_update,
    TransferRecord: _write_transfer,
}


def write_history(
    db: Session,
    record: HistoryRecord,
    *,
    action_date: Optional[datetime] = None,
    flush: bool = False,
) -> ItemHistory:
    """Add the history row for ``record`` to the session and return it."""

    writer = _WRITERS.get(type(record))
    if writer is None:
        raise TypeError(f"Unsupported history record: {type(record).__name__}")
    row = writer(record, action_date)
    db.add(row)
    if flush:
        db.flush()
    return row
