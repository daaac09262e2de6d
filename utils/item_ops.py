"""Item add, update and delete, each paired with its history row.

The state change and the history insert always share one transaction (see
:func:`utils.transaction.atomic`), so a history row never exists without the
mutation it describes.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from models import DEFAULT_CONDITION, Item, ItemCategory, ItemTransfer, Room
from utils.access import AccessPolicy
from utils.errors import ConflictError, ValidationError
from utils.history import AddRecord, DeleteRecord, UpdateRecord, write_history
from utils.http import get_or_404, require_reference
from utils.transaction import atomic

logger = logging.getLogger(__name__)

OTHER_PROPERTIES_UPDATED = "Other properties updated"
_CATCH_ALL_FIELDS = ("name", "category_id", "room_id", "quantity", "condition")


def coerce_quantity(value: Any) -> int:
    """Integer view of a quantity; missing or non-numeric values count as 0."""

    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _coerce_id(value: Any) -> Any:
    try:
        return int(value)
    except (TypeError, ValueError):
        return value


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _serialize(values: Mapping[str, Any]) -> str:
    snapshot = {
        "name": _text(values.get("name")),
        "category_id": _coerce_id(values.get("category_id")),
        "room_id": _coerce_id(values.get("room_id")),
        "quantity": coerce_quantity(values.get("quantity")),
        "condition": _text(values.get("condition")),
    }
    return json.dumps({k: snapshot[k] for k in _CATCH_ALL_FIELDS}, sort_keys=True, default=str)


def diff_item(before: Mapping[str, Any], after: Mapping[str, Any]) -> list[str]:
    """Return the human readable change list between two item snapshots.

    Quantity, name and condition are compared individually. Only when none of
    them changed is the serialized snapshot compared as a catch-all, which
    yields a single generic entry. An empty list means nothing changed.
    """

    changes: list[str] = []

    old_qty = coerce_quantity(before.get("quantity"))
    new_qty = coerce_quantity(after.get("quantity"))
    if old_qty != new_qty:
        changes.append(f"Quantity changed from {old_qty} to {new_qty}")

    old_name = _text(before.get("name"))
    new_name = _text(after.get("name"))
    if old_name != new_name:
        changes.append(f'Name changed from "{old_name}" to "{new_name}"')

    old_condition = _text(before.get("condition"))
    new_condition = _text(after.get("condition"))
    if old_condition != new_condition:
        changes.append(
            f'Condition changed from "{old_condition}" to "{new_condition}"'
        )

    if not changes and _serialize(before) != _serialize(after):
        changes.append(OTHER_PROPERTIES_UPDATED)

    return changes


def _snapshot(item: Item) -> dict[str, Any]:
    return {
        "name": item.name,
        "category_id": item.category_id,
        "room_id": item.room_id,
        "quantity": item.quantity,
        "condition": item.condition,
        "acquisition_date": item.acquisition_date,
        "notes": item.notes,
    }


def _parse_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError("Acquisition date must be an ISO date (YYYY-MM-DD)")


def _require_name(values: Mapping[str, Any]) -> str:
    name = _text(values.get("name")).strip()
    if not name or values.get("category_id") is None or values.get("room_id") is None:
        raise ValidationError("Name, category_id, and room_id are required")
    return name


def _validated_fields(db: Session, values: Mapping[str, Any]) -> dict[str, Any]:
    """Normalise an add/update payload into column values, raising on bad input."""

    name = _require_name(values)
    raw_quantity = values.get("quantity")
    quantity = coerce_quantity(raw_quantity)
    if quantity < 0:
        raise ValidationError("Quantity cannot be negative")

    category = require_reference(
        db,
        ItemCategory,
        _coerce_id(values.get("category_id")),
        "Referenced category does not exist",
    )
    room = require_reference(
        db, Room, _coerce_id(values.get("room_id")), "Referenced room does not exist"
    )

    return {
        "name": name,
        "category_id": category.id,
        "room_id": room.id,
        "quantity": quantity,
        "condition": values.get("condition") or DEFAULT_CONDITION,
        "acquisition_date": _parse_date(values.get("acquisition_date")),
        "notes": values.get("notes") or "",
    }


def create_item(
    db: Session,
    values: Mapping[str, Any],
    *,
    user_id: Optional[int] = None,
    policy: Optional[AccessPolicy] = None,
) -> Item:
    """Insert a new item and its ``add`` history row."""

    fields = _validated_fields(db, values)
    if policy is not None:
        policy.require_room(fields["room_id"])

    with atomic(db, "create item"):
        item = Item(**fields, created_at=datetime.utcnow(), updated_at=datetime.utcnow())
        db.add(item)
        db.flush()
        write_history(
            db,
            AddRecord(
                item_id=item.id,
                item_name=item.name,
                room_id=item.room_id,
                quantity=item.quantity,
                user_id=user_id,
                notes=f"Item added: {item.name}",
            ),
        )

    logger.info(
        "item %s added to room %s (qty=%s, user=%s)",
        item.id,
        item.room_id,
        item.quantity,
        user_id,
    )
    return item


def update_item(
    db: Session,
    item_id: int,
    values: Mapping[str, Any],
    *,
    user_id: Optional[int] = None,
    policy: Optional[AccessPolicy] = None,
) -> tuple[Item, list[str]]:
    """Apply ``values`` to the item, recording a history row only on real change.

    Returns the item and the change list that was written (empty when the
    update was a no-op and no history row was inserted).
    """

    item = get_or_404(db, Item, item_id, "Item not found")
    if policy is not None:
        policy.require_item(item.id)

    fields = _validated_fields(db, values)
    if policy is not None and fields["room_id"] != item.room_id:
        policy.require_room(fields["room_id"])

    with atomic(db, "update item"):
        before = _snapshot(item)
        changes = diff_item(before, fields)
        if changes:
            write_history(
                db,
                UpdateRecord(
                    item_id=item.id,
                    item_name=fields["name"],
                    room_id=fields["room_id"] or before["room_id"],
                    quantity=fields["quantity"],
                    changes=tuple(changes),
                    user_id=user_id,
                ),
            )
        for key, value in fields.items():
            setattr(item, key, value)
        item.updated_at = datetime.utcnow()

    if changes:
        logger.info("item %s updated by user %s: %s", item_id, user_id, "; ".join(changes))
    else:
        logger.debug("item %s update carried no tracked change", item_id)
    return item, changes


def transfer_count(db: Session, item_id: int) -> int:
    """Number of transfers referencing the item as source or destination."""

    return db.execute(
        select(func.count(ItemTransfer.id)).where(
            or_(
                ItemTransfer.item_id == item_id,
                ItemTransfer.destination_item_id == item_id,
            )
        )
    ).scalar_one()


def delete_item(
    db: Session,
    item_id: int,
    *,
    user_id: Optional[int] = None,
    policy: Optional[AccessPolicy] = None,
) -> dict[str, Any]:
    """Delete an item that was never part of a transfer."""

    item = get_or_404(db, Item, item_id, "Item not found")
    if policy is not None:
        policy.require_item(item.id)

    if transfer_count(db, item.id) > 0:
        raise ConflictError(
            "Cannot delete item with transfer history. Consider reducing quantity instead.",
            code="item_has_transfers",
        )

    with atomic(db, "delete item"):
        write_history(
            db,
            DeleteRecord(
                item_id=item.id,
                item_name=item.name,
                room_id=item.room_id,
                quantity=item.quantity,
                user_id=user_id,
            ),
            flush=True,
        )
        db.delete(item)

    logger.info("item %s deleted by user %s", item_id, user_id)
    return {"message": f"Item {item_id} deleted successfully"}
