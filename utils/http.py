from typing import Any, Optional

from sqlalchemy.orm import Session

from utils.errors import NotFoundError, ValidationError


def validate_quantity(quantity: Any, *, allow_zero: bool = False) -> int:
    """Return ``quantity`` as an int, rejecting missing or out-of-range values."""
    if quantity is None or isinstance(quantity, bool):
        raise ValidationError("Quantity is required")
    try:
        value = int(quantity)
    except (TypeError, ValueError):
        raise ValidationError("Quantity must be a whole number")
    if value != quantity and not isinstance(quantity, str):
        raise ValidationError("Quantity must be a whole number")
    if allow_zero and value < 0:
        raise ValidationError("Quantity cannot be negative")
    if not allow_zero and value <= 0:
        raise ValidationError("Quantity must be greater than 0")
    return value


def get_or_404(db: Session, model, id: int, message: str = "Record not found"):
    """Return the object with ``id`` from ``model`` or raise :class:`NotFoundError`."""
    obj = db.get(model, id) if id is not None else None
    if not obj:
        raise NotFoundError(message)
    return obj


def require_reference(
    db: Session, model, id: Optional[int], message: str
):
    """Like :func:`get_or_404` but for ids supplied in a payload.

    A dangling reference in the request body is a client input problem, so it
    surfaces as a 400 instead of a 404.
    """
    obj = db.get(model, id) if id is not None else None
    if not obj:
        raise ValidationError(message)
    return obj
