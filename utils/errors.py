"""Error taxonomy for inventory operations.

Every error carries a client-safe ``message`` and a stable ``code``; the
HTTP layer maps ``status_code`` onto the response without exposing any
driver or traceback text.
"""

from __future__ import annotations

from typing import Any


class InventoryError(Exception):
    status_code = 500
    code = "inventory_error"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code}


class ValidationError(InventoryError):
    status_code = 400
    code = "validation_error"


class NotFoundError(InventoryError):
    status_code = 404
    code = "not_found"


class ConflictError(InventoryError):
    status_code = 400
    code = "conflict"


class InsufficientQuantityError(ConflictError):
    code = "insufficient_quantity"

    def __init__(self, available: int, requested: int) -> None:
        super().__init__(
            f"Not enough items to transfer. Available: {available}"
        )
        self.available = available
        self.requested = requested

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["available"] = self.available
        return data


class AuthenticationError(InventoryError):
    status_code = 401
    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid phone number or password") -> None:
        super().__init__(message)


class AuthorizationError(InventoryError):
    status_code = 403
    code = "forbidden"

    def __init__(self, message: str = "You do not have access to this resource") -> None:
        super().__init__(message)


class PersistenceError(InventoryError):
    status_code = 500
    code = "persistence_error"

    def __init__(self, message: str = "The change could not be saved") -> None:
        super().__init__(message)


__all__ = [
    "InventoryError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "InsufficientQuantityError",
    "AuthorizationError",
    "PersistenceError",
]
