"""Transaction boundary used by every write path."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from utils.errors import InventoryError, PersistenceError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session, operation: str) -> Iterator[Session]:
    """Run the enclosed writes as one unit: commit on success, roll back otherwise.

    Reads issued before entering the block share the session's transaction,
    so the state checked there is the state the writes apply to. Storage
    failures are re-raised as :class:`PersistenceError` with a generic
    message; the driver detail only goes to the log.
    """

    try:
        yield db
        db.flush()
        db.commit()
    except InventoryError as exc:
        db.rollback()
        logger.warning("%s rolled back: %s", operation, exc.message)
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("%s failed in the database", operation)
        raise PersistenceError() from exc
    except Exception:
        db.rollback()
        logger.exception("%s failed", operation)
        raise
