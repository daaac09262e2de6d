"""Session dependency shared by the routers."""

from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy.orm import Session

from models import SessionLocal, engine

__all__ = ["SessionLocal", "engine", "get_db"]


def get_db() -> Iterator[Session]:
    """Yield a session for one request and always close it afterwards."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
