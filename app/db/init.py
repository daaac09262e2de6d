"""Database bootstrap: table creation and reference rows.

Schema changes belong to the Alembic migrations under ``alembic/versions``;
this module only creates missing tables and inserts missing reference rows,
both of which are safe to repeat on every start-up.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

ROOM_STATUSES = ("Available", "Maintenance", "Unavailable")

ROOM_TYPES = (
    "Classroom",
    "Lab",
    "Library",
    "Office",
    "Hall",
    "Storage",
    "Toilet",
    "Canteen",
    "Sports",
    "Misc",
)

ITEM_CATEGORIES = (
    ("Furniture", "Desks, chairs, cabinets and shelving"),
    ("Electronics", "Computers, projectors and other powered equipment"),
    ("Books", "Textbooks and library collections"),
    ("Lab Equipment", "Science laboratory instruments"),
    ("Sports Equipment", "Balls, nets and physical education gear"),
    ("Stationery", "Paper, pens and consumable writing supplies"),
    ("Teaching Aids", "Maps, models and classroom demonstration material"),
    ("Office Supplies", "Administrative equipment and supplies"),
    ("Cleaning Supplies", "Cleaning tools and materials"),
    ("Other", None),
)


def seed_reference_data(db: Session) -> int:
    """Insert the reference rows that are missing and return how many were added."""

    from models import ItemCategory, RoomStatus, RoomType

    added = 0
    for idx, name in enumerate(ROOM_STATUSES, start=1):
        if db.get(RoomStatus, idx) is None:
            db.add(RoomStatus(id=idx, name=name))
            added += 1
    for idx, name in enumerate(ROOM_TYPES, start=1):
        if db.get(RoomType, idx) is None:
            db.add(RoomType(id=idx, name=name))
            added += 1

    existing = {name for (name,) in db.query(ItemCategory.name).all()}
    for name, description in ITEM_CATEGORIES:
        if name not in existing:
            db.add(ItemCategory(name=name, description=description))
            added += 1

    if added:
        db.commit()
        logger.info("seeded %s reference rows", added)
    return added


def init_db() -> None:
    """Create missing tables and reference rows."""

    from models import Base, SessionLocal, engine

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_reference_data(db)
    finally:
        db.close()
