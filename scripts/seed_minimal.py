# scripts/seed_minimal.py
# Demo data: two schools with rooms, one user per role and a few items
# python -m scripts.seed_minimal

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

import models
from app.db.init import init_db
from database import SessionLocal
from utils.item_ops import create_item

logger = logging.getLogger(__name__)

SCHOOLS = (
    {"name": "SD Negeri 1 Harapan", "address": "Jl. Merdeka 1", "phone": "021-5550101"},
    {"name": "SMP Negeri 2 Cendekia", "address": "Jl. Pendidikan 7", "phone": "021-5550202"},
)

# (school index, room name, room type id, floor)
ROOMS = (
    (0, "Kelas 1A", 1, "1"),
    (0, "Perpustakaan", 3, "1"),
    (0, "Gudang", 6, "G"),
    (1, "Lab IPA", 2, "2"),
    (1, "Ruang Guru", 4, "1"),
)

# (name, no_induk, phone, role, school index or None)
USERS = (
    ("Budi Santoso", "K-1001", "081200000001", "kepala_sekolah", 0),
    ("Siti Rahma", "G-2001", "081200000002", "guru", 0),
    ("Agus Wijaya", "S-3001", "081200000003", "staff", 1),
    ("Dewi Lestari", "M-4001", "081200000004", "murid", 1),
)

# (room name, item name, category name, quantity)
ITEMS = (
    ("Kelas 1A", "Chair", "Furniture", 30),
    ("Kelas 1A", "Desk", "Furniture", 15),
    ("Perpustakaan", "Encyclopedia Set", "Books", 4),
    ("Gudang", "Chair", "Furniture", 10),
    ("Lab IPA", "Microscope", "Lab Equipment", 8),
    ("Ruang Guru", "Projector", "Electronics", 2),
)


def upsert_one(db: Session, model, where: dict, values: dict):
    obj = db.execute(select(model).filter_by(**where)).scalars().first()
    if obj:
        for k, v in values.items():
            setattr(obj, k, v)
        db.add(obj)
        return obj
    obj = model(**{**where, **values})
    db.add(obj)
    return obj


def seed(db: Session) -> None:
    schools = [
        upsert_one(db, models.School, {"name": s["name"]}, {k: v for k, v in s.items() if k != "name"})
        for s in SCHOOLS
    ]
    db.flush()

    rooms = {}
    for school_idx, name, type_id, floor in ROOMS:
        rooms[name] = upsert_one(
            db,
            models.Room,
            {"name": name, "school_id": schools[school_idx].id},
            {"type_id": type_id, "status_id": 1, "floor": floor},
        )

    for name, no_induk, phone, role, school_idx in USERS:
        user = upsert_one(
            db,
            models.User,
            {"no_induk": no_induk},
            {
                "name": name,
                "phone": phone,
                "role": role,
                "school_id": schools[school_idx].id if school_idx is not None else None,
            },
        )
        if role == "kepala_sekolah":
            db.flush()
            schools[school_idx].kepala_sekolah_id = user.id
    db.commit()

    categories = {c.name: c.id for c in db.query(models.ItemCategory).all()}
    for room_name, item_name, category, quantity in ITEMS:
        room = rooms[room_name]
        exists = (
            db.query(models.Item)
            .filter(models.Item.room_id == room.id, models.Item.name == item_name)
            .first()
        )
        if exists:
            continue
        create_item(
            db,
            {
                "name": item_name,
                "category_id": categories[category],
                "room_id": room.id,
                "quantity": quantity,
            },
        )


def main():
    logging.basicConfig(level=logging.INFO)
    init_db()
    db = SessionLocal()
    try:
        seed(db)
        logger.info("Seed complete: schools, rooms, users and items are in place.")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
