# models.py
from __future__ import annotations

import os
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    event,
    func,
)
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
    sessionmaker,
)
from sqlalchemy.pool import StaticPool

load_dotenv()

ROLES = ("admin", "kepala_sekolah", "guru", "staff", "murid")
ACTION_TYPES = ("add", "delete", "transfer", "update")
DEFAULT_CONDITION = "Good"


def _resolve_database_url() -> str:
    """Return the configured database URL."""

    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url
    return "sqlite:///./data/inventory.db"


DATABASE_URL = _resolve_database_url()


def _is_sqlite_url(url: str | URL) -> bool:
    parsed = url if isinstance(url, URL) else make_url(url)
    return parsed.get_backend_name() == "sqlite"


def engine_kwargs_for_url(url: str | URL) -> dict[str, Any]:
    """Return safe keyword arguments for :func:`create_engine`.

    SQLite URLs get ``check_same_thread`` disabled so FastAPI's threadpool can
    share connections. The pool selection lives in :func:`engine_pool_kwargs`
    so tests can pass their own ``poolclass`` without a duplicate kwarg.
    """

    if _is_sqlite_url(url):
        return {"connect_args": {"check_same_thread": False}}
    return {}


def engine_pool_kwargs(url: str | URL) -> dict[str, Any]:
    """Return optional pool-related kwargs for SQLite memory databases."""

    if not _is_sqlite_url(url):
        return {}
    parsed = url if isinstance(url, URL) else make_url(url)
    if parsed.database in (None, "", ":memory:"):
        return {"poolclass": StaticPool}
    return {}


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # audit tables rely on ON DELETE SET NULL, which SQLite only honours with
    # the pragma switched on for every connection
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


database_url = make_url(DATABASE_URL)
if _is_sqlite_url(database_url):
    db_path = database_url.database
    if db_path and db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

_engine_kwargs = engine_kwargs_for_url(database_url)
_engine_kwargs.update(engine_pool_kwargs(database_url))
engine = create_engine(DATABASE_URL, **_engine_kwargs)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


class Base(DeclarativeBase):
    pass


class School(Base):
    __tablename__ = "schools"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    address: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    email: Mapped[str | None] = mapped_column(String(255))
    kepala_sekolah_id: Mapped[int | None] = mapped_column(
        ForeignKey(
            "users.id",
            ondelete="SET NULL",
            use_alter=True,
            name="fk_schools_kepala_sekolah_id",
        ),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    rooms: Mapped[list["Room"]] = relationship(
        "Room", back_populates="school", passive_deletes=True
    )
    kepala_sekolah: Mapped[Optional["User"]] = relationship(
        "User", foreign_keys=[kepala_sekolah_id]
    )


class RoomStatus(Base):
    __tablename__ = "room_statuses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class RoomType(Base):
    __tablename__ = "room_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class ItemCategory(Base):
    __tablename__ = "item_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    # login credential, assigned by the school
    no_induk: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    phone: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    role: Mapped[str] = mapped_column(String(20), default="guru")
    school_id: Mapped[int | None] = mapped_column(
        ForeignKey("schools.id", ondelete="SET NULL"), nullable=True, index=True
    )
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    school: Mapped[Optional["School"]] = relationship(
        "School", foreign_keys=[school_id]
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'kepala_sekolah', 'guru', 'staff', 'murid')",
            name="ck_users_role",
        ),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "no_induk": self.no_induk,
            "phone": self.phone,
            "role": self.role,
            "school_id": self.school_id,
        }


class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    school_id: Mapped[int] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status_id: Mapped[int] = mapped_column(
        ForeignKey("room_statuses.id"), nullable=False, default=1
    )
    type_id: Mapped[int] = mapped_column(ForeignKey("room_types.id"), nullable=False)
    responsible_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    floor: Mapped[str | None] = mapped_column(String(50))
    building: Mapped[str | None] = mapped_column(String(100))
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    school: Mapped["School"] = relationship("School", back_populates="rooms")
    items: Mapped[list["Item"]] = relationship("Item", back_populates="room")


class Item(Base):
    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    category_id: Mapped[int] = mapped_column(
        ForeignKey("item_categories.id"), nullable=False, index=True
    )
    room_id: Mapped[int] = mapped_column(
        ForeignKey("rooms.id"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    condition: Mapped[str | None] = mapped_column(String(50), default=DEFAULT_CONDITION)
    acquisition_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    room: Mapped["Room"] = relationship("Room", back_populates="items")
    category: Mapped["ItemCategory"] = relationship("ItemCategory")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category_id": self.category_id,
            "room_id": self.room_id,
            "quantity": self.quantity,
            "condition": self.condition,
            "acquisition_date": self.acquisition_date,
            "notes": self.notes,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class ItemHistory(Base):
    """Append-only audit row, one per committed item mutation."""

    __tablename__ = "item_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int | None] = mapped_column(
        ForeignKey("items.id", ondelete="SET NULL"), nullable=True, index=True
    )
    item_name: Mapped[str] = mapped_column(String(200), nullable=False)
    room_id: Mapped[int | None] = mapped_column(
        ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True, index=True
    )
    action_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    action_date: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    source_room_id: Mapped[int | None] = mapped_column(
        ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True
    )
    destination_room_id: Mapped[int | None] = mapped_column(
        ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True
    )
    source_room_name: Mapped[str | None] = mapped_column(String(150))
    destination_room_name: Mapped[str | None] = mapped_column(String(150))

    __table_args__ = (
        CheckConstraint(
            "action_type IN ('add', 'delete', 'transfer', 'update')",
            name="ck_item_history_action_type",
        ),
    )


class ItemTransfer(Base):
    __tablename__ = "item_transfers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int | None] = mapped_column(
        ForeignKey("items.id", ondelete="SET NULL"), nullable=True, index=True
    )
    destination_item_id: Mapped[int | None] = mapped_column(
        ForeignKey("items.id", ondelete="SET NULL"), nullable=True, index=True
    )
    item_name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    from_room_id: Mapped[int | None] = mapped_column(
        ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True, index=True
    )
    to_room_id: Mapped[int | None] = mapped_column(
        ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True, index=True
    )
    transferred_by_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text)
    transfer_date: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_item_transfers_quantity_positive"),
        CheckConstraint(
            "from_room_id <> to_room_id", name="ck_item_transfers_distinct_rooms"
        ),
    )
