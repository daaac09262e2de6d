import os
import sys
from pathlib import Path
from types import SimpleNamespace

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault("SESSION_SECRET", "test-session-secret-0123456789abcdef")
os.environ.pop("ALLOW_CROSS_SCHOOL_TRANSFERS", None)

import pytest

import models
from app.db.init import seed_reference_data
from security import SessionUser
from utils.access import AccessPolicy

FURNITURE = 1
BOOKS = 3
OTHER = 10


class DummyRequest:
    def __init__(self) -> None:
        state = SimpleNamespace(session_https_only=False)
        self.app = SimpleNamespace(state=state)
        self.session: dict[str, object] = {}
        self.cookies: dict[str, str] = {}
        self.headers: dict[str, str] = {}


@pytest.fixture()
def db_session():
    models.Base.metadata.create_all(models.engine)
    db = models.SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        models.Base.metadata.drop_all(models.engine)


@pytest.fixture()
def dummy_request() -> DummyRequest:
    return DummyRequest()


def session_user(user: models.User) -> SessionUser:
    return SessionUser(user.id, user.name, user.role, user.school_id, user.phone)


@pytest.fixture()
def campus(db_session):
    """Two schools; school A has rooms A and B, school B has room C."""

    db = db_session
    seed_reference_data(db)

    school_a = models.School(name="SD Harapan")
    school_b = models.School(name="SMP Cendekia")
    db.add_all([school_a, school_b])
    db.flush()

    admin = models.User(name="Admin", no_induk="A-001", phone="0800001", role="admin")
    kepala = models.User(
        name="Kepala Harapan",
        no_induk="K-001",
        phone="0800002",
        role="kepala_sekolah",
        school_id=school_a.id,
    )
    guru = models.User(
        name="Guru Cendekia",
        no_induk="G-001",
        phone="0800003",
        role="guru",
        school_id=school_b.id,
    )
    db.add_all([admin, kepala, guru])
    db.flush()

    room_a = models.Room(name="Room A", school_id=school_a.id, type_id=1, status_id=1)
    room_b = models.Room(name="Room B", school_id=school_a.id, type_id=6, status_id=1)
    room_c = models.Room(name="Room C", school_id=school_b.id, type_id=1, status_id=1)
    db.add_all([room_a, room_b, room_c])
    db.commit()

    return SimpleNamespace(
        school_a=school_a.id,
        school_b=school_b.id,
        room_a=room_a.id,
        room_b=room_b.id,
        room_c=room_c.id,
        admin=session_user(admin),
        kepala=session_user(kepala),
        guru=session_user(guru),
    )


@pytest.fixture()
def policy_for(db_session):
    def build(user):
        return AccessPolicy(db_session, user)

    return build


@pytest.fixture()
def make_item(db_session):
    """Insert an item directly, without going through the item operations."""

    def build(room_id, name="Chair", quantity=10, category_id=FURNITURE, **extra):
        item = models.Item(
            name=name,
            category_id=category_id,
            room_id=room_id,
            quantity=quantity,
            **extra,
        )
        db_session.add(item)
        db_session.commit()
        return item

    return build
