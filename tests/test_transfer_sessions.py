from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models
import utils.transfers
from app.db.init import seed_reference_data
from utils.errors import InsufficientQuantityError, InventoryError
from utils.transfers import transfer_item


def _setup_engine():
    database_url = "sqlite://"
    engine = create_engine(
        database_url,
        poolclass=StaticPool,
        **models.engine_kwargs_for_url(database_url),
    )
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    models.Base.metadata.create_all(engine)
    return engine, TestingSession


def _seed_chairs(SessionLocal, quantity=5):
    with SessionLocal() as db:
        seed_reference_data(db)
        school = models.School(name="SD Harapan")
        db.add(school)
        db.flush()
        room_a = models.Room(name="Room A", school_id=school.id, type_id=1)
        room_b = models.Room(name="Room B", school_id=school.id, type_id=1)
        db.add_all([room_a, room_b])
        db.flush()
        chair = models.Item(
            name="Chair", category_id=1, room_id=room_a.id, quantity=quantity
        )
        db.add(chair)
        db.commit()
        return chair.id, room_a.id, room_b.id


def test_second_session_sees_the_first_transfer():
    engine, SessionLocal = _setup_engine()
    ids = _seed_chairs(SessionLocal)

    def worker():
        session = SessionLocal()
        try:
            transfer_item(
                session,
                item_id=ids[0],
                from_room_id=ids[1],
                to_room_id=ids[2],
                quantity=3,
            )
            return True
        except InventoryError:
            return False
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=2) as exc:
        result1 = exc.submit(worker).result()
        # the second request starts only after the first one committed
        result2 = exc.submit(worker).result()

    assert [result1, result2] == [True, False]

    with SessionLocal() as db:
        assert db.get(models.Item, ids[0]).quantity == 2
        assert db.query(models.ItemTransfer).count() == 1
        assert db.query(models.ItemHistory).count() == 1
        in_b = db.query(models.Item).filter_by(room_id=ids[2]).one()
        assert in_b.quantity == 3

    engine.dispose()


def test_quantity_rechecked_inside_transaction(monkeypatch):
    engine, SessionLocal = _setup_engine()
    item_id, room_a, room_b = _seed_chairs(SessionLocal)

    real_atomic = utils.transfers.atomic
    raced = []

    def atomic_after_competing_transfer(db, operation):
        # another session commits between the checks and the transaction
        if not raced:
            raced.append(True)
            with SessionLocal() as other:
                transfer_item(
                    other,
                    item_id=item_id,
                    from_room_id=room_a,
                    to_room_id=room_b,
                    quantity=3,
                )
        return real_atomic(db, operation)

    monkeypatch.setattr(utils.transfers, "atomic", atomic_after_competing_transfer)

    session = SessionLocal()
    try:
        with pytest.raises(InsufficientQuantityError) as excinfo:
            transfer_item(
                session,
                item_id=item_id,
                from_room_id=room_a,
                to_room_id=room_b,
                quantity=3,
            )
    finally:
        session.close()

    assert raced == [True]
    assert excinfo.value.available == 2

    with SessionLocal() as db:
        assert db.get(models.Item, item_id).quantity == 2
        assert db.query(models.ItemTransfer).count() == 1
        assert db.query(models.ItemHistory).count() == 1

    engine.dispose()
