# routers/refdata.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models import ItemCategory, RoomStatus, RoomType

router = APIRouter(prefix="/reference", tags=["refdata"])


@router.get("/categories")
def categories(db: Session = Depends(get_db)):
    rows = db.query(ItemCategory).order_by(ItemCategory.id.asc()).all()
    return [{"id": r.id, "name": r.name, "description": r.description} for r in rows]


@router.get("/room-statuses")
def room_statuses(db: Session = Depends(get_db)):
    rows = db.query(RoomStatus).order_by(RoomStatus.id.asc()).all()
    return [{"id": r.id, "name": r.name} for r in rows]


@router.get("/room-types")
def room_types(db: Session = Depends(get_db)):
    rows = db.query(RoomType).order_by(RoomType.id.asc()).all()
    return [{"id": r.id, "name": r.name} for r in rows]
