from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db
from routers.inventory_schemas import HistoryOut, TransferCreate, TransferOut
from security import SessionUser, access_policy, current_user
from utils.access import AccessPolicy
from utils.audit import list_history, list_transfers, transfer_detail
from utils.transfers import transfer_item

router = APIRouter(prefix="/transfers", tags=["Transfers"])
history_router = APIRouter(prefix="/history", tags=["History"])


@router.get("", response_model=list[TransferOut])
def get_transfers(
    item_id: Optional[int] = None,
    room_id: Optional[int] = None,
    from_room_id: Optional[int] = None,
    to_room_id: Optional[int] = None,
    source_room_id: Optional[int] = Query(None, include_in_schema=False),
    destination_room_id: Optional[int] = Query(None, include_in_schema=False),
    user_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return list_transfers(
        db,
        item_id=item_id,
        room_id=room_id,
        from_room_id=from_room_id if from_room_id is not None else source_room_id,
        to_room_id=to_room_id if to_room_id is not None else destination_room_id,
        user_id=user_id,
    )


@router.get("/{transfer_id}", response_model=TransferOut)
def get_transfer(transfer_id: int, db: Session = Depends(get_db)):
    return transfer_detail(db, transfer_id)


@router.post("", response_model=TransferOut, status_code=status.HTTP_201_CREATED)
def create_transfer(
    payload: TransferCreate,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(current_user),
    policy: AccessPolicy = Depends(access_policy),
):
    transfer = transfer_item(
        db,
        item_id=payload.item_id,
        from_room_id=payload.from_room_id,
        to_room_id=payload.to_room_id,
        quantity=payload.quantity,
        user_id=user.id,
        notes=payload.notes,
        policy=policy,
    )
    return transfer_detail(db, transfer.id)


@history_router.get("", response_model=list[HistoryOut])
def get_history(
    room_id: Optional[int] = None,
    item_id: Optional[int] = None,
    action_type: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return list_history(db, room_id=room_id, item_id=item_id, action_type=action_type)
