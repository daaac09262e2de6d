from datetime import date, datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field


class ItemPayload(BaseModel):
    # required-ness is checked by the item operations so missing fields
    # come back as a validation_error with a readable message
    name: Optional[str] = None
    category_id: Optional[int] = None
    room_id: Optional[int] = None
    quantity: Any = None
    condition: Optional[str] = None
    acquisition_date: Optional[date] = None
    notes: Optional[str] = None


class ItemOut(BaseModel):
    id: int
    name: str
    category_id: int
    category_name: Optional[str] = None
    room_id: int
    room_name: Optional[str] = None
    school_id: Optional[int] = None
    school_name: Optional[str] = None
    quantity: int
    condition: Optional[str] = None
    acquisition_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TransferCreate(BaseModel):
    item_id: Optional[int] = None
    from_room_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("from_room_id", "source_room_id")
    )
    to_room_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("to_room_id", "destination_room_id"),
    )
    quantity: Optional[int] = None
    notes: Optional[str] = None


class TransferOut(BaseModel):
    id: int
    item_id: Optional[int] = None
    destination_item_id: Optional[int] = None
    item_name: str
    quantity: int
    from_room_id: Optional[int] = None
    to_room_id: Optional[int] = None
    from_room_name: Optional[str] = None
    to_room_name: Optional[str] = None
    from_school_name: Optional[str] = None
    to_school_name: Optional[str] = None
    school_name: Optional[str] = None
    transferred_by_user_id: Optional[int] = None
    transferred_by_name: Optional[str] = None
    notes: Optional[str] = None
    transfer_date: datetime


class HistoryOut(BaseModel):
    id: int
    item_id: Optional[int] = None
    item_name: str
    room_id: Optional[int] = None
    room_name: Optional[str] = None
    action_type: str
    quantity: int
    notes: Optional[str] = None
    action_date: datetime
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    source_room_id: Optional[int] = None
    destination_room_id: Optional[int] = None
    source_room_name: Optional[str] = None
    destination_room_name: Optional[str] = None
    source_school_id: Optional[int] = None
    source_school_name: Optional[str] = None
    destination_school_id: Optional[int] = None
    destination_school_name: Optional[str] = None
