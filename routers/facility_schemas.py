from typing import Optional

from pydantic import BaseModel


class RoomPayload(BaseModel):
    name: Optional[str] = None
    school_id: Optional[int] = None
    status_id: Optional[int] = None
    type_id: Optional[int] = None
    responsible_user_id: Optional[int] = None
    floor: Optional[str] = None
    building: Optional[str] = None
    notes: Optional[str] = None


class SchoolPayload(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    kepala_sekolah_id: Optional[int] = None


class UserPayload(BaseModel):
    name: Optional[str] = None
    no_induk: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    school_id: Optional[int] = None


class LoginPayload(BaseModel):
    phone: str
    password: str
