import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from auth import authenticate_user, get_user_by_id
from database import get_db
from routers.facility_schemas import LoginPayload
from security import SessionUser, current_user
from utils.errors import AuthenticationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login")
def login(payload: LoginPayload, request: Request, db: Session = Depends(get_db)):
    user = authenticate_user(db, payload.phone, payload.password)
    if user is None:
        logger.info("failed login for phone %s", payload.phone)
        raise AuthenticationError()

    request.session.clear()
    request.session["user_id"] = user.id
    request.session["user_name"] = user.name
    request.session["user_role"] = user.role
    logger.info("user %s logged in", user.id)
    return {"user": user.to_dict()}


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"message": "Logged out"}


@router.get("/me")
def me(user: SessionUser = Depends(current_user), db: Session = Depends(get_db)):
    u = get_user_by_id(db, user.id)
    return {"user": u.to_dict()}
