from __future__ import annotations

from fastapi import APIRouter, Depends, FastAPI

from routers import items, login, refdata, rooms, schools, transfers, users
from security import current_user

router = APIRouter()


@router.get("/", include_in_schema=False)
def root():
    return {"service": "school-inventory", "status": "ok"}


router.include_router(login.router)
router.include_router(
    items.router, dependencies=[Depends(current_user)]
)
router.include_router(
    transfers.router, dependencies=[Depends(current_user)]
)
router.include_router(
    transfers.history_router, dependencies=[Depends(current_user)]
)
router.include_router(
    rooms.router, dependencies=[Depends(current_user)]
)
router.include_router(
    schools.router, dependencies=[Depends(current_user)]
)
router.include_router(
    refdata.router, dependencies=[Depends(current_user)]
)
router.include_router(
    users.router, dependencies=[Depends(current_user)]
)


def register_web_routes(app: FastAPI) -> None:
    """Attach every API router to the FastAPI application."""

    app.include_router(router)
