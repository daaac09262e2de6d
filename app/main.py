from __future__ import annotations

import logging
import os
import secrets
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status as st_status
from starlette.middleware.sessions import SessionMiddleware

from app.core.config import (
    DEFAULT_ADMIN_NAME,
    DEFAULT_ADMIN_NO_INDUK,
    DEFAULT_ADMIN_PHONE,
    LOG_LEVEL,
    SESSION_HTTPS_ONLY,
)
from app.db.init import init_db
from app.web import register_web_routes
from utils.errors import InventoryError

load_dotenv()

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# --- Secrets & Config ---------------------------------------------------------
SESSION_SECRET_FILE = Path(__file__).resolve().parent.parent / ".session_secret"


def _read_persisted_secret() -> str | None:
    """Return a previously generated session secret if available."""

    try:
        data = SESSION_SECRET_FILE.read_text(encoding="utf-8").strip()
    except OSError:
        return None

    if len(data) >= 32:
        return data
    return None


def _persist_secret(value: str) -> None:
    """Persist the generated secret to disk for multi-worker reuse."""

    try:
        SESSION_SECRET_FILE.write_text(value, encoding="utf-8")
        SESSION_SECRET_FILE.chmod(0o600)
    except OSError:
        logger.warning("Could not persist the session secret to %s", SESSION_SECRET_FILE)


def _load_session_secret() -> str:
    """Return a session secret, generating a persisted one if necessary."""

    secret = os.getenv("SESSION_SECRET")
    if secret and len(secret) >= 32:
        return secret

    if secret:
        logger.warning("SESSION_SECRET is shorter than 32 characters; ignoring it.")

    persisted = _read_persisted_secret()
    if persisted:
        logger.warning("SESSION_SECRET is not set; using the value in .session_secret.")
        return persisted

    logger.warning(
        "SESSION_SECRET is not set; generating one for development/test runs."
    )
    generated = secrets.token_urlsafe(32)
    _persist_secret(generated)
    return generated


SESSION_SECRET = _load_session_secret()
if not SESSION_HTTPS_ONLY:
    logger.warning(
        "Session cookies are not marked secure; set SESSION_HTTPS_ONLY=true in production."
    )

# --- App & Middleware ---------------------------------------------------------
app = FastAPI(title="School Inventory")


@app.exception_handler(InventoryError)
async def inventory_error_handler(request: Request, exc: InventoryError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"
    return JSONResponse(
        status_code=st_status.HTTP_400_BAD_REQUEST,
        content={"message": message, "code": "validation_error"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=st_status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error", "code": "internal_error"},
    )


app.add_middleware(
    SessionMiddleware,
    secret_key=SESSION_SECRET,
    max_age=60 * 60 * 8,
    same_site="lax",
    https_only=SESSION_HTTPS_ONLY,
)
app.state.session_https_only = SESSION_HTTPS_ONLY

register_web_routes(app)


def ensure_default_admin(db) -> bool:
    """Create the default admin when the database has no admin yet."""

    from models import User

    if db.query(User).filter(User.role == "admin").first():
        return False
    clash = (
        db.query(User)
        .filter(
            (User.no_induk == DEFAULT_ADMIN_NO_INDUK)
            | (User.phone == DEFAULT_ADMIN_PHONE)
        )
        .first()
    )
    if clash:
        logger.warning(
            "No admin exists but the default admin credentials are taken by user %s",
            clash.id,
        )
        return False
    db.add(
        User(
            name=DEFAULT_ADMIN_NAME,
            no_induk=DEFAULT_ADMIN_NO_INDUK,
            phone=DEFAULT_ADMIN_PHONE,
            role="admin",
        )
    )
    db.commit()
    logger.info("Default admin created (phone %s)", DEFAULT_ADMIN_PHONE)
    return True


# --- Startup: DB init & default admin ----------------------------------------
@app.on_event("startup")
def on_startup():
    from models import SessionLocal

    init_db()
    db = SessionLocal()
    try:
        ensure_default_admin(db)
    finally:
        db.close()
