"""Environment driven settings."""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

_TRUTHY = ("1", "true", "t", "yes", "on")


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean environment variable the way the rest of the app does."""

    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def allow_cross_school_transfers() -> bool:
    # read on every call so tests and operators can flip it without a restart
    return env_flag("ALLOW_CROSS_SCHOOL_TRANSFERS", False)


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SESSION_HTTPS_ONLY = env_flag("SESSION_HTTPS_ONLY", False)

DEFAULT_ADMIN_NAME = os.getenv("DEFAULT_ADMIN_NAME", "Administrator")
DEFAULT_ADMIN_NO_INDUK = os.getenv("DEFAULT_ADMIN_NO_INDUK", "admin")
DEFAULT_ADMIN_PHONE = os.getenv("DEFAULT_ADMIN_PHONE", "0000")
