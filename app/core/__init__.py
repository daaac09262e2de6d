"""Configuration and password helpers shared by the service."""

from .security import hash_password, verify_password

__all__ = ["hash_password", "verify_password"]
