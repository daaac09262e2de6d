"""HTTP route registration."""

from .router import register_web_routes

__all__ = ["register_web_routes"]
