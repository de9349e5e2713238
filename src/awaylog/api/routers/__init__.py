"""API routers."""

from . import admin, entries, health

__all__ = ["admin", "entries", "health"]
