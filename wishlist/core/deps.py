"""Dependency injection for FastAPI routes."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

# Re-export auth dependencies for convenience
from wishlist.core.auth import (
    Caller,
    CurrentCaller,
    CurrentUser,
    get_current_user,
    require_authenticated_caller,
)
from wishlist.core.config import Settings, get_settings
from wishlist.core.database import Database, get_async_session, get_database

# Database session dependency
DBSession = Annotated[AsyncSession, Depends(get_async_session)]

# Database handle (for handlers that manage their own sessions)
AppDatabase = Annotated[Database, Depends(get_database)]

# Settings dependency (overridable in tests)
AppSettings = Annotated[Settings, Depends(get_settings)]


__all__ = [
    "AppDatabase",
    "AppSettings",
    "Caller",
    "CurrentCaller",
    "CurrentUser",
    "DBSession",
    "get_async_session",
    "get_current_user",
    "get_database",
    "get_settings",
    "require_authenticated_caller",
]
