"""
Core module - settings, persistence, auth dependencies and service errors
shared by the portal's feature modules.
"""

from app.core.auth import CurrentUser, get_current_admin_user, get_current_user
from app.core.config import get_settings, settings
from app.core.database import Base, async_session_maker, close_db, get_db, init_db
from app.core.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ServiceError,
    ValidationError,
    to_http_exception,
)
from app.core.redis import close_redis, get_redis, init_redis

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "async_session_maker",
    "get_db",
    "init_db",
    "close_db",
    # Redis (staging buffer, rate limits)
    "get_redis",
    "init_redis",
    "close_redis",
    # Auth
    "CurrentUser",
    "get_current_user",
    "get_current_admin_user",
    # Errors
    "ServiceError",
    "ValidationError",
    "ForbiddenError",
    "NotFoundError",
    "InvalidStateError",
    "to_http_exception",
]
