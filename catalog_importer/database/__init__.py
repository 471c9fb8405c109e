"""
Database Module
"""
from .connection import (
    create_engine_from_settings,
    create_session_factory,
    create_schema,
    session_scope,
    check_database_health,
)
from .models import Base

__all__ = [
    "create_engine_from_settings",
    "create_session_factory",
    "create_schema",
    "session_scope",
    "check_database_health",
    "Base",
]
