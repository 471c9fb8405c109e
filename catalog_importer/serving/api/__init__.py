"""
API Module
"""
from .middleware import RequestLoggingMiddleware
from .routes.migration import MigrationState, MigrationTrigger

__all__ = [
    "RequestLoggingMiddleware",
    "MigrationState",
    "MigrationTrigger",
]
