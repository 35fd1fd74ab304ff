"""
Core module for configuration, database setup and error types
"""
from .config import settings
from .database import get_db, create_tables, test_connection, Base
from .errors import MinhashError, NotFoundError, ConfigurationError, StoreError, ComputationError

__all__ = [
    "settings",
    "get_db",
    "create_tables",
    "test_connection",
    "Base",
    "MinhashError",
    "NotFoundError",
    "ConfigurationError",
    "StoreError",
    "ComputationError",
]
