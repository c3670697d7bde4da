"""
Core module - Configuration, database, object storage and errors.
"""

from school_directory.core.config import Settings, get_settings, settings
from school_directory.core.database import Base, close_db, get_db, init_db
from school_directory.core.storage import S3ObjectStore, get_object_store

__all__ = [
    # Config
    "Settings",
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Storage
    "S3ObjectStore",
    "get_object_store",
]
