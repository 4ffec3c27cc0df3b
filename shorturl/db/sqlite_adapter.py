"""
SQLite Database Adapter

This module implements the DatabaseAdapter interface for SQLite.
All SQLite-specific configuration and behavior is encapsulated here.

Key characteristics:
- File-based (single .db file)
- No server required
- Single writer at a time (file locking), which also serializes the
  id-assignment transactions of separate processes sharing one file
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from shorturl.core.setting import settings
from shorturl.db.interface import DatabaseAdapter

ASYNC_DRIVER_PREFIX = "sqlite+aiosqlite://"
SYNC_DRIVER_PREFIX = "sqlite://"


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.

    This adapter handles all SQLite-specific configuration and operations.
    """

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create SQLite async engine with appropriate configuration.

        SQLite-specific configuration:
        - NullPool: Single connection (file-based, no pooling needed)
        - check_same_thread=False: Required for async SQLite operations
        - timeout: How long a writer waits for the file lock

        Args:
            database_url: SQLite connection string (sqlite+aiosqlite:///...)
            **kwargs: Additional engine options (merged with SQLite defaults)

        Returns:
            Configured AsyncEngine for SQLite
        """
        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)

        return create_async_engine(
            database_url,
            poolclass=self.get_pool_class(),
            connect_args=self.get_connect_args(),
            **engine_kwargs
        )

    def get_pool_class(self) -> type[NullPool]:
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        return {
            "check_same_thread": False,
            "timeout": 30,
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": settings.SQL_ECHO
        }

    def get_sync_database_url(self, database_url: str) -> str:
        """
        Convert an aiosqlite URL to the stdlib sqlite3 driver.

        Handles both path forms:
        - sqlite+aiosqlite:///absolute/or/./relative -> sqlite:///...
        - sqlite+aiosqlite://./relative -> sqlite:///./relative
        """
        if database_url.startswith(ASYNC_DRIVER_PREFIX + "/"):
            return database_url.replace(ASYNC_DRIVER_PREFIX, SYNC_DRIVER_PREFIX, 1)
        if database_url.startswith(ASYNC_DRIVER_PREFIX):
            return database_url.replace(ASYNC_DRIVER_PREFIX, SYNC_DRIVER_PREFIX + "/", 1)
        return database_url

    def get_dialect_name(self) -> str:
        return "sqlite"


def get_database_adapter() -> DatabaseAdapter:
    """
    Factory function to get the database adapter.

    Returns SQLiteAdapter by default. To switch to PostgreSQL, create a
    PostgreSQLAdapter class and update this function.
    """
    return SQLiteAdapter()
