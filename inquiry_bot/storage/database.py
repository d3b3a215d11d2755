"""Database engine and session lifecycle."""

import logging
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE clauses unless this pragma is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the async engine and hands out sessions."""

    def __init__(self, database_url: str, echo: bool = False):
        """Initialize the database.

        Args:
            database_url: SQLAlchemy async URL, e.g. ``sqlite+aiosqlite:///./data/inquiries.db``
            echo: Log emitted SQL
        """
        self.url = make_url(database_url)
        self._prepare_sqlite_path()

        self.engine: AsyncEngine = create_async_engine(database_url, echo=echo)
        if self.url.get_backend_name() == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.session_maker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    def _prepare_sqlite_path(self) -> None:
        """Create the parent directory of a file-backed SQLite database."""
        if self.url.get_backend_name() != "sqlite":
            return
        database = self.url.database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)

    async def create_all(self) -> None:
        """Create tables that do not exist yet."""
        # Import models so they register on the metadata
        from inquiry_bot.storage import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Database schema ready ({self.url.get_backend_name()})")

    def session(self) -> AsyncSession:
        """Open a new session; use as an async context manager."""
        return self.session_maker()

    async def dispose(self) -> None:
        """Close pooled connections."""
        await self.engine.dispose()
        logger.info("Database connections closed")
