"""Database connection handling."""
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
import logging

class Base(DeclarativeBase):
    """Base class for all database models."""
    pass

def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

class Database:
    """Database connection and session management."""

    def __init__(self, database_url: str):
        """Initialize database connection.

        Args:
            database_url (str): Database connection URL
        """
        self.engine = create_async_engine(database_url)
        if self.engine.dialect.name == "sqlite":
            # cascade deletes of order entries and picks rely on this
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )
        self.logger = logging.getLogger(__name__)

    @property
    def session(self):
        """Get a session factory for creating new database sessions."""
        return self.async_session

    async def create_all(self):
        """Create all database tables."""
        try:
            # Import all models to ensure they're registered with Base
            from . import models  # noqa: F401

            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            self.logger.info("Database tables created successfully")
        except Exception as e:
            self.logger.error(f"Error creating database tables: {e}")
            raise

    async def ping(self) -> bool:
        """Round-trip a trivial query; False if the database is unreachable."""
        try:
            async with self.async_session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            self.logger.error(f"Database health check failed: {e}")
            return False

    async def close(self):
        """Close database connection."""
        await self.engine.dispose()
