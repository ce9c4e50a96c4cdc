"""
Twinshot Backend — Database Session Management
================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   `Database` bundles one engine and one session factory. `create_app()`
       builds a single instance at startup and stores it on `app.state`;
       the `get_db_session` dependency pulls it from there for each request.
       Nothing in this module holds a process-wide connection.
Who:   Used by route handlers via FastAPI's dependency injection system,
       by the health check, and by tests that point it at a scratch SQLite file.

Session lifecycle:
    1. Session opened from the factory at the start of the request
    2. Route handler and services run queries through it
    3. Commit on success, rollback on any exception
    4. Session closed, connection returned to the pool
"""

import logging
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers with this metadata, which Alembic and
    `Database.create_all()` both read.
    """
    pass


class Database:
    """
    Storage handle: one async engine plus its session factory.

    Acquired once per application (see `app.main.create_app`) and passed to
    request handlers through `get_db_session`.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.settings = config or default_settings
        self.engine: AsyncEngine = create_async_engine(
            self.settings.database_url,
            echo=self.settings.log_level == "DEBUG",
            **self._engine_options(),
        )
        # expire_on_commit=False: ORM objects stay readable after the
        # dependency commits, while the response is being serialized.
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    def _engine_options(self) -> dict:
        """Pool options for server databases; SQLite keeps dialect defaults."""
        if self.settings.is_sqlite:
            return {}
        return {
            "pool_size": self.settings.db_pool_size,
            "max_overflow": self.settings.db_max_overflow,
            "pool_pre_ping": self.settings.db_pool_pre_ping,
            "pool_recycle": 3600,
        }

    async def create_all(self) -> None:
        """
        Create every table known to `Base.metadata` that does not exist yet.

        Used at startup when `auto_create_schema` is enabled, and by tests.
        Production schema changes go through Alembic.
        """
        import app.models  # noqa: F401  (registers all models on Base)

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured")

    async def ping(self) -> bool:
        """Runs SELECT 1; returns False instead of raising when unreachable."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def dispose(self) -> None:
        """Gracefully closes all pooled connections (application shutdown)."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Looks up the application's `Database` on `request.app.state`
        2. Opens a session and yields it to the route handler
        3. Commits on success, rolls back on any error (and re-raises)
        4. Always closes the session

    Example usage in a route:
        @router.get("/posts/my")
        async def my_posts(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
