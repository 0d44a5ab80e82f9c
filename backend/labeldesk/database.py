"""
LabelDesk Backend: Database Handle
====================================

What:  Async SQLAlchemy engine, session factory and lifecycle helpers,
       wrapped in one explicitly constructed LabelDatabase object.
How:   create_app() builds a LabelDatabase from settings (or receives one),
       hands it to LabelStore, and the lifespan calls connect()/dispose().
Who:   LabelStore (sessions), the lifespan (connect/dispose), /health.

Failure mapping:
    Every SQLAlchemy or OS-level error raised while a session is open is
    rolled back and re-raised as StorageUnavailableError. Callers above this
    module never see driver exceptions.

Supported URLs:
    postgresql+asyncpg://...   pooled (pool_size / max_overflow from settings)
    sqlite+aiosqlite:///...    SQLite picks its own pool class
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from labeldesk.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""


class LabelDatabase:
    """
    Owns the engine and hands out sessions with rollback-on-error.

    One instance per process, shared by every request; the engine's pool is
    the only shared resource and there are no in-process locks.
    """

    def __init__(
        self,
        database_url: str,
        pool_size: int = 10,
        max_overflow: int = 5,
        pool_pre_ping: bool = True,
        echo: bool = False,
    ):
        self.url = make_url(database_url)

        engine_kwargs: Dict[str, Any] = {"echo": echo}
        if self.url.get_backend_name() != "sqlite":
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=pool_pre_ping,
                pool_recycle=3600,
            )

        self.engine: AsyncEngine = create_async_engine(self.url, **engine_kwargs)
        # expire_on_commit=False: records stay readable after the session closes
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings) -> "LabelDatabase":
        """Build a handle from a Settings instance."""
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            echo=settings.log_level == "DEBUG",
        )

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide a session that rolls back and maps errors on failure.

        The caller commits explicitly. Anything raised inside the block is
        rolled back; SQLAlchemy and OS errors become StorageUnavailableError,
        other exceptions propagate unchanged.
        """
        session = self._session_factory()
        try:
            yield session
        except (SQLAlchemyError, OSError) as e:
            await self._safe_rollback(session)
            logger.error("Database error (%s): %s", type(e).__name__, e)
            raise StorageUnavailableError(
                context={"error_type": type(e).__name__, "detail": str(e)},
            ) from e
        except Exception:
            await self._safe_rollback(session)
            raise
        finally:
            await session.close()

    async def connect(self) -> None:
        """
        Create the schema if needed and verify the connection.

        Called once from the lifespan. Raises StorageUnavailableError when the
        server is unreachable or the schema cannot be created.
        """
        # Registers LabelRecord on Base.metadata
        from labeldesk.models import label  # noqa: F401

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            raise StorageUnavailableError(
                message="Could not connect to the label database",
                context={"error_type": type(e).__name__, "detail": str(e)},
            ) from e

        logger.info(
            "Connected to %s database at %s",
            self.dialect_name,
            self.url.render_as_string(hide_password=True),
        )

    async def health_check(self) -> bool:
        """Check database connectivity (for /health)."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Health check: database unreachable: %s", e)
            return False

    async def dispose(self) -> None:
        """Close every pooled connection. Called on shutdown."""
        await self.engine.dispose()

    @staticmethod
    async def _safe_rollback(session: AsyncSession) -> None:
        try:
            await session.rollback()
        except Exception as e:
            logger.warning("Rollback failed: %s", e)
