"""
Vault API Backend: Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory and the declarative Base.
How:   `Database` owns one engine and hands out sessions that commit on
       success and roll back on error. SQLAlchemy and driver failures are
       translated into StoreUnavailable / StoreOperationFailed at this seam,
       so nothing above the store ever sees a raw SQLAlchemy exception.
Who:   Built once by AppContext at startup; used by VaultStore.

Connection Pooling:
    pool_size / max_overflow come from settings and are only applied to
    server databases. SQLite (tests, local runs) uses SQLAlchemy's default
    pool for the aiosqlite dialect, which rejects those arguments.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from vault_api.exceptions import StoreOperationFailed, StoreUnavailable

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models (shared metadata for Alembic)."""
    pass


class Database:
    """
    Owns the async engine and the session factory.

    Usage:
        async with database.session() as session:
            session.add(entry)
        # committed here; rolled back and translated on error
    """

    def __init__(
        self,
        database_url: str,
        pool_size: int = 20,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
        echo: bool = False,
    ):
        engine_options = {"pool_pre_ping": pool_pre_ping, "echo": echo}
        if not database_url.startswith("sqlite"):
            engine_options.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_recycle=3600,
            )

        self.url = database_url
        self.engine = create_async_engine(database_url, **engine_options)

        # expire_on_commit=False: rows stay readable after the session closes
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide one unit of work.

        Commits when the block exits cleanly, rolls back otherwise. Connection
        failures become StoreUnavailable; every other database failure becomes
        StoreOperationFailed. Application exceptions raised inside the block
        (NotFoundError and friends) are re-raised untouched after rollback.
        """
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except (OperationalError, InterfaceError) as e:
                await session.rollback()
                logger.error("Store connection error: %s", e)
                raise StoreUnavailable(context={"error_type": type(e).__name__}) from e
            except (DBAPIError, SQLAlchemyError) as e:
                await session.rollback()
                logger.error("Store operation error: %s", e)
                raise StoreOperationFailed(context={"error_type": type(e).__name__}) from e
            except OSError as e:
                # Raw socket errors from the driver (e.g. connection refused)
                await session.rollback()
                logger.error("Store socket error: %s", e)
                raise StoreUnavailable(context={"error_type": type(e).__name__}) from e
            except Exception:
                await session.rollback()
                raise

    async def create_schema(self) -> None:
        """Create any missing tables. Idempotent."""
        # Import registers the models on Base.metadata
        from vault_api.models import vault_entry  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        """Run SELECT 1; False when the database cannot be reached."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", e)
            return False

    async def dispose(self) -> None:
        """Close every pooled connection (called on shutdown)."""
        await self.engine.dispose()
