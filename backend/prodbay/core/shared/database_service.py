# backend/prodbay/core/shared/database_service.py
"""
Database service for async SQLAlchemy session management.

Owns the engine and session factory for the persistent store. One instance
is created at application startup and injected into every domain service,
so tests can substitute their own instance pointing at a scratch database.

Usage:
    from prodbay.core.shared.database_service import DatabaseService

    database = DatabaseService("sqlite+aiosqlite:///./prodbay.db")
    await database.init_db()

    # One session == one transaction
    async with database.get_session() as session:
        result = await session.execute(select(Project).where(Project.id == project_id))
        project = result.scalar_one_or_none()

    health = await database.health_check()

Supported Backends:
    - PostgreSQL via asyncpg (connection pooling, configured from settings)
    - SQLite via aiosqlite (NullPool; used for local development and tests)

A missing or unusable DATABASE_URL does not crash startup. The service is
left without a session factory and every operation raises
StoreUnavailableError until the configuration is fixed.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from prodbay.config import settings
from prodbay.core.errors import StoreUnavailableError
from prodbay.database.base import Base


class DatabaseService:
    """
    Database service for managing async SQLAlchemy sessions.

    Attributes:
        _engine: Async SQLAlchemy engine (None when initialization failed)
        _session_factory: Async session factory (None when initialization failed)
        _init_error: Why initialization failed, surfaced by health_check()

    Methods:
        get_session(): Get async database session (context manager)
        init_db(): Create all tables
        health_check(): Check database connectivity
        close(): Dispose engine and connections
    """

    def __init__(self, database_url: Optional[str] = None):
        self._logger = logging.getLogger("prodbay.database")
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None
        self._init_error: Optional[str] = None
        self._database_url = database_url if database_url is not None else settings.database_url
        self._initialize_engine()

    @property
    def is_initialized(self) -> bool:
        return self._session_factory is not None

    @property
    def dialect(self) -> str:
        return self._engine.dialect.name if self._engine else "unconfigured"

    def _initialize_engine(self) -> None:
        """
        Create the async engine for the configured URL.

        Failures are logged and recorded instead of raised.
        """
        database_url = self._database_url
        if not database_url:
            self._init_error = "DATABASE_URL is not configured"
            self._logger.error("DATABASE_URL is not configured; store operations will fail")
            return

        # Log connection info (hide password)
        safe_url = database_url.split("@")[-1] if "@" in database_url else database_url

        try:
            if database_url.startswith("sqlite"):
                self._engine = create_async_engine(
                    database_url,
                    poolclass=NullPool,
                    echo=settings.debug,
                )
                self._logger.info(f"Initializing SQLite database: {safe_url}")
            elif database_url.startswith("postgresql"):
                self._engine = create_async_engine(
                    database_url,
                    pool_size=settings.db_pool_size,
                    max_overflow=settings.db_max_overflow,
                    pool_pre_ping=True,
                    pool_recycle=settings.db_pool_recycle,
                    echo=settings.debug,
                )
                self._logger.info(
                    f"Initializing PostgreSQL database: {safe_url} "
                    f"(pool size={settings.db_pool_size}, max_overflow={settings.db_max_overflow})"
                )
            else:
                raise ValueError(
                    f"Unsupported database URL scheme: {database_url.split(':')[0]}. "
                    "Use postgresql+asyncpg:// or sqlite+aiosqlite://"
                )
        except Exception as e:
            self._engine = None
            self._init_error = str(e)
            self._logger.error(f"Failed to initialize database engine: {e}")
            return

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get async database session as context manager.

        Commits on success and rolls back on error, so everything done inside
        one ``async with`` block is a single transaction.

        Raises:
            StoreUnavailableError: If the database is not initialized
        """
        if not self._session_factory:
            raise StoreUnavailableError(
                f"Database not initialized: {self._init_error or 'unknown error'}"
            )

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def init_db(self) -> None:
        """Create all tables defined on the declarative base if they don't exist."""
        if not self._engine:
            raise StoreUnavailableError(
                f"Database engine not initialized: {self._init_error or 'unknown error'}"
            )

        self._logger.info("Creating database tables...")

        async with self._engine.begin() as conn:
            # Import all models to ensure they're registered with Base
            from prodbay.database import models  # noqa: F401

            await conn.run_sync(Base.metadata.create_all)

        self._logger.info("Database tables created successfully")

    async def health_check(self) -> Dict[str, Any]:
        """
        Check database connectivity.

        Returns:
            {"status": "healthy" | "unhealthy", "connected": bool,
             "database_type": str, "tables": {...}, "error": str}
        """
        if not self._session_factory:
            return {
                "status": "unhealthy",
                "connected": False,
                "database_type": self.dialect,
                "error": self._init_error,
            }

        from prodbay.database.models import Asset, Project, Quote, Supplier

        try:
            async with self.get_session() as session:
                await session.execute(text("SELECT 1"))

                tables = {}
                for model in (Project, Asset, Supplier, Quote):
                    result = await session.execute(select(func.count()).select_from(model))
                    tables[model.__tablename__] = result.scalar() or 0

            return {
                "status": "healthy",
                "connected": True,
                "database_type": self.dialect,
                "tables": tables,
            }

        except Exception as e:
            self._logger.error(f"Database health check failed: {str(e)}")
            return {
                "status": "unhealthy",
                "connected": False,
                "database_type": self.dialect,
                "error": str(e),
            }

    async def close(self) -> None:
        """Close database engine and all connections."""
        if self._engine:
            await self._engine.dispose()
            self._logger.info("Database connections closed")

    def __repr__(self) -> str:
        return f"<DatabaseService(type={self.dialect}, initialized={self.is_initialized})>"
