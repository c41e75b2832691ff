# eduops/core/database.py
"""Database connection and session management using SQLAlchemy."""
from typing import AsyncGenerator, Optional
import logging

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from .config import Settings

logger = logging.getLogger(__name__)

# Execution option set by atomic(); on SQLite it turns BEGIN into BEGIN IMMEDIATE
WRITE_LOCK_OPTION = "eduops_write_lock"


class Database:
    """Owns the engine and session factory for one process.

    Built from settings, opened at startup and disposed at shutdown.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    def open(self) -> "Database":
        if self.engine is not None:
            return self

        if self.settings.is_sqlite:
            self.engine = create_async_engine(
                self.settings.database_url,
                poolclass=NullPool,
                # Busy timeout is the bounded wait for the database write lock
                connect_args={"timeout": self.settings.lock_timeout_ms / 1000},
                echo=False,
            )
            _install_sqlite_locking(self.engine)
        else:
            self.engine = create_async_engine(
                self.settings.database_url,
                pool_size=self.settings.pool_size,
                max_overflow=self.settings.max_overflow,
                pool_timeout=self.settings.pool_timeout,
                pool_recycle=self.settings.pool_recycle,
                pool_pre_ping=True,
                echo=(self.settings.environment == 'development'),
                connect_args={
                    "command_timeout": 60,
                    "server_settings": {
                        "application_name": self.settings.app_name,
                        "idle_in_transaction_session_timeout": "60s",
                        "lock_timeout": f"{self.settings.lock_timeout_ms}ms",
                    }
                }
            )

        self.session_factory = async_sessionmaker(
            self.engine,
            expire_on_commit=False,
            class_=AsyncSession,
            autoflush=False,  # Manual control over flushing
        )
        logger.info(f"Database engine created ({self.engine.dialect.name})")
        return self

    def session(self) -> AsyncSession:
        if self.session_factory is None:
            raise RuntimeError("Database has not been opened")
        return self.session_factory()

    async def create_all(self) -> None:
        """Create tables directly; used for SQLite development and tests"""
        from ..models.base import Base
        from .. import models  # noqa: F401  register mappers

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
            logger.info("Database connections closed")


def _install_sqlite_locking(engine: AsyncEngine) -> None:
    """Take the write lock when a write transaction begins.

    SQLite has no row locks; BEGIN IMMEDIATE serializes writers so the
    read-validate-write sequences behave like they do under SELECT ... FOR UPDATE.
    Only connections opened by atomic() carry the write-lock option. Other
    sessions use a deferred BEGIN and, under WAL, never block writers.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Disable the driver's own BEGIN handling
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        if conn.get_execution_options().get(WRITE_LOCK_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session for API requests with proper error handling"""
    database: Database = request.app.state.db
    async with database.session() as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Database session error: {e}")
            await session.rollback()
            raise
