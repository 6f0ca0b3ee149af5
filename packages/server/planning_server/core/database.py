"""
Database connection and session management.

Each project directory owns one isolated SQLite store under
``<project_path>/.planning/``. Sessions handed out by a store are serialized
by a per-store lock, so a read-validate-write sequence (cycle check before an
edge insert, completion gate before a status change) commits as a single
transaction with no other writer interleaved.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import structlog
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

import planning_server.models  # noqa: F401  (populates SQLModel.metadata)
from planning_server.core.config import get_settings

log = structlog.get_logger()


def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    # Foreign keys are off by default in SQLite; cascades depend on them.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


class PlanningStore:
    """Async SQLite store for a single project directory."""

    def __init__(
        self,
        project_path: str | Path,
        planning_dir: str = ".planning",
        database_name: str = "database.db",
        echo: bool = False,
    ):
        self.project_path = Path(project_path).resolve()
        self.db_path = self.project_path / planning_dir / database_name
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_async_engine(
            f"sqlite+aiosqlite:///{self.db_path}",
            echo=echo,
            poolclass=NullPool,
        )
        event.listen(self.engine.sync_engine, "connect", _set_sqlite_pragmas)

        self._session_factory = sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        # Created lazily so the lock binds to the running event loop.
        self._lock: Optional[asyncio.Lock] = None
        self._initialized = False

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def init(self) -> None:
        """Create all tables. The schema is a deployed fact; there are no migrations."""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        self._initialized = True
        log.info("store.initialized", db_path=str(self.db_path))

    async def ensure_initialized(self) -> None:
        if not self._initialized:
            await self.init()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Serialized unit of work: commit on success, roll back on any error."""
        async with self._get_lock():
            async with self._session_factory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise

    async def dispose(self) -> None:
        await self.engine.dispose()


_stores: dict[Path, PlanningStore] = {}


def get_store(project_path: str | Path | None = None) -> PlanningStore:
    """Return the store for a project directory, creating it on first use."""
    settings = get_settings()
    path = Path(project_path or settings.project_path).resolve()
    store = _stores.get(path)
    if store is None:
        store = PlanningStore(
            path,
            planning_dir=settings.planning_dir,
            database_name=settings.database_name,
            echo=settings.debug,
        )
        _stores[path] = store
    return store


async def close_stores() -> None:
    for store in _stores.values():
        await store.dispose()
    _stores.clear()
