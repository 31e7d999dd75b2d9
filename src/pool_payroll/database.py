"""Database connection and session management."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pool_payroll.config import get_settings
from pool_payroll.errors import DataAccessError

if TYPE_CHECKING:
    from sqlalchemy import Executable, Result
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_engine() -> AsyncEngine:
    """Create async database engine."""
    settings = get_settings()
    if settings.database_url.startswith("sqlite"):
        return create_async_engine(settings.database_url, echo=False)
    return create_async_engine(
        settings.database_url,
        echo=False,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


# Global engine and session factory
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_db() -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Initialize database engine and session factory."""
    global _engine, _session_factory
    if _engine is None:
        _engine = get_engine()
        _session_factory = async_sessionmaker(
            _engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _engine, _session_factory


async def dispose_db() -> None:
    """Dispose the global engine, if one was created."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def _guarded(operation: Awaitable[T], timeout: float | None, what: str) -> T:
    """Await a persistence operation with a timeout, mapping failures."""
    if timeout is None:
        timeout = get_settings().query_timeout_seconds
    try:
        return await asyncio.wait_for(operation, timeout)
    except asyncio.TimeoutError as e:
        logger.warning("Database %s timed out after %ss", what, timeout)
        raise DataAccessError(f"Database {what} timed out") from e
    except (OperationalError, InterfaceError, OSError) as e:
        logger.warning("Database %s failed: %s", what, e)
        raise DataAccessError(f"Database {what} failed") from e


async def run_query(
    session: AsyncSession,
    statement: Executable,
    params: dict[str, Any] | None = None,
    *,
    timeout: float | None = None,
) -> Result[Any]:
    """Execute a statement with the operation-level timeout applied."""
    return await _guarded(session.execute(statement, params), timeout, "query")


async def flush(session: AsyncSession, *, timeout: float | None = None) -> None:
    """Flush pending writes with the operation-level timeout applied."""
    await _guarded(session.flush(), timeout, "flush")


async def commit(session: AsyncSession, *, timeout: float | None = None) -> None:
    """Commit the session's transaction with the operation-level timeout applied."""
    await _guarded(session.commit(), timeout, "commit")
