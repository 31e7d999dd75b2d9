"""Pytest fixtures for pool payroll tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pool_payroll.api.app import create_app
from pool_payroll.api.dependencies import get_db_session
from pool_payroll.models import Base, Employee, PayPeriod, TimeEntry

# In-memory SQLite shared by every connection of one test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    """Create a fresh test database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests use the test database."""
    app = create_app()

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ============================================================================
# Factories
# ============================================================================

MakeEmployee = Callable[..., Awaitable[Employee]]
MakeTimeEntry = Callable[..., Awaitable[TimeEntry]]
MakePayPeriod = Callable[..., Awaitable[PayPeriod]]


@pytest.fixture
def make_employee(session: AsyncSession) -> MakeEmployee:
    """Factory for employees; defaults to an active hourly employee at $20."""
    counter = {"n": 0}

    async def _make(**overrides: Any) -> Employee:
        counter["n"] += 1
        fields: dict[str, Any] = {
            "first_name": "Test",
            "last_name": f"Employee{counter['n']:02d}",
            "email": f"employee{counter['n']}@example.com",
            "pay_types": ["hourly"],
            "hourly_rate": Decimal("20"),
            "default_overtime_multiplier": Decimal("1.5"),
            "status": "active",
        }
        fields.update(overrides)
        employee = Employee(**fields)
        session.add(employee)
        await session.flush()
        return employee

    return _make


@pytest.fixture
def make_time_entry(session: AsyncSession) -> MakeTimeEntry:
    """Factory for time entries; approved regular entries by default."""

    async def _make(employee_id: UUID, work_date: date, **overrides: Any) -> TimeEntry:
        fields: dict[str, Any] = {
            "employee_id": employee_id,
            "work_date": work_date,
            "hours_worked": Decimal("8"),
            "overtime_hours": Decimal("0"),
            "entry_type": "regular",
            "approved": True,
            "jobs": [],
        }
        fields.update(overrides)
        entry = TimeEntry(**fields)
        session.add(entry)
        await session.flush()
        return entry

    return _make


@pytest.fixture
def make_pay_period(session: AsyncSession) -> MakePayPeriod:
    """Factory for pay periods; open by default."""

    async def _make(
        start_date: date, end_date: date, status: str = "open", name: str | None = None
    ) -> PayPeriod:
        pay_period = PayPeriod(
            name=name or f"{start_date.isoformat()} - {end_date.isoformat()}",
            start_date=start_date,
            end_date=end_date,
            status=status,
        )
        session.add(pay_period)
        await session.flush()
        return pay_period

    return _make
