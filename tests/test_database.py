"""Tests for the guarded persistence helpers."""

import asyncio

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from pool_payroll.database import commit, flush, run_query
from pool_payroll.errors import DataAccessError
from pool_payroll.models import Employee

pytestmark = pytest.mark.asyncio


class TestGuardedOperations:
    """Timeouts and connection failures surface as DataAccessError."""

    async def test_query_runs(self, session):
        result = await run_query(session, select(Employee))
        assert result.scalars().all() == []

    async def test_commit_failure_is_mapped(self, session, monkeypatch):
        async def lost_connection():
            raise OperationalError("COMMIT", None, Exception("connection reset"))

        monkeypatch.setattr(session, "commit", lost_connection)
        with pytest.raises(DataAccessError) as exc_info:
            await commit(session, timeout=1)
        assert exc_info.value.code == "DATA_ACCESS_ERROR"
        assert isinstance(exc_info.value.__cause__, OperationalError)

    async def test_flush_timeout_is_mapped(self, session, monkeypatch):
        async def stalled():
            await asyncio.sleep(1)

        monkeypatch.setattr(session, "flush", stalled)
        with pytest.raises(DataAccessError, match="timed out"):
            await flush(session, timeout=0.01)

    async def test_commit_persists(self, session, make_employee):
        employee = await make_employee()
        await commit(session, timeout=1)

        result = await run_query(
            session, select(Employee).where(Employee.employee_id == employee.employee_id)
        )
        assert result.scalar_one().email == employee.email
