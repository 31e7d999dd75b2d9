"""Tests for merged payout views."""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from pool_payroll.calculators.types import (
    EmployeeRates,
    PayoutPayType,
    WorkedTime,
)
from pool_payroll.models import EmployeePayout, PercentagePayout
from pool_payroll.services.reconciliation import (
    ReconciliationService,
    synthesize_hourly_payouts,
    week_bounds,
)

MONDAY = date(2024, 6, 3)
TUESDAY = date(2024, 6, 4)


def rates(employee_id, rate="15") -> EmployeeRates:
    return EmployeeRates(
        employee_id=employee_id,
        pay_types=frozenset({"hourly"}),
        hourly_rate=Decimal(rate),
    )


@pytest.fixture
def add_payout(session):
    """Persist a saved payout with lines given as (employee, pay_type, amount)."""

    async def _add(payout_date, revenue, total_costs, lines, created_at=None):
        payout = PercentagePayout(
            payout_date=payout_date,
            total_revenue=Decimal(revenue),
            total_costs=Decimal(total_costs),
            total_profit=Decimal(revenue) - Decimal(total_costs),
            lines=[
                EmployeePayout(
                    employee_id=employee_id,
                    pay_type=pay_type,
                    payout_amount=Decimal(amount),
                )
                for employee_id, pay_type, amount in lines
            ],
        )
        if created_at is not None:
            payout.created_at = created_at
        session.add(payout)
        await session.flush()
        return payout

    return _add


class TestWeekBounds:
    """Default week resolution."""

    def test_defaults_to_monday_through_sunday(self):
        assert week_bounds(today=date(2024, 6, 6)) == (MONDAY, date(2024, 6, 9))

    def test_explicit_start(self):
        assert week_bounds(week_start=TUESDAY) == (TUESDAY, date(2024, 6, 10))

    def test_explicit_range(self):
        assert week_bounds(MONDAY, TUESDAY) == (MONDAY, TUESDAY)


class TestSynthesizeHourlyPayouts:
    """Transient hourly payouts from approved time."""

    def test_groups_by_day_and_skips_paid_pairs(self):
        worker = uuid4()
        other = uuid4()
        entries = [
            WorkedTime(worker, MONDAY, Decimal("4")),
            WorkedTime(other, MONDAY, Decimal("2")),
            WorkedTime(worker, TUESDAY, Decimal("8")),
        ]
        payouts = synthesize_hourly_payouts(
            entries,
            {worker: rates(worker), other: rates(other, "20")},
            already_paid={(MONDAY, worker)},
        )

        by_day = {p.payout_date: p for p in payouts}
        assert [line.employee_id for line in by_day[MONDAY].lines] == [other]
        assert by_day[MONDAY].labor_costs == Decimal("40")
        assert by_day[TUESDAY].total_costs == Decimal("120")
        assert all(p.synthesized and p.payout_id is None for p in payouts)
        assert by_day[TUESDAY].created_at == datetime(2024, 6, 4, tzinfo=timezone.utc)

    def test_flat_rate_line(self):
        worker = uuid4()
        (payout,) = synthesize_hourly_payouts(
            [WorkedTime(worker, MONDAY, Decimal("3"), flat_rate=Decimal("80"))],
            {worker: rates(worker)},
            set(),
        )
        (line,) = payout.lines
        assert line.pay_type == PayoutPayType.HOURLY
        assert line.payout_amount == Decimal("80")
        assert line.flat_rate == Decimal("80")
        assert line.hours == Decimal("0")

    def test_drops_zero_pay_unknown_and_unapproved(self):
        worker = uuid4()
        entries = [
            WorkedTime(worker, MONDAY, Decimal("0")),
            WorkedTime(worker, TUESDAY, Decimal("8"), approved=False),
            WorkedTime(uuid4(), MONDAY, Decimal("8")),
        ]
        assert synthesize_hourly_payouts(entries, {worker: rates(worker)}, set()) == []


class TestListPayouts:
    """Payout list by payout date."""

    async def test_hourly_pay_is_not_counted_twice(
        self, session, make_employee, make_time_entry, add_payout
    ):
        partner = await make_employee(
            last_name="Partner",
            pay_types=["percentage"],
            hourly_rate=None,
            percentage_rate=Decimal("10"),
        )
        helper = await make_employee(last_name="Helper", hourly_rate=Decimal("15"))
        former = await make_employee(last_name="Former", status="inactive")

        await add_payout(
            MONDAY,
            "1000",
            "210",
            [
                (partner.employee_id, "percentage", "79"),
                (helper.employee_id, "hourly", "60"),
            ],
        )
        # Already paid by the saved payout
        await make_time_entry(helper.employee_id, MONDAY, hours_worked=Decimal("4"))
        await make_time_entry(helper.employee_id, TUESDAY, hours_worked=Decimal("8"))
        await make_time_entry(helper.employee_id, date(2024, 6, 5), approved=False)
        await make_time_entry(former.employee_id, TUESDAY)
        await make_time_entry(partner.employee_id, TUESDAY)

        report = await ReconciliationService(session).list_payouts(
            date(2024, 6, 1), date(2024, 6, 7)
        )

        assert report.total == 2
        assert [(p.payout_date, p.synthesized) for p in report.payouts] == [
            (TUESDAY, True),
            (MONDAY, False),
        ]
        totals = {t.employee.last_name: t for t in report.employee_totals}
        assert [t.employee.last_name for t in report.employee_totals] == ["Helper", "Partner"]
        assert totals["Helper"].total_payout == Decimal("180")
        assert totals["Helper"].payout_count == 2
        assert totals["Partner"].total_payout == Decimal("79")

        summary = report.summary
        assert summary.total_revenue == Decimal("1000")
        assert summary.total_costs == Decimal("330")
        assert summary.total_employee_payout == Decimal("259")
        assert summary.total_profit == Decimal("741")
        assert summary.total_company_payout == Decimal("259")

    async def test_paginates_after_merge(self, session, make_employee, make_time_entry):
        helper = await make_employee()
        for day in (3, 4, 5):
            await make_time_entry(helper.employee_id, date(2024, 6, day))

        report = await ReconciliationService(session).list_payouts(page=2, limit=2)

        assert report.total == 3
        assert [p.payout_date for p in report.payouts] == [date(2024, 6, 3)]
        # Totals cover the whole range, not just the page
        assert report.summary.total_employee_payout == Decimal("480")

    async def test_lines_of_unknown_employees_are_ignored(self, session, add_payout):
        await add_payout(MONDAY, "500", "100", [(uuid4(), "percentage", "40")])

        report = await ReconciliationService(session).list_payouts()

        assert report.total == 1
        assert report.employee_totals == []
        assert report.summary.total_revenue == Decimal("0")


class TestWeeklyPayouts:
    """Weekly view by submission time."""

    async def test_filters_by_created_at(
        self, session, make_employee, make_time_entry, add_payout
    ):
        helper = await make_employee(last_name="Helper", hourly_rate=Decimal("15"))
        partner = await make_employee(
            last_name="Partner",
            pay_types=["percentage"],
            hourly_rate=None,
            percentage_rate=Decimal("10"),
        )
        await add_payout(
            MONDAY,
            "1000",
            "200",
            [(partner.employee_id, "percentage", "80")],
            created_at=datetime(2024, 6, 4, 15, 0, tzinfo=timezone.utc),
        )
        # Submitted the following week
        await add_payout(
            date(2024, 6, 7),
            "900",
            "100",
            [(partner.employee_id, "percentage", "80")],
            created_at=datetime(2024, 6, 11, 9, 0, tzinfo=timezone.utc),
        )
        await make_time_entry(helper.employee_id, TUESDAY, hours_worked=Decimal("2"))

        report = await ReconciliationService(session).weekly_payouts(today=date(2024, 6, 6))

        assert (report.range_start, report.range_end) == (MONDAY, date(2024, 6, 9))
        assert [(p.payout_date, p.synthesized) for p in report.payouts] == [
            (TUESDAY, True),
            (MONDAY, False),
        ]
        assert report.summary.total_employee_payout == Decimal("110")
