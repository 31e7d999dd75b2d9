"""Tests for the daily percentage payout calculation."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from pool_payroll.calculators.payout_calculator import calculate_daily_payout
from pool_payroll.calculators.types import (
    EmployeeRates,
    PayoutPayType,
    PayoutRequest,
    WorkedTime,
)
from pool_payroll.errors import ValidationError

DAY = date(2024, 6, 3)


class TestCalculateDailyPayout:
    """Day aggregates and employee lines."""

    def test_hourly_request_sets_labor_cost(self):
        """Revenue 1000, job 100, materials 50, 15 x 4 hourly, 10% partner."""
        helper = uuid4()
        partner = uuid4()
        result = calculate_daily_payout(
            DAY,
            Decimal("1000"),
            [
                PayoutRequest(
                    helper,
                    pay_type=PayoutPayType.HOURLY,
                    hourly_rate=Decimal("15"),
                    hours=Decimal("4"),
                ),
                PayoutRequest(partner, percentage_rate=Decimal("10")),
            ],
            {},
            job_costs=Decimal("100"),
            materials=Decimal("50"),
        )

        assert result.labor_costs == Decimal("60")
        assert result.total_costs == Decimal("210")
        assert result.total_profit == Decimal("790")
        assert result.labor_cost_source == "requests"

        hourly_line, percentage_line = result.lines
        assert hourly_line.pay_type == PayoutPayType.HOURLY
        assert hourly_line.payout_amount == Decimal("60")
        assert percentage_line.payout_amount == Decimal("79")
        # Hourly lines are not part of the percentage total
        assert result.total_percentage_payout == Decimal("79")

    def test_calculated_payout_uses_profit_share(self):
        result = calculate_daily_payout(
            DAY,
            Decimal("500"),
            [PayoutRequest(uuid4(), percentage_rate=Decimal("5"))],
            {},
            job_costs=Decimal("100"),
            profit_share_percentage=Decimal("25"),
        )
        assert result.total_profit == Decimal("400")
        assert result.profit_percentage == Decimal("25")
        assert result.calculated_payout == Decimal("100")

    def test_percentage_rate_falls_back_to_employee(self):
        partner = uuid4()
        rates = EmployeeRates(
            employee_id=partner,
            pay_types=frozenset({"percentage"}),
            percentage_rate=Decimal("12.5"),
        )
        result = calculate_daily_payout(
            DAY, Decimal("800"), [PayoutRequest(partner)], {partner: rates}
        )
        assert result.lines[0].percentage_rate == Decimal("12.5")
        assert result.lines[0].payout_amount == Decimal("100")

    def test_approved_time_entries_and_gas_money(self):
        worker = uuid4()
        partner = uuid4()
        rates = EmployeeRates(
            employee_id=worker,
            pay_types=frozenset({"hourly"}),
            hourly_rate=Decimal("20"),
        )
        entries = [
            WorkedTime(worker, DAY, Decimal("5"), gas_money=Decimal("10")),
            # Unapproved time never counts
            WorkedTime(worker, DAY, Decimal("8"), approved=False),
        ]
        result = calculate_daily_payout(
            DAY,
            Decimal("1000"),
            [PayoutRequest(partner, percentage_rate=Decimal("10"))],
            {worker: rates},
            entries,
        )

        assert result.labor_costs == Decimal("100")
        assert result.gas_money == Decimal("10")
        assert result.total_costs == Decimal("110")
        assert result.total_profit == Decimal("890")
        assert result.lines[0].payout_amount == Decimal("89")

    def test_hourly_line_uses_flat_rate(self):
        worker = uuid4()
        entries = [WorkedTime(worker, DAY, Decimal("6"), flat_rate=Decimal("120"))]
        result = calculate_daily_payout(
            DAY,
            Decimal("600"),
            [
                PayoutRequest(
                    worker,
                    pay_type=PayoutPayType.HOURLY,
                    hourly_rate=Decimal("15"),
                    hours=Decimal("6"),
                )
            ],
            {},
            entries,
        )
        line = result.lines[0]
        assert line.payout_amount == Decimal("120")
        assert line.flat_rate == Decimal("120")
        assert line.hourly_rate is None
        assert line.hours is None
        assert result.labor_cost_source == "flat_rates"

    def test_loss_day_is_rejected(self):
        with pytest.raises(ValidationError):
            calculate_daily_payout(
                DAY,
                Decimal("100"),
                [PayoutRequest(uuid4(), percentage_rate=Decimal("10"))],
                {},
                job_costs=Decimal("250"),
            )

    def test_loss_day_without_percentage_lines_is_rejected(self):
        """An hourly-only day that loses money cannot be saved either."""
        worker = uuid4()
        rates = EmployeeRates(
            employee_id=worker,
            pay_types=frozenset({"hourly"}),
            hourly_rate=Decimal("20"),
        )
        with pytest.raises(ValidationError) as exc_info:
            calculate_daily_payout(
                DAY,
                Decimal("50"),
                [PayoutRequest(worker, pay_type=PayoutPayType.HOURLY, hours=Decimal("8"))],
                {worker: rates},
            )
        assert exc_info.value.context["total_profit"] == "-110.0000"

    def test_break_even_day_is_allowed(self):
        result = calculate_daily_payout(
            DAY,
            Decimal("40"),
            [PayoutRequest(uuid4(), percentage_rate=Decimal("10"))],
            {},
            materials=Decimal("40"),
        )
        assert result.total_profit == Decimal("0")
        assert result.calculated_payout == Decimal("0")
        assert result.lines[0].payout_amount == Decimal("0")

    def test_submitted_hourly_rate_beats_rate_on_file(self):
        """Approved hourly time for the worker does not reprice the line."""
        worker = uuid4()
        partner = uuid4()
        rates = EmployeeRates(
            employee_id=worker,
            pay_types=frozenset({"hourly"}),
            hourly_rate=Decimal("20"),
        )
        result = calculate_daily_payout(
            DAY,
            Decimal("1000"),
            [
                PayoutRequest(
                    worker,
                    pay_type=PayoutPayType.HOURLY,
                    hourly_rate=Decimal("25"),
                    hours=Decimal("8"),
                ),
                PayoutRequest(partner, percentage_rate=Decimal("10")),
            ],
            {worker: rates},
            [WorkedTime(worker, DAY, Decimal("8"))],
        )

        assert result.labor_costs == Decimal("200")
        assert result.labor_cost_source == "requests"
        assert result.total_profit == Decimal("800")
        assert result.lines[1].payout_amount == Decimal("80")
