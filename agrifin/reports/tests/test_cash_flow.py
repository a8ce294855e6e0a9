"""Tests for cash-flow report builders."""

import json
import math
from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from agrifin.currency.rates import RateSnapshot
from agrifin.data.config import DEFAULT_MONTHLY_INFLOWS, Settings
from agrifin.data.importer import parse_debt_csv
from agrifin.reports.cash_flow import (
    cash_flow_alerts,
    cash_flow_overview,
    cash_flow_portfolio,
    cash_flow_projections,
    cash_flow_report,
    cash_flow_summary,
    group_payments,
    payables_aging,
    payment_calendar,
)
from agrifin.reports.portfolio import payments_in_brl

SAMPLE_CSV = Path(__file__).resolve().parents[3] / "fixtures" / "debt_schedule_sample.csv"
TODAY = date(2025, 6, 1)


@pytest.fixture
def payments() -> pd.DataFrame:
    """Sample export converted to BRL at 5 BRL per USD."""
    snapshot = RateSnapshot(base="USD", date="2025-06-01", rates={"BRL": 5.0, "USD": 1.0})
    raw = parse_debt_csv(SAMPLE_CSV.read_text(encoding="utf-8"), today=TODAY)
    return payments_in_brl(raw, snapshot)


class TestCashFlowSummary:
    """Tests for cash_flow_summary function."""

    def test_totals(self, payments: pd.DataFrame) -> None:
        """Test totals and institutional concentration."""
        summary = cash_flow_summary(payments)

        assert summary["total_amount"] == 1573500.0
        assert summary["payment_count"] == 3
        assert summary["max_payment"] == 1350000.0
        assert summary["avg_payment"] == pytest.approx(524500.0)
        assert summary["concentration_percent"] == pytest.approx(1350000 / 1573500 * 100)

    def test_empty(self, payments: pd.DataFrame) -> None:
        """Test an empty period."""
        assert cash_flow_summary(payments.iloc[0:0])["total_amount"] == 0.0


class TestGroupPayments:
    """Tests for group_payments function."""

    def test_weeks_start_on_monday(self, payments: pd.DataFrame) -> None:
        """Test weekly periods run Monday to Sunday."""
        grouped = group_payments(payments, "week")

        assert grouped["period"].tolist() == [
            "2025-03-03_2025-03-09",
            "2025-09-01_2025-09-07",
            "2025-12-15_2025-12-21",
        ]
        assert grouped["start_date"].tolist() == ["2025-03-03", "2025-09-01", "2025-12-15"]

    def test_months(self, payments: pd.DataFrame) -> None:
        """Test monthly periods and bounds."""
        grouped = group_payments(payments, "month")

        assert grouped["period"].tolist() == ["2025-03", "2025-09", "2025-12"]
        assert grouped["end_date"].iloc[0] == "2025-03-31"
        assert grouped["total_amount"].tolist() == [112500.0, 111000.0, 1350000.0]

    def test_same_week_aggregated(self, payments: pd.DataFrame) -> None:
        """Test payments in one week are summed."""
        same_week = payments.assign(vencim_parcela=["2025-03-03", "2025-03-05", "2025-03-09"])

        grouped = group_payments(same_week, "week")

        assert len(grouped) == 1
        assert grouped["payment_count"].iloc[0] == 3
        assert grouped["total_amount"].iloc[0] == 1573500.0

    def test_invalid_group_by(self, payments: pd.DataFrame) -> None:
        """Test unknown groupings raise ValueError."""
        with pytest.raises(ValueError):
            group_payments(payments, "day")


class TestCashFlowAlerts:
    """Tests for cash_flow_alerts function."""

    def test_concentration_and_fx(self, payments: pd.DataFrame) -> None:
        """Test concentration and FX exposure alerts."""
        alerts = cash_flow_alerts(cash_flow_summary(payments), payments, today=TODAY)

        assert [a["title"] for a in alerts] == ["High institutional concentration", "High FX exposure"]

    def test_upcoming_maturities(self, payments: pd.DataFrame) -> None:
        """Test payments due within 7 days raise an info alert."""
        alerts = cash_flow_alerts(cash_flow_summary(payments), payments, today=date(2025, 9, 1))

        assert alerts[-1]["type"] == "info"
        assert alerts[-1]["message"] == "1 payments in the next 7 days"

    def test_thresholds_from_settings(self, payments: pd.DataFrame) -> None:
        """Test alert thresholds are configurable."""
        settings = Settings(concentration_alert_pct=90.0, fx_alert_pct=90.0)

        assert cash_flow_alerts(cash_flow_summary(payments), payments, settings, TODAY) == []


class TestCashFlowReport:
    """Tests for cash_flow_report function."""

    def test_payload(self, payments: pd.DataFrame) -> None:
        """Test report sections and metadata."""
        report = cash_flow_report(payments, "2025-01-01", "2025-12-31", "month", today=TODAY)

        assert set(report) == {"summary", "grouped_data", "payments", "alerts", "metadata"}
        assert len(report["payments"]) == 3
        assert report["metadata"]["group_by"] == "month"
        assert report["metadata"]["filters"] == {"currency": "all", "institution": "all"}

    def test_json_serialisable(self, payments: pd.DataFrame) -> None:
        """Test the payload serialises without custom encoders."""
        report = cash_flow_report(payments, "2025-01-01", "2025-12-31", today=TODAY)

        json.dumps(report)

    def test_empty_period(self, payments: pd.DataFrame) -> None:
        """Test a period without payments."""
        report = cash_flow_report(payments.iloc[0:0], "2030-01-01", "2030-03-31", today=TODAY)

        assert report["summary"]["payment_count"] == 0
        assert report["grouped_data"] == []
        assert report["alerts"] == []


class TestCashFlowOverview:
    """Tests for cash_flow_overview function."""

    def test_overview(self, payments: pd.DataFrame) -> None:
        """Test projected balance, cash days and payables."""
        overview = cash_flow_overview(payments, Settings(), TODAY)

        assert overview.current_balance == 45_700_000.0
        # only the overdue March installment is unpaid within 30 days
        assert overview.projected_balance_30d == 45_700_000.0 - 112500.0
        assert overview.cash_days == math.floor(45_700_000.0 / (1573500.0 / 365))
        assert overview.payables_total == pytest.approx(1573500.0 * 1.4)

    def test_no_payables(self, payments: pd.DataFrame) -> None:
        """Test cash days sentinel without debt payables."""
        assert cash_flow_overview(payments.iloc[0:0], Settings(), TODAY).cash_days == 999


class TestCashFlowProjections:
    """Tests for cash_flow_projections function."""

    def test_projection(self, payments: pd.DataFrame) -> None:
        """Test monthly rows with debt outflows in their month."""
        projection = cash_flow_projections(payments, Settings(), TODAY)

        assert len(projection) == 12
        assert projection["date"].iloc[0] == "2025-06-01"
        assert projection["is_projected"].tolist() == [False] + [True] * 11
        september = projection.iloc[3]
        assert september["date"] == "2025-09-01"
        assert september["outflows"] == pytest.approx(111000.0 + DEFAULT_MONTHLY_INFLOWS[3] * 0.6)
        assert projection["running_balance"].iloc[-1] == pytest.approx(
            45_700_000.0 + projection["net_flow"].sum()
        )


class TestPaymentCalendar:
    """Tests for payment_calendar function."""

    def test_calendar(self, payments: pd.DataFrame) -> None:
        """Test payments land on their due day within the window."""
        calendar = payment_calendar(payments, TODAY, days=365)
        by_date = {day.date: day for day in calendar}

        assert len(calendar) == 365
        assert calendar[0].date == "2025-06-01"
        assert "2025-03-05" not in by_date
        day = by_date["2025-09-05"]
        assert day.has_debt_payments
        assert day.outflows == 111000.0
        assert day.transactions[0].amount == -111000.0
        assert day.transactions[0].status == "pending"


class TestPayablesAging:
    """Tests for payables_aging function."""

    def test_buckets(self, payments: pd.DataFrame) -> None:
        """Test debt payables land in their aging buckets."""
        aging = payables_aging(payments, Settings(), TODAY)
        other = 1573500.0 * 0.4

        assert aging.total == pytest.approx(1573500.0 + other)
        assert aging.debt_payments_total == 1573500.0
        assert aging.aging[3].count == 2
        assert aging.aging[5].count == 1
        assert aging.aging[3].amount == pytest.approx(1461000.0 + other / 6)
        assert sum(b.percentage for b in aging.aging) == pytest.approx(100.0)
        assert aging.due_in_7_days == pytest.approx(other * 0.1)


class TestCashFlowPortfolio:
    """Tests for cash_flow_portfolio function."""

    def test_sections(self, payments: pd.DataFrame) -> None:
        """Test the combined payload."""
        result = cash_flow_portfolio(payments, Settings(), TODAY)

        assert set(result) == {"overview", "projections", "calendar", "payables"}
        assert len(result["projections"]) == 12
        assert result["payables"]["aging"][0]["days"] == "0-30"
