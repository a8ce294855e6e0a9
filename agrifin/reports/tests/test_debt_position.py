"""Tests for debt-position report."""

from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from agrifin.currency.rates import RateSnapshot
from agrifin.data.importer import parse_debt_csv
from agrifin.reports.debt_position import (
    HISTORICAL_DEBT,
    SECTOR_BENCHMARKS,
    concentration_risks,
    debt_position_report,
)
from agrifin.reports.portfolio import assemble_contracts, payments_in_brl, portfolio_composition

SAMPLE_CSV = Path(__file__).resolve().parents[3] / "fixtures" / "debt_schedule_sample.csv"
TODAY = date(2025, 6, 1)


@pytest.fixture
def contracts() -> pd.DataFrame:
    """Contracts assembled from the sample export at 5 BRL per USD."""
    snapshot = RateSnapshot(base="USD", date="2025-06-01", rates={"BRL": 5.0, "USD": 1.0})
    raw = parse_debt_csv(SAMPLE_CSV.read_text(encoding="utf-8"), today=TODAY)
    return assemble_contracts(payments_in_brl(raw, snapshot), TODAY)


class TestDebtPositionReport:
    """Tests for debt_position_report function."""

    def test_executive_summary(self, contracts: pd.DataFrame) -> None:
        """Test headline figures in BRL."""
        summary = debt_position_report(contracts, today=TODAY)["executive_summary"]

        assert summary["total_debt"] == 4440000.0
        assert summary["total_contracts"] == 2
        assert summary["avg_weighted_rate"] == 9.69
        assert summary["usd_exposure"] == 2650000.0
        assert summary["top_institution"] == "Rabobank"
        assert summary["next_payment_date"] == "2025-09-05"

    def test_risks_and_recommendations(self, contracts: pd.DataFrame) -> None:
        """Test concentration risks and the resulting recommendations."""
        report = debt_position_report(contracts, today=TODAY)

        types = [r["type"] for r in report["concentration_risks"]]
        assert types == [
            "institution_concentration",
            "currency_concentration",
            "single_institution",
            "single_institution",
        ]
        categories = [r["category"] for r in report["recommendations"]]
        assert categories == ["fx_hedge", "diversification"]

    def test_benchmark(self, contracts: pd.DataFrame) -> None:
        """Test benchmark values against sector references."""
        benchmark = debt_position_report(contracts, today=TODAY)["benchmark_comparison"]

        assert set(benchmark) == set(SECTOR_BENCHMARKS)
        assert benchmark["debt_per_hectare"]["value"] == pytest.approx(888.0)
        assert benchmark["top_three_concentration"]["value"] == pytest.approx(100.0)

    def test_historical(self, contracts: pd.DataFrame) -> None:
        """Test the historical series is attached on request."""
        without = debt_position_report(contracts, today=TODAY)
        with_history = debt_position_report(contracts, include_historical=True, today=TODAY)

        assert without["historical_data"] is None
        assert len(with_history["historical_data"]) == len(HISTORICAL_DEBT)
        assert with_history["metadata"]["include_historical"] is True

    def test_empty(self, contracts: pd.DataFrame) -> None:
        """Test the empty payload."""
        report = debt_position_report(contracts.iloc[0:0], today=TODAY)

        assert report["executive_summary"]["total_debt"] == 0.0
        assert report["executive_summary"]["top_institution"] == "N/A"
        assert report["concentration_risks"] == []
        assert report["metadata"]["data_points"] == 0


class TestConcentrationRisks:
    """Tests for concentration_risks function."""

    def test_diversified_portfolio(self) -> None:
        """Test a diversified portfolio has no risks."""
        frame = pd.DataFrame({
            "institution": [f"Bank {i}" for i in range(5)],
            "currency": ["BRL"] * 5,
            "modality": ["Custeio"] * 5,
            "rate_type": ["CDI"] * 5,
            "purpose": ["Soja"] * 5,
            "balance_brl": [20.0] * 5,
            "current_rate": [10.0] * 5,
        })
        composition = portfolio_composition(frame)

        assert concentration_risks(composition["by_institution"], composition["by_currency"]) == []
