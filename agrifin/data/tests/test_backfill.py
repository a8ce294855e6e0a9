"""Tests for backfill estimator."""

from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from agrifin.data.backfill import backfill_past_installments, with_backfill
from agrifin.data.importer import parse_debt_csv
from agrifin.data.models import PAYMENT_COLUMNS

SAMPLE_CSV = Path(__file__).resolve().parents[3] / "fixtures" / "debt_schedule_sample.csv"


@pytest.fixture
def payments() -> pd.DataFrame:
    """Parsed sample export."""
    return parse_debt_csv(SAMPLE_CSV.read_text(encoding="utf-8"), today=date(2025, 6, 1))


class TestBackfillPastInstallments:
    """Tests for backfill_past_installments function."""

    def test_generates_missing_installments(self, payments: pd.DataFrame) -> None:
        """Test installments before the lowest known one are generated."""
        result = backfill_past_installments(payments)

        bb = result[result["nr_contrato"] == "40/00123"]
        assert bb["parc_current"].tolist() == [1, 2]
        assert bb["vencim_parcela"].tolist() == ["2025-01-05", "2025-02-05"]

        ppe = result[result["nr_contrato"] == "PPE-777"]
        assert ppe["vencim_parcela"].tolist() == ["2025-11-15"]

    def test_rows_are_flagged_synthetic(self, payments: pd.DataFrame) -> None:
        """Test provenance flags on generated rows."""
        result = backfill_past_installments(payments)

        assert len(result) == 3
        assert result["is_synthetic"].all()
        assert (result["status"] == "paid").all()
        assert (result["status_source"] == "inferred").all()

    def test_copies_anchor_amounts(self, payments: pd.DataFrame) -> None:
        """Test generated rows reuse the anchor installment amounts."""
        result = backfill_past_installments(payments)

        bb = result[result["nr_contrato"] == "40/00123"]
        assert (bb["tot_capital_juros"] == 112500.0).all()
        assert bb["mes"].tolist() == [1, 2]

    def test_month_end_clamping(self) -> None:
        """Test month arithmetic clamps to the end of shorter months."""
        anchor = dict.fromkeys(PAYMENT_COLUMNS)
        anchor.update(nr_contrato="C-31", parc_current=2, parc_total=6, vencim_parcela="2025-03-31")

        result = backfill_past_installments(pd.DataFrame([anchor], columns=PAYMENT_COLUMNS))

        assert result["vencim_parcela"].tolist() == ["2025-02-28"]

    def test_first_installment_needs_nothing(self, payments: pd.DataFrame) -> None:
        """Test contracts starting at installment 1 get no rows."""
        first = payments[payments["nr_contrato"] == "PPE-777"].assign(parc_current=1)

        assert len(backfill_past_installments(first)) == 0

    def test_undated_contract_skipped(self) -> None:
        """Test contracts without due dates are skipped."""
        record = dict.fromkeys(PAYMENT_COLUMNS)
        record.update(nr_contrato="C-1", parc_current=5, vencim_parcela="")

        assert len(backfill_past_installments(pd.DataFrame([record]))) == 0

    def test_empty(self) -> None:
        """Test empty input."""
        assert list(backfill_past_installments(pd.DataFrame()).columns) == PAYMENT_COLUMNS


class TestWithBackfill:
    """Tests for with_backfill function."""

    def test_combined_order(self, payments: pd.DataFrame) -> None:
        """Test known and synthetic rows are merged in installment order."""
        result = with_backfill(payments)

        bb = result[result["nr_contrato"] == "40/00123"]
        assert bb["parc_current"].tolist() == [1, 2, 3, 4]
        assert bb["is_synthetic"].tolist() == [True, True, False, False]
        assert len(result) == 6
