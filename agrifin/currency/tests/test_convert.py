"""Tests for currency conversion."""

import pandas as pd
import pytest

from agrifin.currency.convert import (
    UnsupportedCurrencyError,
    conversion_rate,
    convert,
    convert_column,
    convert_many,
    current_rates,
    fallback_multipliers,
)
from agrifin.currency.rates import FALLBACK_RATES, RateSnapshot, fallback_snapshot


@pytest.fixture
def snapshot() -> RateSnapshot:
    """Snapshot with 5 BRL and 0.8 EUR per USD."""
    return RateSnapshot(base="USD", date="2025-06-01", rates={"BRL": 5.0, "EUR": 0.8, "USD": 1.0})


class TestConversionRate:
    """Tests for conversion_rate function."""

    def test_usd_to_brl(self, snapshot: RateSnapshot) -> None:
        """Test USD converts at the BRL rate."""
        assert conversion_rate("USD", snapshot) == 5.0

    def test_eur_through_usd(self, snapshot: RateSnapshot) -> None:
        """Test cross rates go through USD."""
        assert conversion_rate("EUR", snapshot) == pytest.approx(6.25)
        assert conversion_rate("BRL", snapshot, to="USD") == pytest.approx(0.2)

    def test_same_currency(self, snapshot: RateSnapshot) -> None:
        """Test identity conversion."""
        assert conversion_rate("BRL", snapshot) == 1.0

    def test_export_aliases(self, snapshot: RateSnapshot) -> None:
        """Test export labels are accepted."""
        assert conversion_rate("US$", snapshot) == 5.0
        assert conversion_rate("€UR", snapshot) == pytest.approx(6.25)

    def test_unsupported_currency(self, snapshot: RateSnapshot) -> None:
        """Test unknown codes raise a ValueError subclass."""
        with pytest.raises(UnsupportedCurrencyError):
            conversion_rate("JPY", snapshot)
        with pytest.raises(ValueError):
            conversion_rate("USD", snapshot, to="GBP")

    def test_missing_rate_uses_fallback(self) -> None:
        """Test a snapshot without EUR falls back for that currency."""
        partial = RateSnapshot(base="USD", date="2025-06-01", rates={"BRL": 5.0})

        assert conversion_rate("EUR", partial) == pytest.approx(5.0 / FALLBACK_RATES["EUR"])


class TestConvert:
    """Tests for convert functions."""

    def test_convert(self, snapshot: RateSnapshot) -> None:
        """Test a single conversion records its rate and date."""
        result = convert(1000.0, "USD", snapshot)

        assert result.result == 5000.0
        assert result.rate == 5.0
        assert result.to_currency == "BRL"
        assert result.date == "2025-06-01"

    def test_convert_many_preserves_order(self, snapshot: RateSnapshot) -> None:
        """Test batch conversion keeps input order."""
        results = convert_many([(10.0, "BRL"), (10.0, "USD"), (10.0, "EUR")], snapshot)

        assert [r.result for r in results] == pytest.approx([10.0, 50.0, 62.5])

    def test_convert_column(self, snapshot: RateSnapshot) -> None:
        """Test row-wise DataFrame conversion."""
        frame = pd.DataFrame({"current_balance": [100.0, 100.0], "currency": ["BRL", "USD"]})

        assert convert_column(frame, snapshot).tolist() == [100.0, 500.0]

    def test_current_rates(self, snapshot: RateSnapshot) -> None:
        """Test display rates."""
        rates = current_rates(snapshot)

        assert rates["usd_to_brl"] == 5.0
        assert rates["eur_to_brl"] == pytest.approx(6.25)
        assert rates["last_updated"] == "2025-06-01"


class TestFallbackTables:
    """Tests that every fallback path uses the same table."""

    def test_multipliers_derive_from_rates(self) -> None:
        """Test multipliers are ratios of the per-USD table."""
        multipliers = fallback_multipliers()

        assert multipliers["BRL"] == 1.0
        assert multipliers["USD"] == FALLBACK_RATES["BRL"]
        assert multipliers["EUR"] == pytest.approx(FALLBACK_RATES["BRL"] / FALLBACK_RATES["EUR"])

    def test_snapshot_and_multipliers_agree(self) -> None:
        """Test converting through the fallback snapshot gives the multipliers."""
        snapshot = fallback_snapshot()

        for code, multiplier in fallback_multipliers().items():
            assert conversion_rate(code, snapshot) == pytest.approx(multiplier)

    def test_configured_table_agrees(self) -> None:
        """Test a configured table drives both the snapshot and the multipliers."""
        configured = {"BRL": 6.0, "EUR": 0.9, "USD": 1.0}
        snapshot = fallback_snapshot(rates=configured)
        multipliers = fallback_multipliers(rates=configured)

        assert multipliers["USD"] == 6.0
        for code, multiplier in multipliers.items():
            assert conversion_rate(code, snapshot) == pytest.approx(multiplier)
