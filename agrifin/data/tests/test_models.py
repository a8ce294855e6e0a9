"""Tests for core record types."""

from datetime import date

import pandas as pd
import pytest

from agrifin.data.models import (
    CONTRACT_COLUMNS,
    ContractCovenant,
    ContractStatus,
    CovenantType,
    Currency,
    DebtContract,
    RateType,
    contracts_to_frame,
)


@pytest.fixture
def contract() -> DebtContract:
    return DebtContract(
        contract_number="40/00123",
        institution="Banco do Brasil",
        currency=Currency.BRL,
        original_amount=1_200_000.0,
        current_balance=950_000.0,
        rate_type=RateType.CDI,
        current_rate=12.5,
        disbursement_date=date(2024, 1, 10),
        maturity_date=date(2026, 12, 5),
        next_payment_date=date(2025, 9, 5),
        next_payment_amount=111_000.0,
    )


class TestDebtContract:
    """Tests for DebtContract transitions."""

    def test_with_status(self, contract: DebtContract) -> None:
        """Test status transitions return a copy."""
        defaulted = contract.with_status("default")

        assert defaulted.status is ContractStatus.DEFAULT
        assert contract.status is ContractStatus.ACTIVE

    def test_with_status_rejects_unknown(self, contract: DebtContract) -> None:
        """Test unknown statuses raise ValueError."""
        with pytest.raises(ValueError):
            contract.with_status("closed")

    def test_with_balance(self, contract: DebtContract) -> None:
        """Test balance updates."""
        assert contract.with_balance(840_000).current_balance == 840_000.0
        assert contract.current_balance == 950_000.0


class TestContractCovenant:
    """Tests for ContractCovenant.kind."""

    def test_kind(self) -> None:
        """Test debt-to-EBITDA is a ceiling, the rest are floors."""
        assert ContractCovenant(CovenantType.DEBT_TO_EBITDA, 3.5, 2.5).kind == "max"
        assert ContractCovenant(CovenantType.DSCR, 1.25, 1.5).kind == "min"
        assert ContractCovenant(CovenantType.LIQUIDITY_RATIO, 1.2, 1.4).kind == "min"


class TestContractsToFrame:
    """Tests for contracts_to_frame function."""

    def test_columns_and_values(self, contract: DebtContract) -> None:
        """Test enum values and datetime columns."""
        frame = contracts_to_frame([contract])

        assert list(frame.columns) == CONTRACT_COLUMNS
        assert frame["currency"].iloc[0] == "BRL"
        assert frame["rate_type"].iloc[0] == "CDI"
        assert frame["status"].iloc[0] == "active"
        assert pd.api.types.is_datetime64_any_dtype(frame["maturity_date"])

    def test_empty(self) -> None:
        """Test an empty list gives an empty frame with the columns."""
        frame = contracts_to_frame([])

        assert len(frame) == 0
        assert list(frame.columns) == CONTRACT_COLUMNS
