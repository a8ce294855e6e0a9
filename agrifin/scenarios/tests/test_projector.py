"""Tests for scenario projector."""

from datetime import date

import pandas as pd
import pytest

from agrifin.currency.rates import RateSnapshot
from agrifin.scenarios.projector import (
    SURVIVAL_SENTINEL,
    ScenarioAssumptions,
    run_scenario,
    scenario_balances,
    scenario_debt_service,
    scenario_rates,
    standard_scenarios,
    survival_months,
)

AS_OF = date(2025, 1, 1)


@pytest.fixture
def contracts() -> pd.DataFrame:
    """A 12-month CDI loan in BRL and a 24-month fixed loan in USD."""
    return pd.DataFrame({
        "contract_number": ["CDI-1", "PPE-1"],
        "currency": ["BRL", "USD"],
        "current_balance": [1000.0, 100.0],
        "current_rate": [14.0, 8.0],
        "rate_type": ["CDI", "PreFixed"],
        "maturity_date": pd.to_datetime(["2025-12-27", "2026-12-22"]),
    })


@pytest.fixture
def base() -> ScenarioAssumptions:
    """Assumptions at the reference policy rate."""
    return ScenarioAssumptions(policy_rate=13.25, fx_rate=5.0)


@pytest.fixture
def snapshot() -> RateSnapshot:
    """Cross rates with 0.8 EUR per USD."""
    return RateSnapshot(base="USD", date="2025-01-01", rates={"BRL": 5.0, "EUR": 0.8, "USD": 1.0})


class TestScenarioRates:
    """Tests for scenario_rates function."""

    def test_only_cdi_reprices(self, contracts: pd.DataFrame) -> None:
        """Test the policy shift applies to CDI contracts only."""
        rates = scenario_rates(contracts, ScenarioAssumptions(policy_rate=15.25, fx_rate=5.0))

        assert rates.tolist() == pytest.approx([16.0, 8.0])

    def test_reference_rate_is_neutral(self, contracts: pd.DataFrame, base) -> None:
        """Test the reference policy rate leaves rates unchanged."""
        assert scenario_rates(contracts, base).tolist() == pytest.approx([14.0, 8.0])


class TestScenarioBalances:
    """Tests for scenario_balances function."""

    def test_contract_currency_without_snapshot(self, contracts, base) -> None:
        """Test balances stay untranslated without cross rates."""
        assert scenario_balances(contracts, base).tolist() == [1000.0, 100.0]

    def test_translated_with_snapshot(self, contracts, base, snapshot) -> None:
        """Test USD balances use the assumed FX rate."""
        assert scenario_balances(contracts, base, snapshot).tolist() == pytest.approx([1000.0, 500.0])

    def test_eur_uses_cross_rate(self, base, snapshot) -> None:
        """Test EUR balances go through the EUR/USD cross rate."""
        frame = pd.DataFrame({"currency": ["EUR"], "current_balance": [100.0]})

        assert scenario_balances(frame, base, snapshot).iloc[0] == pytest.approx(625.0)


class TestScenarioDebtService:
    """Tests for scenario_debt_service function."""

    def test_base_debt_service(self, contracts, base) -> None:
        """Test interest plus annualised principal."""
        # CDI-1: 140 + 1000, PPE-1: 8 + 50
        assert scenario_debt_service(contracts, base, AS_OF) == pytest.approx(1198.0)

    def test_policy_shock(self, contracts) -> None:
        """Test a 1 pp hike adds 1% of the CDI balance."""
        shocked = ScenarioAssumptions(policy_rate=14.25, fx_rate=5.0)

        assert scenario_debt_service(contracts, shocked, AS_OF) == pytest.approx(1208.0)

    def test_with_fx_translation(self, contracts, base, snapshot) -> None:
        """Test foreign balances are serviced in BRL when translated."""
        # PPE-1 in BRL: 40 + 250
        result = scenario_debt_service(contracts, base, AS_OF, fx_rates=snapshot)

        assert result == pytest.approx(1430.0)

    def test_matured_contracts_use_one_month(self, base) -> None:
        """Test past maturities do not divide by zero."""
        frame = pd.DataFrame({
            "current_balance": [120.0],
            "current_rate": [0.0],
            "rate_type": ["PreFixed"],
            "maturity_date": pd.to_datetime(["2024-06-01"]),
        })

        assert scenario_debt_service(frame, base, AS_OF) == pytest.approx(1440.0)

    def test_empty(self, base) -> None:
        """Test an empty portfolio has no debt service."""
        assert scenario_debt_service(pd.DataFrame(), base, AS_OF) == 0.0


class TestSurvivalMonths:
    """Tests for survival_months function."""

    def test_whole_months(self) -> None:
        """Test floor of liquidity over burn."""
        assert survival_months(50_000_000, 18_500_000) == 2
        assert survival_months(50_000_000, 18_500_000, credit_lines=10_000_000) == 3

    def test_no_burn(self) -> None:
        """Test zero or negative burn returns the sentinel."""
        assert survival_months(50_000_000, 0) == SURVIVAL_SENTINEL
        assert survival_months(50_000_000, -1) == SURVIVAL_SENTINEL


class TestRunScenario:
    """Tests for run_scenario function."""

    def test_result(self, contracts, base) -> None:
        """Test projected figures of the base scenario."""
        result = run_scenario("base", contracts, base, ebitda=2396.0, cash=1500.0, as_of=AS_OF)

        assert result.total_cost == pytest.approx(1198.0)
        assert result.dscr == 2.0
        assert result.survival_months == 15
        assert result.total_debt == 1100.0
        assert result.avg_rate == 13.45
        assert result.refinancing_need == 1000.0

    def test_credit_lines_extend_survival(self, contracts, base) -> None:
        """Test credit lines count as liquidity."""
        result = run_scenario(
            "base", contracts, base, ebitda=2396.0, cash=1500.0, credit_lines=300.0, as_of=AS_OF
        )

        assert result.survival_months == 18

    def test_empty_portfolio(self, base) -> None:
        """Test no contracts means no debt service and the sentinel."""
        result = run_scenario("base", pd.DataFrame(), base, ebitda=100.0, cash=10.0, as_of=AS_OF)

        assert result.total_debt == 0.0
        assert result.dscr == 0.0
        assert result.survival_months == SURVIVAL_SENTINEL


class TestStandardScenarios:
    """Tests for standard_scenarios function."""

    def test_shifts_and_probabilities(self, base) -> None:
        """Test optimistic and pessimistic shifts around the base."""
        scenarios = {s.name: s for s in standard_scenarios(base)}

        assert scenarios["optimistic"].assumptions.policy_rate == pytest.approx(11.5)
        assert scenarios["optimistic"].assumptions.fx_rate == pytest.approx(4.5)
        assert scenarios["pessimistic"].assumptions.policy_rate == pytest.approx(15.5)
        assert scenarios["pessimistic"].assumptions.fx_rate == pytest.approx(5.75)
        assert scenarios["pessimistic"].assumptions.production == 3200.0
        assert sum(s.probability for s in scenarios.values()) == pytest.approx(1.0)

    def test_pessimistic_costs_more(self, contracts, base) -> None:
        """Test debt service is ordered optimistic < base < pessimistic."""
        costs = {
            s.name: scenario_debt_service(contracts, s.assumptions, AS_OF)
            for s in standard_scenarios(base)
        }

        assert costs["optimistic"] < costs["base"] < costs["pessimistic"]
