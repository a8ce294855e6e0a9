"""Tests for stress testing and sensitivity analysis."""

from datetime import date

import pandas as pd
import pytest

from agrifin.scenarios.projector import ScenarioAssumptions
from agrifin.scenarios.stress import (
    STRESS_SCENARIOS,
    run_stress_test,
    sensitivity_matrix,
    stressed_assumptions,
    survival_path,
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


class TestStressScenarios:
    """Tests for the predefined scenarios."""

    def test_catalogue(self) -> None:
        """Test the five predefined scenarios."""
        assert set(STRESS_SCENARIOS) == {
            "covid-like", "inflation-spike", "currency-crisis",
            "commodity-collapse", "mild-recession",
        }

    def test_stressed_assumptions(self, base) -> None:
        """Test shocks applied to the base."""
        shocked = stressed_assumptions(base, STRESS_SCENARIOS["currency-crisis"])

        assert shocked.policy_rate == pytest.approx(18.25)
        assert shocked.fx_rate == pytest.approx(7.0)
        assert shocked.commodity_price == pytest.approx(133.0)
        assert shocked.costs == pytest.approx(143.0)


class TestRunStressTest:
    """Tests for run_stress_test function."""

    def test_currency_crisis(self, contracts, base) -> None:
        """Test baseline against stressed projection."""
        result = run_stress_test(
            contracts, base, "currency-crisis", ebitda=2396.0, cash=1500.0, as_of=AS_OF
        )

        assert result.baseline.total_cost == pytest.approx(1198.0)
        # CDI-1 reprices from 14% to 19%
        assert result.stressed.total_cost == pytest.approx(1248.0)
        assert result.debt_service_increase_pct == pytest.approx(50 / 1198 * 100)
        assert result.stressed.dscr == 1.73
        assert result.dscr_impact_pct == pytest.approx(-13.5)

    def test_accepts_scenario_object(self, contracts, base) -> None:
        """Test a StressScenario instance is accepted."""
        scenario = STRESS_SCENARIOS["mild-recession"]

        result = run_stress_test(contracts, base, scenario, ebitda=2396.0, cash=1500.0, as_of=AS_OF)

        assert result.scenario is scenario
        assert result.stressed.dscr < result.baseline.dscr

    def test_unknown_id(self, contracts, base) -> None:
        """Test unknown scenario ids raise KeyError."""
        with pytest.raises(KeyError):
            run_stress_test(contracts, base, "meteor", ebitda=1.0, cash=1.0)


class TestSurvivalPath:
    """Tests for survival_path function."""

    def test_paths(self) -> None:
        """Test normal and stressed cash paths."""
        path = survival_path(100.0, 10.0, 50.0, months=3, threshold=5.0)

        assert path["month"].tolist() == ["M1", "M2", "M3"]
        assert path["normal"].tolist() == [90.0, 80.0, 70.0]
        assert path["stressed"].tolist() == [85.0, 70.0, 55.0]
        assert (path["threshold"] == 5.0).all()

    def test_floored_at_zero(self) -> None:
        """Test cash never goes negative."""
        path = survival_path(20.0, 10.0, 0.0, months=3)

        assert path["normal"].tolist() == [10.0, 0.0, 0.0]


class TestSensitivityMatrix:
    """Tests for sensitivity_matrix function."""

    def test_policy_axis(self) -> None:
        """Test each policy point adds the elasticity."""
        grid = sensitivity_matrix([13.25, 14.25], [5.42])

        assert grid.iloc[:, 0].tolist() == pytest.approx([0.0, 2.5])

    def test_fx_axis(self) -> None:
        """Test FX moves scale with the exposure share."""
        grid = sensitivity_matrix([13.25], [5.42 * 1.1], fx_exposure_pct=40.0)

        assert grid.iloc[0, 0] == pytest.approx(4.0)

    def test_default_grid(self) -> None:
        """Test default axes."""
        grid = sensitivity_matrix()

        assert grid.shape == (7, 11)
        assert grid.index.name == "policy_rate"
        assert grid.loc[13.25, 5.42] == pytest.approx(0.0)
