"""Stress testing and sensitivity analysis."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

import numpy as np
import pandas as pd

from ..currency.rates import RateSnapshot
from ..data.models import DebtContract
from ..metrics.financial import percentage_change
from .projector import (
    REFERENCE_POLICY_RATE,
    ScenarioAssumptions,
    ScenarioResult,
    run_scenario,
)

logger = logging.getLogger(__name__)

REFERENCE_FX_RATE = 5.42
SURVIVAL_THRESHOLD = 10_000_000.0


@dataclass(frozen=True)
class StressScenario:
    """A predefined macro shock.

    Percent fields are relative changes; ``policy_increase`` is in
    percentage points.
    """

    id: str
    name: str
    description: str
    severity: str
    policy_increase: float
    fx_increase_pct: float
    revenue_decrease_pct: float
    cost_increase_pct: float
    commodity_decrease_pct: float


STRESS_SCENARIOS: dict[str, StressScenario] = {
    s.id: s
    for s in [
        StressScenario(
            "covid-like", "COVID-19 scenario",
            "Global crisis similar to the 2020 pandemic",
            "severe", 2.0, 20.0, 30.0, 15.0, 25.0,
        ),
        StressScenario(
            "inflation-spike", "Inflation spike",
            "Runaway inflation with a Selic hike",
            "moderate", 8.0, 10.0, 15.0, 25.0, 10.0,
        ),
        StressScenario(
            "currency-crisis", "Currency crisis",
            "Extreme devaluation of the Real",
            "severe", 5.0, 40.0, 10.0, 30.0, 5.0,
        ),
        StressScenario(
            "commodity-collapse", "Commodity collapse",
            "Severe fall in agricultural prices",
            "extreme", 1.0, 5.0, 50.0, 5.0, 45.0,
        ),
        StressScenario(
            "mild-recession", "Mild recession",
            "Moderate economic slowdown",
            "mild", 1.5, 8.0, 10.0, 8.0, 12.0,
        ),
    ]
}


@dataclass
class StressResult:
    """Baseline and stressed projections with their relative impact."""

    scenario: StressScenario
    baseline: ScenarioResult
    stressed: ScenarioResult
    dscr_impact_pct: float
    debt_service_increase_pct: float


def stressed_assumptions(
    base: ScenarioAssumptions,
    scenario: StressScenario,
) -> ScenarioAssumptions:
    """Apply a stress scenario's shocks to ``base``."""
    return ScenarioAssumptions(
        policy_rate=base.policy_rate + scenario.policy_increase,
        fx_rate=base.fx_rate * (1 + scenario.fx_increase_pct / 100),
        commodity_price=base.commodity_price * (1 - scenario.commodity_decrease_pct / 100),
        production=base.production,
        costs=base.costs * (1 + scenario.cost_increase_pct / 100),
    )


def run_stress_test(
    contracts: pd.DataFrame | list[DebtContract],
    base: ScenarioAssumptions,
    scenario: StressScenario | str,
    ebitda: float,
    cash: float,
    credit_lines: float = 0.0,
    as_of: date | None = None,
    reference_policy_rate: float = REFERENCE_POLICY_RATE,
    fx_rates: RateSnapshot | None = None,
) -> StressResult:
    """
    Compare the baseline with a stressed projection.

    The stressed EBITDA is ``ebitda`` reduced by the scenario's revenue
    decrease; debt service reprices with the shocked policy and FX rates.

    Parameters
    ----------
    scenario : StressScenario | str
        Scenario or its id in STRESS_SCENARIOS.

    Raises
    ------
    KeyError
        If a scenario id is unknown.
    """
    if isinstance(scenario, str):
        scenario = STRESS_SCENARIOS[scenario]

    common = dict(
        credit_lines=credit_lines,
        as_of=as_of,
        reference_policy_rate=reference_policy_rate,
        fx_rates=fx_rates,
    )
    baseline = run_scenario("baseline", contracts, base, ebitda, cash, **common)
    stressed_ebitda = ebitda * (1 - scenario.revenue_decrease_pct / 100)
    stressed = run_scenario(
        scenario.id,
        contracts,
        stressed_assumptions(base, scenario),
        stressed_ebitda,
        cash,
        **common,
    )

    return StressResult(
        scenario=scenario,
        baseline=baseline,
        stressed=stressed,
        dscr_impact_pct=percentage_change(stressed.dscr, baseline.dscr),
        debt_service_increase_pct=percentage_change(stressed.total_cost, baseline.total_cost),
    )


def survival_path(
    cash: float,
    monthly_burn: float,
    burn_increase_pct: float,
    months: int = 24,
    threshold: float = SURVIVAL_THRESHOLD,
) -> pd.DataFrame:
    """
    Month-by-month cash under normal and stressed burn.

    Parameters
    ----------
    cash : float
        Opening cash.
    monthly_burn : float
        Normal monthly outflow.
    burn_increase_pct : float
        Relative increase of the stressed burn, in percent.
    months : int, default 24
        Horizon.
    threshold : float
        Minimum cash level shown alongside the path.

    Returns
    -------
    pd.DataFrame
        Columns ``month, normal, stressed, threshold``; cash is floored at 0.
    """
    month = np.arange(1, months + 1)
    stressed_burn = monthly_burn * (1 + burn_increase_pct / 100)
    return pd.DataFrame({
        "month": [f"M{m}" for m in month],
        "normal": np.maximum(0.0, cash - monthly_burn * month),
        "stressed": np.maximum(0.0, cash - stressed_burn * month),
        "threshold": threshold,
    })


def sensitivity_matrix(
    policy_rates: list[float] | None = None,
    fx_rates: list[float] | None = None,
    reference_policy_rate: float = REFERENCE_POLICY_RATE,
    reference_fx_rate: float = REFERENCE_FX_RATE,
    policy_elasticity: float = 2.5,
    fx_exposure_pct: float = 42.0,
) -> pd.DataFrame:
    """
    Debt-service impact grid over policy and FX rates.

    impact = (policy - reference) * policy_elasticity
           + (fx - reference_fx) / reference_fx * fx_exposure_pct

    Returns
    -------
    pd.DataFrame
        Impact in percent, indexed by policy rate, one column per FX rate.

    Examples
    --------
    >>> sensitivity_matrix([13.25, 14.25], [5.42]).iloc[:, 0].tolist()
    [0.0, 2.5]
    """
    if policy_rates is None:
        policy_rates = [10.0, 11.0, 12.0, 13.25, 14.0, 15.0, 16.0]
    if fx_rates is None:
        fx_rates = [4.80, 5.00, 5.20, 5.42, 5.60, 5.80, 6.00, 6.20, 6.40, 6.60, 6.80]

    policy = np.asarray(policy_rates, dtype=float)[:, None]
    fx = np.asarray(fx_rates, dtype=float)[None, :]
    impact = (policy - reference_policy_rate) * policy_elasticity + (
        (fx - reference_fx_rate) / reference_fx_rate * fx_exposure_pct
    )

    return pd.DataFrame(
        impact,
        index=pd.Index(policy_rates, name="policy_rate"),
        columns=pd.Index(fx_rates, name="fx_rate"),
    )
