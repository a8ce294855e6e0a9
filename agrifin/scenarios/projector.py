from __future__ import annotations

"""Scenario projector.

Recomputes annual debt service under macro assumptions. CDI-indexed
contracts reprice by the difference between the assumed policy rate and
the reference policy rate that current contract rates were priced at;
other rate types keep their rate. Debt service is the only quantity the
assumptions move: DSCR and survival months are derived from it.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date

import numpy as np
import pandas as pd

from ..currency.convert import conversion_rate
from ..currency.rates import RateSnapshot
from ..data.models import DebtContract, RateType
from ..metrics.debt import (
    as_contract_frame,
    calculate_dscr,
    months_to_maturity,
    refinancing_need,
)

logger = logging.getLogger(__name__)

REFERENCE_POLICY_RATE = 13.25
SURVIVAL_SENTINEL = 999


@dataclass(frozen=True)
class ScenarioAssumptions:
    """
    Macro assumptions of a scenario.

    Parameters
    ----------
    policy_rate : float
        Selic rate, percent per year.
    fx_rate : float
        BRL per USD.
    commodity_price : float, default 140.0
        Price per bag in BRL.
    production : float, default 3600.0
        Production in thousand bags.
    costs : float, default 110.0
        Cost per bag in BRL.
    """

    policy_rate: float
    fx_rate: float
    commodity_price: float = 140.0
    production: float = 3600.0
    costs: float = 110.0


@dataclass
class ScenarioResult:
    """Projected portfolio figures for one scenario."""

    name: str
    assumptions: ScenarioAssumptions
    total_debt: float
    total_cost: float
    avg_rate: float
    dscr: float
    survival_months: int
    refinancing_need: float
    probability: float = 1.0


@dataclass(frozen=True)
class NamedScenario:
    name: str
    assumptions: ScenarioAssumptions
    probability: float


def scenario_rates(
    contracts: pd.DataFrame | list[DebtContract],
    assumptions: ScenarioAssumptions,
    reference_policy_rate: float = REFERENCE_POLICY_RATE,
) -> pd.Series:
    """Contract rates repriced under ``assumptions``."""
    frame = as_contract_frame(contracts)
    if len(frame) == 0:
        return pd.Series(dtype=float)
    shift = assumptions.policy_rate - reference_policy_rate
    floating = frame["rate_type"] == RateType.CDI.value
    return frame["current_rate"].astype(float) + np.where(floating, shift, 0.0)


def scenario_balances(
    contracts: pd.DataFrame | list[DebtContract],
    assumptions: ScenarioAssumptions,
    fx_rates: RateSnapshot | None = None,
) -> pd.Series:
    """
    Contract balances, translated to BRL when ``fx_rates`` is given.

    USD balances use the assumed USD/BRL rate. EUR balances use the
    assumed rate times the snapshot EUR/USD cross rate. Without a
    snapshot balances stay in contract currency.
    """
    frame = as_contract_frame(contracts)
    balance = frame["current_balance"].astype(float)
    if fx_rates is None or len(frame) == 0:
        return balance

    def to_brl(currency: str) -> float:
        if currency == "BRL":
            return 1.0
        return conversion_rate(currency, fx_rates, to="USD") * assumptions.fx_rate

    return balance * frame["currency"].map(to_brl)


def scenario_debt_service(
    contracts: pd.DataFrame | list[DebtContract],
    assumptions: ScenarioAssumptions,
    as_of: date | None = None,
    reference_policy_rate: float = REFERENCE_POLICY_RATE,
    fx_rates: RateSnapshot | None = None,
) -> float:
    """
    Annual debt service under ``assumptions``.

    Per contract: interest = balance * rate / 100, and
    principal = balance / max(1, months to maturity) * 12.

    Parameters
    ----------
    contracts : pd.DataFrame | list[DebtContract]
        Needs current_balance, current_rate, rate_type, maturity_date
        and, with ``fx_rates``, currency.
    assumptions : ScenarioAssumptions
        Scenario inputs.
    as_of : date | None
        Valuation date, defaults to today.
    reference_policy_rate : float, default 13.25
        Policy rate that current CDI rates are priced at.
    fx_rates : RateSnapshot | None
        Cross rates for translating foreign balances into BRL.

    Returns
    -------
    float
        Total interest plus annualised principal.
    """
    frame = as_contract_frame(contracts)
    if len(frame) == 0:
        return 0.0

    balance = scenario_balances(frame, assumptions, fx_rates)
    rate = scenario_rates(frame, assumptions, reference_policy_rate)
    months = months_to_maturity(frame, as_of).clip(lower=1.0)

    interest = balance * rate / 100
    principal = balance / months * 12
    return float((interest + principal).sum())


def survival_months(cash: float, monthly_burn: float, credit_lines: float = 0.0) -> int:
    """
    Whole months the available liquidity covers ``monthly_burn``.

    Returns 999 when burn is zero or negative.

    Examples
    --------
    >>> survival_months(50_000_000, 18_500_000)
    2
    >>> survival_months(50_000_000, 0)
    999
    """
    if monthly_burn <= 0:
        return SURVIVAL_SENTINEL
    return int(np.floor((cash + credit_lines) / monthly_burn))


def run_scenario(
    name: str,
    contracts: pd.DataFrame | list[DebtContract],
    assumptions: ScenarioAssumptions,
    ebitda: float,
    cash: float,
    credit_lines: float = 0.0,
    probability: float = 1.0,
    as_of: date | None = None,
    reference_policy_rate: float = REFERENCE_POLICY_RATE,
    fx_rates: RateSnapshot | None = None,
    refinancing_months: int = 12,
) -> ScenarioResult:
    """
    Project the portfolio under one scenario.

    DSCR is ``ebitda`` over scenario debt service and survival months
    use a monthly burn of one twelfth of it.
    """
    frame = as_contract_frame(contracts)
    debt_service = scenario_debt_service(
        frame, assumptions, as_of, reference_policy_rate, fx_rates
    )

    if len(frame) == 0:
        total_debt = avg_rate = refinancing = 0.0
    else:
        balance = scenario_balances(frame, assumptions, fx_rates)
        rates = scenario_rates(frame, assumptions, reference_policy_rate)
        total_debt = float(balance.sum())
        avg_rate = round(float((balance * rates).sum() / total_debt), 2) if total_debt else 0.0
        refinancing = refinancing_need(
            frame.assign(current_balance=balance), refinancing_months, as_of
        )

    result = ScenarioResult(
        name=name,
        assumptions=assumptions,
        total_debt=total_debt,
        total_cost=debt_service,
        avg_rate=avg_rate,
        dscr=calculate_dscr(ebitda, debt_service),
        survival_months=survival_months(cash, debt_service / 12, credit_lines),
        refinancing_need=refinancing,
        probability=probability,
    )
    logger.info(
        f"Scenario {name}: debt service {debt_service:,.0f}, DSCR {result.dscr}"
    )
    return result


def standard_scenarios(base: ScenarioAssumptions) -> list[NamedScenario]:
    """
    Base, optimistic and pessimistic scenarios around ``base``.

    Optimistic: policy -1.75 pp, FX -10%, commodity +20, production
    +200, costs -5 (probability 0.25). Pessimistic: policy +2.25 pp,
    FX +15%, commodity -20, production -400, costs +15 (probability
    0.15). Base has probability 0.6.
    """
    optimistic = replace(
        base,
        policy_rate=base.policy_rate - 1.75,
        fx_rate=base.fx_rate * 0.9,
        commodity_price=base.commodity_price + 20,
        production=base.production + 200,
        costs=base.costs - 5,
    )
    pessimistic = replace(
        base,
        policy_rate=base.policy_rate + 2.25,
        fx_rate=base.fx_rate * 1.15,
        commodity_price=base.commodity_price - 20,
        production=base.production - 400,
        costs=base.costs + 15,
    )
    return [
        NamedScenario("base", base, 0.6),
        NamedScenario("optimistic", optimistic, 0.25),
        NamedScenario("pessimistic", pessimistic, 0.15),
    ]
