"""General financial ratios and KPI helpers.

Percent-valued results are returned in percent (12.5, not 0.125) and
unrounded. Zero denominators return 0 unless noted.
"""

from __future__ import annotations

from enum import Enum


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class KPIStatus(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


def percentage_change(current: float, previous: float) -> float:
    """
    Percent change from ``previous`` to ``current``.

    Examples
    --------
    >>> percentage_change(110, 100)
    10.0
    """
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


def trend_direction(change_pct: float, threshold: float = 0.5) -> Trend:
    """Moves smaller than ``threshold`` percent are stable."""
    if abs(change_pct) < threshold:
        return Trend.STABLE
    return Trend.UP if change_pct > 0 else Trend.DOWN


def kpi_status(
    value: float,
    target: float | None = None,
    benchmark: float | None = None,
    higher_is_better: bool = True,
) -> KPIStatus:
    """
    Grade a KPI against its target (or benchmark when no target).

    Variance of 10% or more in the favourable direction is excellent,
    up to 10% unfavourable is warning, worse is critical. Without a
    reference value the KPI is good.
    """
    reference = target or benchmark
    if not reference:
        return KPIStatus.GOOD

    variance = (value - reference) / reference * 100
    if not higher_is_better:
        variance = -variance

    if variance >= 10:
        return KPIStatus.EXCELLENT
    if variance >= 0:
        return KPIStatus.GOOD
    if variance >= -10:
        return KPIStatus.WARNING
    return KPIStatus.CRITICAL


def ebitda(revenue: float, operating_costs: float, administrative_costs: float) -> float:
    return revenue - operating_costs - administrative_costs


def margin(profit: float, revenue: float) -> float:
    if revenue == 0:
        return 0.0
    return profit / revenue * 100


def return_on_equity(net_income: float, equity: float) -> float:
    if equity == 0:
        return 0.0
    return net_income / equity * 100


def return_on_invested_capital(nopat: float, invested_capital: float) -> float:
    if invested_capital == 0:
        return 0.0
    return nopat / invested_capital * 100


def economic_value_added(nopat: float, wacc_pct: float, invested_capital: float) -> float:
    """NOPAT minus the capital charge; ``wacc_pct`` in percent."""
    return nopat - wacc_pct / 100 * invested_capital


def debt_to_equity(total_debt: float, equity: float) -> float:
    if equity == 0:
        return 0.0
    return total_debt / equity


def current_ratio(current_assets: float, current_liabilities: float) -> float:
    if current_liabilities == 0:
        return 0.0
    return current_assets / current_liabilities


def working_capital(current_assets: float, current_liabilities: float) -> float:
    return current_assets - current_liabilities


def cash_conversion_cycle(
    inventory_days: float,
    receivables_days: float,
    payables_days: float,
) -> float:
    """
    Days between paying suppliers and collecting from customers.

    DIO + DSO - DPO.

    Examples
    --------
    >>> cash_conversion_cycle(95, 45, 60)
    80
    """
    return inventory_days + receivables_days - payables_days


def per_hectare(total: float, hectares: float) -> float:
    """Cost or revenue per hectare."""
    if hectares == 0:
        return 0.0
    return total / hectares


def break_even_bags(cost_per_hectare: float, price_per_bag: float) -> float:
    """Bags per hectare needed to cover cost."""
    if price_per_bag == 0:
        return 0.0
    return cost_per_hectare / price_per_bag


def safety_margin(actual_yield: float, break_even_yield: float) -> float:
    """
    Share of the actual yield above break-even, in percent.

    100 when the break-even yield is 0; 0 when the actual yield is 0.
    """
    if break_even_yield == 0:
        return 100.0
    if actual_yield == 0:
        return 0.0
    return (actual_yield - break_even_yield) / actual_yield * 100
