from __future__ import annotations

"""Debt metric calculators.

Pure functions over plain numbers or contract tables (see
data.models.contracts_to_frame). Ratios guard zero denominators by
returning 0; rounding is applied only to the returned value.
"""

import logging
from datetime import date

import numpy as np
import pandas as pd

from ..data.models import DebtContract, contracts_to_frame

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30

# Share of total debt above which a single group is a concentration risk
CONCENTRATION_BANDS = {"A": 15.0, "B": 30.0}


def as_contract_frame(contracts: pd.DataFrame | list[DebtContract]) -> pd.DataFrame:
    """Accept either a contract table or a list of DebtContract."""
    if isinstance(contracts, pd.DataFrame):
        return contracts
    return contracts_to_frame(list(contracts))


def _as_timestamp(as_of: date | None) -> pd.Timestamp:
    return pd.Timestamp(as_of or date.today()).normalize()


def calculate_dscr(ebitda: float, debt_service: float) -> float:
    """
    Debt service coverage ratio.

    Returns 0 when debt service is 0, so "no debt" and "zero coverage"
    read the same.

    Examples
    --------
    >>> calculate_dscr(1_500_000, 1_000_000)
    1.5
    >>> calculate_dscr(1_500_000, 0)
    0.0
    """
    if debt_service == 0:
        return 0.0
    return round(ebitda / debt_service, 2)


def calculate_debt_service(principal: float, interest: float) -> float:
    """Principal plus interest due."""
    return principal + interest


def debt_to_ebitda(total_debt: float, ebitda: float) -> float:
    """Leverage ratio, 0 when EBITDA is 0."""
    if ebitda == 0:
        return 0.0
    return round(total_debt / ebitda, 2)


def liquidity_ratio(current_assets: float, current_liabilities: float) -> float:
    """Current assets over current liabilities, 0 when liabilities are 0."""
    if current_liabilities == 0:
        return 0.0
    return round(current_assets / current_liabilities, 2)


def collateral_coverage(collateral_value: float, debt_amount: float) -> float:
    """Collateral value over debt, 0 when debt is 0."""
    if debt_amount == 0:
        return 0.0
    return round(collateral_value / debt_amount, 2)


def months_to_maturity(
    contracts: pd.DataFrame | list[DebtContract],
    as_of: date | None = None,
) -> pd.Series:
    """
    Remaining months per contract, using 30-day months and clipped at 0.

    Unrounded.
    """
    frame = as_contract_frame(contracts)
    if len(frame) == 0:
        return pd.Series(dtype=float)
    maturity = pd.to_datetime(frame["maturity_date"])
    days = (maturity - _as_timestamp(as_of)).dt.days.astype(float)
    return (days / DAYS_PER_MONTH).clip(lower=0.0)


def weighted_average_rate(contracts: pd.DataFrame | list[DebtContract]) -> float:
    """
    Balance-weighted average rate in percent.

    Parameters
    ----------
    contracts : pd.DataFrame | list[DebtContract]
        Needs ``current_balance`` and ``current_rate``.

    Returns
    -------
    float
        sum(balance * rate) / sum(balance), rounded to 2 decimals.
        0 when the total balance is 0.

    Examples
    --------
    >>> frame = pd.DataFrame({
    ...     "current_balance": [100, 200, 300],
    ...     "current_rate": [10.0, 12.0, 8.0],
    ... })
    >>> weighted_average_rate(frame)
    9.67
    """
    frame = as_contract_frame(contracts)
    if len(frame) == 0:
        return 0.0

    balance = frame["current_balance"].astype(float)
    total = balance.sum()
    if total == 0:
        return 0.0

    weighted = (balance * frame["current_rate"].astype(float)).sum()
    return round(float(weighted / total), 2)


def average_maturity_months(
    contracts: pd.DataFrame | list[DebtContract],
    as_of: date | None = None,
) -> int:
    """
    Balance-weighted average remaining maturity in whole months.

    Returns 0 when the total balance is 0.
    """
    frame = as_contract_frame(contracts)
    if len(frame) == 0:
        return 0

    balance = frame["current_balance"].astype(float)
    total = balance.sum()
    if total == 0:
        return 0

    months = months_to_maturity(frame, as_of)
    return int(round(float((balance * months).sum() / total)))


def currency_exposure(
    contracts: pd.DataFrame | list[DebtContract],
    currency: str,
    exchange_rate: float | dict[str, float],
) -> dict[str, float]:
    """
    Exposure to one foreign currency, in BRL and as a share of total debt.

    Parameters
    ----------
    contracts : pd.DataFrame | list[DebtContract]
        Needs ``currency`` and ``current_balance``.
    currency : str
        Currency of interest, e.g. "USD".
    exchange_rate : float | dict[str, float]
        BRL per unit. A single float is applied to every non-BRL
        balance; a mapping converts each currency at its own rate,
        which keeps the per-currency percentages summing to at most 100.

    Returns
    -------
    dict[str, float]
        ``amount`` (BRL, rounded to integer) and ``percentage`` (1 dp).
    """
    frame = as_contract_frame(contracts)
    if len(frame) == 0:
        return {"amount": 0.0, "percentage": 0.0}

    if isinstance(exchange_rate, dict):
        rates = {**exchange_rate, "BRL": 1.0}
        multiplier = frame["currency"].map(rates).fillna(0.0)
        missing = set(frame["currency"]) - set(rates)
        if missing:
            logger.warning("No exchange rate for %s; excluded from total debt", sorted(missing))
        currency_rate = rates.get(currency, 0.0)
    else:
        multiplier = np.where(frame["currency"] == "BRL", 1.0, float(exchange_rate))
        currency_rate = float(exchange_rate)

    balance = frame["current_balance"].astype(float)
    total = float((balance * multiplier).sum())
    amount = float(balance[frame["currency"] == currency].sum()) * currency_rate
    percentage = amount / total * 100 if total > 0 else 0.0

    return {"amount": float(round(amount)), "percentage": round(percentage, 1)}


def refinancing_need(
    contracts: pd.DataFrame | list[DebtContract],
    months: int = 12,
    as_of: date | None = None,
) -> float:
    """Balance of contracts maturing within ``months`` calendar months."""
    frame = as_contract_frame(contracts)
    if len(frame) == 0:
        return 0.0
    cutoff = _as_timestamp(as_of) + pd.DateOffset(months=months)
    maturing = pd.to_datetime(frame["maturity_date"]) <= cutoff
    return float(frame.loc[maturing, "current_balance"].astype(float).sum())


def days_until(target: date, as_of: date | None = None) -> int:
    """Calendar days from ``as_of`` (default today) to ``target``."""
    return (pd.Timestamp(target).normalize() - _as_timestamp(as_of)).days


def composition_by(
    frame: pd.DataFrame,
    key: str,
    amount_col: str = "current_balance",
    rate_col: str | None = "current_rate",
) -> pd.DataFrame:
    """
    Break a portfolio down by ``key``.

    Parameters
    ----------
    frame : pd.DataFrame
        Contract or payment records.
    key : str
        Grouping column, e.g. "currency" or "institution".
    amount_col : str
        Amount column (already in a common currency).
    rate_col : str | None
        Rate column for the amount-weighted average rate; None skips it.

    Returns
    -------
    pd.DataFrame
        Columns ``key, amount, percentage, count`` and, when rate_col is
        given, ``avg_rate``. Sorted by amount descending.

    Examples
    --------
    >>> composition_by(contracts, "currency")
      currency       amount  percentage  count  avg_rate
    0      BRL  900000000.0        60.0      4     12.10
    """
    columns = [key, "amount", "percentage", "count"] + (["avg_rate"] if rate_col else [])
    if len(frame) == 0:
        return pd.DataFrame(columns=columns)

    work = frame.assign(_amount=frame[amount_col].astype(float))
    if rate_col:
        work["_weighted"] = work["_amount"] * work[rate_col].astype(float)

    grouped = work.groupby(key, sort=False)
    result = pd.DataFrame({
        "amount": grouped["_amount"].sum(),
        "count": grouped.size(),
    })
    total = result["amount"].sum()
    result["percentage"] = result["amount"] / total * 100 if total > 0 else 0.0
    if rate_col:
        weighted = grouped["_weighted"].sum()
        result["avg_rate"] = np.where(result["amount"] > 0, weighted / result["amount"], 0.0)

    result = result.reset_index().sort_values("amount", ascending=False, kind="stable")
    return result[columns].reset_index(drop=True)


def concentration_rating(amount: float, total: float) -> str:
    """
    Concentration band of one group.

    "A" up to 15% of the total, "B" up to 30%, "C" above.
    """
    share = amount / total * 100 if total > 0 else 0.0
    for rating, ceiling in CONCENTRATION_BANDS.items():
        if share <= ceiling:
            return rating
    return "C"
