"""Currency risk metrics - tabulated and parametric VaR, FX sensitivity."""
from __future__ import annotations

import logging

import numpy as np
import pandas as pd
from scipy import stats as scipy_stats

logger = logging.getLogger(__name__)

# One-sided normal quantiles by confidence level in percent
Z_SCORES = {90: 1.282, 95: 1.645, 99: 2.326}
DEFAULT_CONFIDENCE = 95


def currency_var(
    exposure: float,
    volatility: float,
    confidence: int = DEFAULT_CONFIDENCE,
) -> float:
    """Value at Risk of a currency position using the tabulated z-scores.

    VaR = exposure * volatility * z.

    Parameters
    ----------
    exposure : float
        Position size in BRL.
    volatility : float
        Volatility of the exchange rate over the horizon, as a fraction.
    confidence : int, default 95
        90, 95 or 99. Any other value uses the 95% z-score.

    Returns
    -------
    float
        VaR rounded to a whole amount.

    Examples
    --------
    >>> currency_var(1_000_000, 0.15)
    246750.0
    """
    z = Z_SCORES.get(confidence)
    if z is None:
        logger.warning(
            "No z-score for confidence %s; using %s%%", confidence, DEFAULT_CONFIDENCE
        )
        z = Z_SCORES[DEFAULT_CONFIDENCE]
    return float(round(exposure * volatility * z))


def parametric_var(
    exposure: float,
    volatility: float,
    confidence: float = 0.95,
) -> float:
    """Gaussian VaR for any confidence level.

    Parameters
    ----------
    exposure : float
        Position size.
    volatility : float
        Horizon volatility as a fraction.
    confidence : float, default 0.95
        Confidence level in (0, 1).

    Returns
    -------
    float
        exposure * volatility * z, unrounded.
    """
    if not 0 < confidence < 1:
        raise ValueError(
            f"confidence must be in (0, 1), got {confidence}"
        )
    z = scipy_stats.norm.ppf(confidence)
    return float(exposure * volatility * z)


def fx_sensitivity(
    exposure_foreign: float,
    spot: float,
    shocks: list[float] | None = None,
) -> pd.DataFrame:
    """BRL value of a foreign-currency position under FX shocks.

    Parameters
    ----------
    exposure_foreign : float
        Position in foreign currency units.
    spot : float
        Current BRL per unit.
    shocks : list[float] | None
        Relative FX moves. Defaults to -20% .. +20% in 10% steps.

    Returns
    -------
    pd.DataFrame
        Columns ``shock, fx_rate, value_brl, impact_brl``.
    """
    if shocks is None:
        shocks = [-0.20, -0.10, 0.0, 0.10, 0.20]

    shock_arr = np.asarray(shocks, dtype=float)
    fx = spot * (1 + shock_arr)
    base_value = exposure_foreign * spot
    value = exposure_foreign * fx

    return pd.DataFrame({
        "shock": shock_arr,
        "fx_rate": fx,
        "value_brl": value,
        "impact_brl": value - base_value,
    })
