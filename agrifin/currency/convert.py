"""Currency conversion over a rate snapshot.

All rates are quoted per USD, so any pair converts through USD:
rate(from -> to) = per_usd[to] / per_usd[from]. Currency labels from
the debt export (R$, US$, €UR) are accepted as aliases.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

import pandas as pd

from ..data.cleaners import normalize_currency_code
from ..data.models import Currency
from .rates import FALLBACK_RATES, RateSnapshot

logger = logging.getLogger(__name__)

SUPPORTED_CURRENCIES = frozenset(c.value for c in Currency)


class UnsupportedCurrencyError(ValueError):
    """Raised for currency codes outside the supported set."""


@dataclass(frozen=True)
class Conversion:
    """A single conversion and the rate it used."""

    from_currency: str
    to_currency: str
    amount: float
    result: float
    rate: float
    date: str


def _iso_code(currency: str) -> str:
    code = normalize_currency_code(currency, default="")
    if code not in SUPPORTED_CURRENCIES:
        raise UnsupportedCurrencyError(f"Unsupported currency: {currency!r}")
    return code


def _per_usd(snapshot: RateSnapshot, code: str) -> float:
    value = snapshot.rate(code)
    if value is None:
        value = FALLBACK_RATES[code]
        if code != "USD":
            logger.warning(
                "Snapshot %s has no %s rate; using fallback %.4f", snapshot.date, code, value
            )
    return value


def conversion_rate(from_currency: str, snapshot: RateSnapshot, to: str = "BRL") -> float:
    """
    Units of ``to`` per unit of ``from_currency``.

    Raises
    ------
    UnsupportedCurrencyError
        If either code is not BRL, USD or EUR (or an export alias).

    Examples
    --------
    >>> conversion_rate("US$", snapshot)   # snapshot BRL=5.0
    5.0
    """
    source, target = _iso_code(from_currency), _iso_code(to)
    if source == target:
        return 1.0
    return _per_usd(snapshot, target) / _per_usd(snapshot, source)


def convert(
    amount: float,
    from_currency: str,
    snapshot: RateSnapshot,
    to: str = "BRL",
) -> Conversion:
    """
    Convert ``amount`` into ``to`` using ``snapshot``.

    Parameters
    ----------
    amount : float
        Amount in ``from_currency``.
    from_currency : str
        ISO code or export alias.
    snapshot : RateSnapshot
        USD-based rates.
    to : str, default "BRL"
        Target currency.

    Returns
    -------
    Conversion
    """
    rate = conversion_rate(from_currency, snapshot, to)
    return Conversion(
        from_currency=from_currency,
        to_currency=_iso_code(to),
        amount=amount,
        result=amount * rate,
        rate=rate,
        date=snapshot.date,
    )


def convert_many(
    items: Iterable[tuple[float, str]],
    snapshot: RateSnapshot,
    to: str = "BRL",
) -> list[Conversion]:
    """Convert (amount, currency) pairs, preserving input order."""
    return [convert(amount, currency, snapshot, to) for amount, currency in items]


def convert_column(
    frame: pd.DataFrame,
    snapshot: RateSnapshot,
    amount_col: str = "current_balance",
    currency_col: str = "currency",
    to: str = "BRL",
) -> pd.Series:
    """Row-wise conversion of ``amount_col`` into ``to``."""
    if len(frame) == 0:
        return pd.Series(dtype=float, index=frame.index)
    rates = frame[currency_col].map(lambda c: conversion_rate(c, snapshot, to))
    return frame[amount_col].astype(float) * rates


def fallback_multipliers(
    to: str = "BRL",
    rates: dict[str, float] | None = None,
) -> dict[str, float]:
    """
    Conversion multipliers into ``to`` derived from a per-USD table.

    ``rates`` defaults to FALLBACK_RATES; pass Settings.fallback_rates
    to follow the configured table.

    Examples
    --------
    >>> fallback_multipliers()["USD"]
    5.5
    """
    table = FALLBACK_RATES if rates is None else rates
    target = _iso_code(to)
    return {
        code: table[target] / table[code]
        for code in sorted(SUPPORTED_CURRENCIES)
    }


def current_rates(snapshot: RateSnapshot) -> dict[str, float | str]:
    """Display rates: USD and EUR in BRL, snapshot date and source."""
    return {
        "usd_to_brl": conversion_rate("USD", snapshot),
        "eur_to_brl": conversion_rate("EUR", snapshot),
        "last_updated": snapshot.date,
        "source": snapshot.source,
    }
