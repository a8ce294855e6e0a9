"""agrifin Currency Package - Exchange rates and conversion.

Public API:
- RateCache: Injected snapshot cache with a freshness window
- fetch_exchange_rates: Fetch USD-based rates, returning a RateResult
- fallback_snapshot: Snapshot built from FALLBACK_RATES
- convert / convert_many: Convert amounts through a snapshot
- current_rates: USD/EUR to BRL display rates
"""

from .rates import (
    FALLBACK_RATES,
    RateCache,
    RateErrorKind,
    RateResult,
    RateSnapshot,
    fallback_snapshot,
    fetch_exchange_rates,
)
from .convert import (
    Conversion,
    UnsupportedCurrencyError,
    conversion_rate,
    convert,
    convert_column,
    convert_many,
    current_rates,
    fallback_multipliers,
)

__all__ = [
    "FALLBACK_RATES",
    "RateCache",
    "RateErrorKind",
    "RateResult",
    "RateSnapshot",
    "fallback_snapshot",
    "fetch_exchange_rates",
    "Conversion",
    "UnsupportedCurrencyError",
    "conversion_rate",
    "convert",
    "convert_column",
    "convert_many",
    "current_rates",
    "fallback_multipliers",
]
