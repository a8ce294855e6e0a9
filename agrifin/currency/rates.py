from __future__ import annotations

"""Exchange-rate fetching and caching.

Rates are USD-based snapshots from a public endpoint. The snapshot is
held in an injected RateCache for a fixed freshness window. Fetch
failures are returned as a RateResult error instead of being replaced
by fallback rates; callers decide whether to fall back.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable

import httpx

from ..data.config import DEFAULT_FALLBACK_RATES

logger = logging.getLogger(__name__)

DEFAULT_RATE_URL = "https://api.exchangerate-api.com/v4/latest/USD"
LIVE_SOURCE = "ExchangeRate-API"
FALLBACK_SOURCE = "Fallback"

# Units of each currency per 1 USD. Every fallback conversion derives from this.
FALLBACK_RATES: dict[str, float] = dict(DEFAULT_FALLBACK_RATES)


@dataclass(frozen=True)
class RateSnapshot:
    """USD-based exchange rates at a point in time."""

    base: str
    date: str
    rates: dict[str, float]
    source: str = LIVE_SOURCE

    def rate(self, currency: str) -> float | None:
        """Units of ``currency`` per base unit, or None if absent."""
        value = self.rates.get(currency)
        return float(value) if value else None


class RateErrorKind(str, Enum):
    """Why a rate fetch failed."""

    NETWORK = "network"
    HTTP_STATUS = "http_status"
    BAD_PAYLOAD = "bad_payload"


@dataclass
class RateResult:
    """Outcome of a rate fetch: a snapshot or an error kind."""

    snapshot: RateSnapshot | None = None
    error: RateErrorKind | None = None
    message: str = ""
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.snapshot is not None

    def unwrap_or(self, default: RateSnapshot) -> RateSnapshot:
        """Return the snapshot, or ``default`` when the fetch failed."""
        return self.snapshot if self.snapshot is not None else default


@dataclass
class RateCache:
    """
    Holds the last fetched snapshot for ``ttl_seconds``.

    Parameters
    ----------
    ttl_seconds : float, default 300.0
        Freshness window.
    clock : Callable[[], float]
        Monotonic seconds source, injectable for tests.

    Examples
    --------
    >>> cache = RateCache(ttl_seconds=300)
    >>> cache.put(snapshot)
    >>> cache.get() is snapshot
    True
    """

    ttl_seconds: float = 300.0
    clock: Callable[[], float] = field(default=time.monotonic)
    _snapshot: RateSnapshot | None = field(default=None, init=False, repr=False)
    _fetched_at: float | None = field(default=None, init=False, repr=False)

    def put(self, snapshot: RateSnapshot) -> None:
        self._snapshot = snapshot
        self._fetched_at = self.clock()

    def is_fresh(self) -> bool:
        if self._snapshot is None or self._fetched_at is None:
            return False
        return self.clock() - self._fetched_at < self.ttl_seconds

    def get(self) -> RateSnapshot | None:
        """Cached snapshot while fresh, else None."""
        return self._snapshot if self.is_fresh() else None

    def clear(self) -> None:
        self._snapshot = None
        self._fetched_at = None


def fallback_snapshot(
    today: date | None = None,
    rates: dict[str, float] | None = None,
) -> RateSnapshot:
    """Snapshot built from ``rates`` (default FALLBACK_RATES), dated today."""
    today = today or date.today()
    return RateSnapshot(
        base="USD",
        date=today.isoformat(),
        rates=dict(FALLBACK_RATES if rates is None else rates),
        source=FALLBACK_SOURCE,
    )


def parse_rate_payload(payload: Any) -> RateSnapshot:
    """
    Build a snapshot from an exchange-rate API response body.

    Raises
    ------
    ValueError
        If the body is not an object with a numeric ``rates`` mapping,
        or the API flags the response as unsuccessful.
    """
    if not isinstance(payload, dict):
        raise ValueError("Rate payload is not a JSON object")
    if payload.get("success") is False:
        raise ValueError("API returned error response")

    rates = payload.get("rates")
    if not isinstance(rates, dict) or not rates:
        raise ValueError("Rate payload has no rates")

    try:
        parsed = {str(k): float(v) for k, v in rates.items()}
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Non-numeric rate in payload: {exc}") from exc

    return RateSnapshot(
        base=str(payload.get("base", "USD")),
        date=str(payload.get("date") or date.today().isoformat()),
        rates=parsed,
        source=LIVE_SOURCE,
    )


def _request(client: httpx.Client, url: str) -> RateResult:
    try:
        response = client.get(url, headers={"Accept": "application/json"})
        response.raise_for_status()
        snapshot = parse_rate_payload(response.json())
    except httpx.HTTPStatusError as e:
        logger.error(f"Exchange-rate HTTP error {e.response.status_code} for {url}")
        return RateResult(error=RateErrorKind.HTTP_STATUS, message=str(e))
    except httpx.RequestError as e:
        logger.error(f"Exchange-rate request error for {url}: {e}")
        return RateResult(error=RateErrorKind.NETWORK, message=str(e))
    except ValueError as e:
        logger.error(f"Exchange-rate payload error for {url}: {e}")
        return RateResult(error=RateErrorKind.BAD_PAYLOAD, message=str(e))

    return RateResult(snapshot=snapshot)


def fetch_exchange_rates(
    cache: RateCache,
    client: httpx.Client | None = None,
    url: str = DEFAULT_RATE_URL,
    timeout: float = 10.0,
) -> RateResult:
    """
    Return the cached snapshot while fresh, otherwise fetch a new one.

    A successful fetch replaces the cached snapshot. Failures leave the
    cache untouched and are not retried.

    Parameters
    ----------
    cache : RateCache
        Snapshot cache.
    client : httpx.Client | None
        HTTP client. A short-lived client with ``timeout`` is created
        when None.
    url : str
        Endpoint returning ``{base, date, rates}``.
    timeout : float, default 10.0
        Request timeout in seconds for the created client.

    Returns
    -------
    RateResult

    Examples
    --------
    >>> result = fetch_exchange_rates(RateCache())
    >>> snapshot = result.unwrap_or(fallback_snapshot())
    """
    cached = cache.get()
    if cached is not None:
        return RateResult(snapshot=cached, from_cache=True)

    if client is None:
        with httpx.Client(timeout=timeout) as owned:
            result = _request(owned, url)
    else:
        result = _request(client, url)

    if result.snapshot is not None:
        cache.put(result.snapshot)
        logger.info(f"Fetched exchange rates dated {result.snapshot.date}")

    return result
