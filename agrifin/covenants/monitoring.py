"""Portfolio covenant monitoring view.

Builds the DSCR, Debt/EBITDA and current-ratio panel. Compliant
metrics are shown as "good"; a metric without a current value is
"unknown" with a warning instead of being guessed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from ..data.config import Settings
from ..data.models import CovenantStatus
from ..metrics.financial import percentage_change, trend_direction
from .evaluator import classify_covenant

logger = logging.getLogger(__name__)

MISSING_WARNINGS = {
    "dscr": "DSCR cannot be calculated: EBITDA data required",
    "debt_to_ebitda": "Debt/EBITDA cannot be calculated: EBITDA data required",
    "current_ratio": "Current ratio cannot be calculated: balance sheet data required",
}

NO_DATA_WARNING = (
    "Covenant data is not available in the imported records. "
    "Import financial statements for full monitoring."
)


@dataclass
class CovenantMetric:
    """One monitored covenant metric."""

    current: float | None
    required: float
    kind: Literal["min", "max"]
    status: CovenantStatus
    trend: str
    warning: str | None = None

    def to_dict(self) -> dict[str, Any]:
        bound = "minimum" if self.kind == "min" else "maximum"
        data: dict[str, Any] = {
            "current": self.current,
            "required": self.required,
            bound: self.required,
            "status": self.status.value,
            "trend": self.trend,
        }
        if self.warning:
            data["warning"] = self.warning
        return data


@dataclass
class CovenantMonitoring:
    """Monitoring panel for the portfolio covenants."""

    dscr: CovenantMetric
    debt_to_ebitda: CovenantMetric
    current_ratio: CovenantMetric
    last_updated: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @property
    def has_data(self) -> bool:
        return all(m.current is not None for m in self.metrics().values())

    def metrics(self) -> dict[str, CovenantMetric]:
        return {
            "dscr": self.dscr,
            "debt_to_ebitda": self.debt_to_ebitda,
            "current_ratio": self.current_ratio,
        }

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {k: m.to_dict() for k, m in self.metrics().items()}
        data["last_updated"] = self.last_updated
        data["has_data"] = self.has_data
        if not self.has_data:
            data["data_warning"] = NO_DATA_WARNING
        return data


def monitor_metric(
    name: str,
    current: float | None,
    required: float,
    kind: Literal["min", "max"],
    previous: float | None = None,
) -> CovenantMetric:
    """
    Build one monitored metric.

    Trend compares ``current`` with ``previous`` and is "stable" when no
    previous value exists.
    """
    if current is None:
        return CovenantMetric(
            current=None,
            required=required,
            kind=kind,
            status=CovenantStatus.UNKNOWN,
            trend="unknown",
            warning=MISSING_WARNINGS.get(name, f"{name} cannot be calculated"),
        )

    status = classify_covenant(current, required, kind)
    if status is CovenantStatus.COMPLIANT:
        status = CovenantStatus.GOOD

    trend = "stable"
    if previous is not None:
        trend = trend_direction(percentage_change(current, previous)).value

    return CovenantMetric(current=current, required=required, kind=kind, status=status, trend=trend)


def build_covenant_monitoring(
    dscr: float | None,
    debt_to_ebitda: float | None,
    current_ratio: float | None,
    thresholds: Settings | None = None,
    previous: dict[str, float] | None = None,
) -> CovenantMonitoring:
    """
    Build the covenant monitoring panel.

    Parameters
    ----------
    dscr, debt_to_ebitda, current_ratio : float | None
        Current values, None when the inputs needed are unavailable.
    thresholds : Settings | None
        Source of dscr_min, debt_to_ebitda_max and current_ratio_min.
        Defaults to Settings().
    previous : dict[str, float] | None
        Prior values keyed by metric name, for trends.

    Returns
    -------
    CovenantMonitoring

    Examples
    --------
    >>> view = build_covenant_monitoring(None, None, None)
    >>> view.has_data, view.dscr.status.value
    (False, 'unknown')
    """
    settings = thresholds or Settings()
    previous = previous or {}

    view = CovenantMonitoring(
        dscr=monitor_metric("dscr", dscr, settings.dscr_min, "min", previous.get("dscr")),
        debt_to_ebitda=monitor_metric(
            "debt_to_ebitda",
            debt_to_ebitda,
            settings.debt_to_ebitda_max,
            "max",
            previous.get("debt_to_ebitda"),
        ),
        current_ratio=monitor_metric(
            "current_ratio",
            current_ratio,
            settings.current_ratio_min,
            "min",
            previous.get("current_ratio"),
        ),
    )

    if not view.has_data:
        logger.warning("Covenant monitoring built without complete data")

    return view
