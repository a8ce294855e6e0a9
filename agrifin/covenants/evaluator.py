from __future__ import annotations

"""Covenant classification.

Each covenant is classified from the ratio current / required:

- minimum covenants (current must stay >= required):
  ratio >= 1.10 compliant, >= 1.00 warning, else breach
- maximum covenants (current must stay <= required):
  ratio <= 0.90 compliant, <= 1.00 warning, else breach

The portfolio status is the worst individual status. Classification is
stateless and reapplied on every recomputation.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import Literal

from ..data.models import ContractCovenant, CovenantStatus, DebtContract

logger = logging.getLogger(__name__)

COMPLIANT_MIN_RATIO = 1.10
COMPLIANT_MAX_RATIO = 0.90
WARNING_RATIO = 1.00

# Ratios are compared after rounding so that exact 110% and 90% hold
RATIO_DECIMALS = 10

# Worse statuses rank higher
SEVERITY = {
    CovenantStatus.COMPLIANT: 0,
    CovenantStatus.WARNING: 1,
    CovenantStatus.BREACH: 2,
}


def classify_covenant(
    current: float,
    required: float,
    kind: Literal["min", "max"] = "min",
) -> CovenantStatus:
    """
    Classify a covenant measurement.

    Parameters
    ----------
    current : float
        Measured value.
    required : float
        Contractual threshold, must be positive.
    kind : {"min", "max"}, default "min"
        Whether the threshold is a floor or a ceiling.

    Returns
    -------
    CovenantStatus
        COMPLIANT, WARNING or BREACH.

    Raises
    ------
    ValueError
        If ``required`` is not positive or ``kind`` is unknown.

    Examples
    --------
    >>> classify_covenant(1.375, 1.25)
    <CovenantStatus.COMPLIANT: 'compliant'>
    >>> classify_covenant(3.5, 3.5, kind="max")
    <CovenantStatus.WARNING: 'warning'>
    """
    if required <= 0:
        raise ValueError(f"Covenant threshold must be positive, got {required}")

    ratio = round(current / required, RATIO_DECIMALS)

    if kind == "min":
        if ratio >= COMPLIANT_MIN_RATIO:
            return CovenantStatus.COMPLIANT
        if ratio >= WARNING_RATIO:
            return CovenantStatus.WARNING
        return CovenantStatus.BREACH

    if kind == "max":
        if ratio <= COMPLIANT_MAX_RATIO:
            return CovenantStatus.COMPLIANT
        if ratio <= WARNING_RATIO:
            return CovenantStatus.WARNING
        return CovenantStatus.BREACH

    raise ValueError(f"Unknown covenant kind: {kind!r}")


def overall_status(statuses: Iterable[CovenantStatus | str]) -> CovenantStatus:
    """
    Worst status among ``statuses``: breach > warning > compliant.

    An empty collection is compliant.
    """
    worst = CovenantStatus.COMPLIANT
    for status in statuses:
        status = CovenantStatus(status)
        if status not in SEVERITY:
            raise ValueError(f"Not an evaluator status: {status.value!r}")
        if SEVERITY[status] > SEVERITY[worst]:
            worst = status
    return worst


def evaluate_covenant(covenant: ContractCovenant) -> ContractCovenant:
    """Return a copy of ``covenant`` with its status re-derived."""
    status = classify_covenant(covenant.current, covenant.required, covenant.kind)
    return replace(covenant, status=status)


def evaluate_contract_covenants(contract: DebtContract) -> DebtContract:
    """
    Re-derive every covenant status of ``contract``.

    Returns
    -------
    DebtContract
        Copy with evaluated covenants. The input is not modified.
    """
    evaluated = [evaluate_covenant(c) for c in contract.covenants]
    worst = overall_status(c.status for c in evaluated)
    if worst is not CovenantStatus.COMPLIANT:
        logger.warning(
            "Contract %s covenants in %s", contract.contract_number, worst.value
        )
    return replace(contract, covenants=evaluated)


def portfolio_covenant_status(contracts: Iterable[DebtContract]) -> CovenantStatus:
    """Worst covenant status across all contracts."""
    return overall_status(
        evaluate_covenant(c).status for contract in contracts for c in contract.covenants
    )
