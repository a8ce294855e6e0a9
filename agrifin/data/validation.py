from __future__ import annotations

"""Import checks for normalised debt payments.

Errors block an import; warnings are passed back to the caller with
the import summary.
"""

import logging
from dataclasses import dataclass

import pandas as pd

from .models import Currency

logger = logging.getLogger(__name__)

AMOUNT_COLUMNS = [
    "vlr_capital_parcela",
    "juros_parcela",
    "tot_capital_juros",
    "saldo_capital_parc",
    "saldo_juros_parc",
    "saldo_a_pagar",
]


@dataclass
class ValidationResult:
    """Outcome of validate_payments."""

    is_valid: bool
    errors: list[str]
    warnings: list[str]
    stats: dict[str, int | float]


def validate_payments(
    df: pd.DataFrame,
    required_columns: list[str] | None = None,
) -> ValidationResult:
    """
    Validate normalised debt payment records.

    Missing columns, negative amounts and installment indices beyond the
    installment count are errors. Empty due dates and currency codes
    outside the supported set are warnings.

    Parameters
    ----------
    df : pd.DataFrame
        Output of parse_debt_csv or normalize_payments.
    required_columns : list[str] | None
        Required columns. Defaults to the upsert key plus currency.

    Returns
    -------
    ValidationResult
        Validation result with errors, warnings, and stats.

    Examples
    --------
    >>> result = validate_payments(parse_debt_csv(content))
    >>> result.is_valid
    True
    """
    if required_columns is None:
        required_columns = ["nr_contrato", "parc_current", "vencim_parcela", "moeda"]

    errors: list[str] = []
    warnings: list[str] = []
    stats: dict[str, int | float] = {"total_rows": len(df)}

    missing_cols = set(required_columns) - set(df.columns)
    if missing_cols:
        errors.append(f"Missing required columns: {sorted(missing_cols)}")

    if len(df) == 0:
        warnings.append("DataFrame is empty")
        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            stats=stats,
        )

    if "vencim_parcela" in df.columns:
        due = df["vencim_parcela"]
        null_due = int((due.isna() | (due.astype(str) == "")).sum())
        stats["null_due_dates"] = null_due
        if null_due > 0:
            warnings.append(f"Found {null_due} installments without a due date")

    present_amounts = [c for c in AMOUNT_COLUMNS if c in df.columns]
    if present_amounts:
        negative = int((df[present_amounts] < 0).any(axis=1).sum())
        stats["negative_amounts"] = negative
        if negative > 0:
            errors.append(f"Found {negative} rows with negative amounts")

    if {"parc_current", "parc_total"} <= set(df.columns):
        beyond = int((df["parc_current"] > df["parc_total"]).sum())
        stats["installment_beyond_total"] = beyond
        if beyond > 0:
            errors.append(f"Found {beyond} installments numbered beyond their total")

    if "moeda" in df.columns:
        supported = {c.value for c in Currency}
        unknown = df[~df["moeda"].isin(supported)]
        stats["unknown_currencies"] = len(unknown)
        if len(unknown) > 0:
            codes = sorted(unknown["moeda"].astype(str).unique())
            warnings.append(f"Found {len(unknown)} rows with unsupported currencies {codes}")

    logger.info(
        f"Validated {len(df)} debt payments: {len(errors)} errors, {len(warnings)} warnings"
    )

    return ValidationResult(
        is_valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
        stats=stats,
    )
