"""Backfill estimator for past installments.

The debt export only lists outstanding installments. For dashboards that
need a full schedule, this module fabricates the earlier installments of
each contract by walking backward month by month from the earliest known
one. The rows are synthetic estimates, not ground truth: they are always
flagged ``is_synthetic=True`` and their "paid" status is assumed.
"""

import logging

import pandas as pd

from .models import PAYMENT_COLUMNS, PaymentStatus, StatusSource

logger = logging.getLogger(__name__)


def backfill_past_installments(payments: pd.DataFrame) -> pd.DataFrame:
    """
    Estimate the installments that precede each contract's known schedule.

    For every contract the installment with the lowest index is the
    anchor. Installments 1 .. anchor-1 are generated with the anchor's
    amounts, one month apart, ending one month before the anchor due
    date. Month arithmetic clamps to month end (31 Mar - 1 month is
    28/29 Feb).

    Parameters
    ----------
    payments : pd.DataFrame
        Normalised payment records (PAYMENT_COLUMNS).

    Returns
    -------
    pd.DataFrame
        Synthetic records only, with status "paid",
        status_source "inferred" and is_synthetic True.

    Examples
    --------
    >>> known = parse_debt_csv(content)   # contract at installment (3/12)
    >>> backfill_past_installments(known)["parc_current"].tolist()
    [1, 2]
    """
    if len(payments) == 0:
        return pd.DataFrame(columns=PAYMENT_COLUMNS)

    generated: list[dict] = []

    for contract_number, group in payments.groupby("nr_contrato", sort=False):
        dated = group[group["vencim_parcela"].astype(bool)]
        if len(dated) == 0:
            logger.warning(
                "backfill: contract %s has no dated installment, skipping", contract_number
            )
            continue

        anchor = dated.sort_values(["parc_current", "vencim_parcela"]).iloc[0].to_dict()
        anchor_due = pd.Timestamp(anchor["vencim_parcela"])
        anchor_index = int(anchor["parc_current"])

        for parc in range(1, anchor_index):
            past_due = anchor_due - pd.DateOffset(months=anchor_index - parc)
            record = dict(anchor)
            record.update(
                parc_current=parc,
                vencim_parcela=past_due.date().isoformat(),
                ano=past_due.year,
                mes=past_due.month,
                dia=past_due.day,
                status=PaymentStatus.PAID.value,
                status_source=StatusSource.INFERRED.value,
                is_synthetic=True,
            )
            generated.append(record)

    logger.info(f"Backfilled {len(generated)} synthetic installments")

    return pd.DataFrame(generated, columns=PAYMENT_COLUMNS)


def with_backfill(payments: pd.DataFrame) -> pd.DataFrame:
    """
    Combine known installments with their backfilled history.

    Returns
    -------
    pd.DataFrame
        Known and synthetic records sorted by contract and installment.
    """
    synthetic = backfill_past_installments(payments)
    if len(synthetic) == 0:
        return payments.reset_index(drop=True)

    combined = pd.concat([synthetic, payments], ignore_index=True)
    combined = combined.sort_values(["nr_contrato", "parc_current"], kind="stable")
    return combined.reset_index(drop=True)
