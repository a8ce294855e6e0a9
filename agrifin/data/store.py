from __future__ import annotations

"""In-memory payment storage.

PaymentStore stands in for the hosted database table. Records are
upserted on the installment key (contract number, installment index,
due date). Imports are written in sequential batches with no rollback:
when a batch fails, the batches before it stay committed.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import pandas as pd

from .models import PAYMENT_COLUMNS, PAYMENT_KEY, PaymentStatus, StatusSource

logger = logging.getLogger(__name__)

PaymentKey = tuple[str, int, str]


def payment_key(record: dict[str, Any]) -> PaymentKey:
    """
    Build the upsert key of a payment record.

    Raises
    ------
    ValueError
        If the contract number or due date is empty.
    """
    contract, parc, due = (record.get(k) for k in PAYMENT_KEY)
    if not contract or not due:
        raise ValueError(
            f"Payment record needs nr_contrato and vencim_parcela, got {contract!r}/{due!r}"
        )
    return str(contract), int(parc), str(due)


class PaymentStore:
    """Keyed in-memory payment table."""

    def __init__(self) -> None:
        self._rows: dict[PaymentKey, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def upsert(self, records: list[dict[str, Any]]) -> int:
        """
        Insert or replace records. The whole batch is validated first.

        Returns
        -------
        int
            Number of records written.
        """
        keyed = [(payment_key(r), r) for r in records]
        for key, record in keyed:
            self._rows[key] = {col: record.get(col) for col in PAYMENT_COLUMNS}
        return len(keyed)

    def get(self, key: PaymentKey) -> dict[str, Any] | None:
        row = self._rows.get(key)
        return dict(row) if row is not None else None

    def update_status(
        self,
        key: PaymentKey,
        status: str,
        payment_date: date | None = None,
    ) -> dict[str, Any]:
        """
        Record a confirmed status for one installment.

        Confirmed statuses replace the date-based inference.

        Raises
        ------
        KeyError
            If no installment has this key.
        """
        if key not in self._rows:
            raise KeyError(f"Unknown payment {key}")
        row = self._rows[key]
        row["status"] = PaymentStatus(status).value
        row["status_source"] = StatusSource.CONFIRMED.value
        row["payment_date"] = payment_date.isoformat() if payment_date else None
        return dict(row)

    def to_frame(self) -> pd.DataFrame:
        """All records ordered by due date."""
        if not self._rows:
            return pd.DataFrame(columns=PAYMENT_COLUMNS)
        frame = pd.DataFrame(list(self._rows.values()))
        return frame.sort_values("vencim_parcela", kind="stable").reset_index(drop=True)

    def query(
        self,
        start_date: str | None = None,
        end_date: str | None = None,
        currency: str | None = None,
        institution: str | None = None,
    ) -> pd.DataFrame:
        """
        Filter records by due-date range (inclusive), currency and institution.

        Dates are ISO strings. None disables a filter.
        """
        frame = self.to_frame()
        if len(frame) == 0:
            return frame

        mask = pd.Series(True, index=frame.index)
        if start_date is not None:
            mask &= frame["vencim_parcela"] >= start_date
        if end_date is not None:
            mask &= frame["vencim_parcela"] <= end_date
        if currency is not None:
            mask &= frame["moeda"] == currency
        if institution is not None:
            mask &= frame["agente"] == institution

        return frame.loc[mask].reset_index(drop=True)


@dataclass
class ImportResult:
    """Outcome of a batched import."""

    success: bool
    imported: int
    batches_committed: int
    error: str | None = None
    batch_sizes: list[int] = field(default_factory=list)


def import_payments(
    store: PaymentStore,
    payments: pd.DataFrame,
    batch_size: int = 100,
) -> ImportResult:
    """
    Upsert payments into the store in sequential batches.

    A failing batch stops the import. Earlier batches remain committed
    and are reported in ``imported``; there is no rollback.

    Parameters
    ----------
    store : PaymentStore
        Target store.
    payments : pd.DataFrame
        Normalised payment records.
    batch_size : int, default 100
        Records per batch.

    Returns
    -------
    ImportResult
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    records = payments.to_dict(orient="records")
    imported = 0
    sizes: list[int] = []

    for start in range(0, len(records), batch_size):
        batch = records[start : start + batch_size]
        batch_number = start // batch_size + 1
        try:
            imported += store.upsert(batch)
        except (ValueError, KeyError) as exc:
            logger.error(f"Error importing batch {batch_number}: {exc}")
            return ImportResult(
                success=False,
                imported=imported,
                batches_committed=len(sizes),
                error=str(exc),
                batch_sizes=sizes,
            )
        sizes.append(len(batch))

    logger.info(f"Imported {imported} debt payments in {len(sizes)} batches")

    return ImportResult(
        success=True,
        imported=imported,
        batches_committed=len(sizes),
        batch_sizes=sizes,
    )
