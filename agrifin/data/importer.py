from __future__ import annotations

"""Debt-schedule import utilities.

The bank debt-schedule export is a semicolon-separated text file with a
fixed 22-column header, one row per scheduled installment. This module
parses it into normalised payment records (see models.PAYMENT_COLUMNS).

Payment status is inferred from the due date alone: the export carries
no payment confirmation, so every parsed row is tagged
``status_source="inferred"``.
"""

import io
import logging
from datetime import date
from pathlib import Path
from typing import Any

import pandas as pd

from .cleaners import (
    clean_currency_value,
    clean_percentage_value,
    normalize_currency_code,
    parse_br_date,
    parse_installment,
    parse_int,
    parse_rollover,
)
from .models import PAYMENT_COLUMNS, PaymentStatus, StatusSource

logger = logging.getLogger(__name__)

DELIMITER = ";"

RAW_COLUMNS = [
    "AGENTE",
    "MODALIDADE",
    "NR.CONTRATO",
    "TX. JUR.",
    "OBJETO FINANCIADO",
    "DATA CONTRATO",
    "MOE",
    "PARC",
    "VENCIM. PARCELA",
    "ANO",
    "MÊS",
    "DIA",
    "VLR. CAPITAL PARCELA",
    "JUROS PARCELA",
    "TOT. CAPITAL + JUROS",
    "SALDO(Capital) Parc.",
    "SALDO(Juros) Parc.",
    "SALDO A PAGAR",
    "ROLAGEM?",
    "CAMBIO",
    "VALOR A PAGAR EM REAIS",
    "DOCUMENTO",
]

# Money columns: raw header -> normalised field
MONEY_COLUMNS = {
    "VLR. CAPITAL PARCELA": "vlr_capital_parcela",
    "JUROS PARCELA": "juros_parcela",
    "TOT. CAPITAL + JUROS": "tot_capital_juros",
    "SALDO(Capital) Parc.": "saldo_capital_parc",
    "SALDO(Juros) Parc.": "saldo_juros_parc",
    "SALDO A PAGAR": "saldo_a_pagar",
}


def infer_payment_status(due_date: str | date, today: date | None = None) -> str:
    """
    Infer an installment status from its due date.

    Future due dates are pending, everything else is overdue. No
    payment confirmation exists in the source, so a past installment
    that was actually paid is still reported as overdue.

    Parameters
    ----------
    due_date : str | date
        ISO date string or date.
    today : date | None
        Reference date. Defaults to date.today().

    Returns
    -------
    str
        "pending" or "overdue".
    """
    today = today or date.today()
    due = date.fromisoformat(due_date) if isinstance(due_date, str) else due_date
    if due > today:
        return PaymentStatus.PENDING.value
    return PaymentStatus.OVERDUE.value


def read_debt_csv(text: str) -> pd.DataFrame:
    """
    Read export text into a raw string table.

    Blank lines are skipped and quoted cells may contain the delimiter.
    Short rows are padded with empty cells and surplus cells are
    dropped, so every row has one cell per header.

    Parameters
    ----------
    text : str
        Full file content including the header line.

    Returns
    -------
    pd.DataFrame
        All-string DataFrame with the file's (stripped) header names.
    """
    text = text.lstrip("\ufeff")
    if not text.strip():
        return pd.DataFrame(columns=RAW_COLUMNS)

    options = {"sep": DELIMITER, "dtype": str, "keep_default_na": False, "skip_blank_lines": True}
    headers = list(pd.read_csv(io.StringIO(text), nrows=0, **options).columns)
    raw = pd.read_csv(
        io.StringIO(text),
        index_col=False,
        engine="python",
        on_bad_lines=lambda cells: cells[: len(headers)],
        **options,
    )

    raw = raw.fillna("")
    raw.columns = [str(h).strip() for h in raw.columns]
    for col in raw.columns:
        raw[col] = raw[col].astype(str).str.strip()
    return raw


def normalize_payment(raw: dict[str, Any], today: date | None = None) -> dict[str, Any]:
    """
    Normalise one raw row (header -> cell) into a payment record.

    Missing or malformed cells default to 0, None or (1, 1) rather
    than raising.
    """
    today = today or date.today()

    def cell(name: str) -> str:
        value = raw.get(name)
        return "" if value is None or pd.isna(value) else str(value).strip()

    installment = parse_installment(cell("PARC"))
    due = parse_br_date(cell("VENCIM. PARCELA"))
    due_date = date.fromisoformat(due) if due else None
    amount_in_reais = clean_currency_value(cell("VALOR A PAGAR EM REAIS"))

    record: dict[str, Any] = {
        "agente": cell("AGENTE"),
        "modalidade": cell("MODALIDADE"),
        "nr_contrato": cell("NR.CONTRATO"),
        "tx_jur": clean_percentage_value(cell("TX. JUR.")),
        "objeto_financiado": cell("OBJETO FINANCIADO"),
        "data_contrato": parse_br_date(cell("DATA CONTRATO")),
        "moeda": normalize_currency_code(cell("MOE")),
        "documento": cell("DOCUMENTO"),
        "parc_current": installment.current,
        "parc_total": installment.total,
        "vencim_parcela": due or "",
        "ano": parse_int(cell("ANO"), due_date.year if due_date else today.year),
        "mes": parse_int(cell("MÊS"), due_date.month if due_date else 1),
        "dia": parse_int(cell("DIA"), due_date.day if due_date else 1),
        "rolagem": parse_rollover(cell("ROLAGEM?")),
        "cambio": clean_percentage_value(cell("CAMBIO")),
        "valor_pagar_reais": amount_in_reais or None,
        "status": (
            infer_payment_status(due_date, today) if due_date else PaymentStatus.PENDING.value
        ),
        "status_source": StatusSource.INFERRED.value,
        "payment_date": None,
        "is_synthetic": False,
    }
    for header, field_name in MONEY_COLUMNS.items():
        record[field_name] = clean_currency_value(cell(header))

    return record


def normalize_payments(raw: pd.DataFrame, today: date | None = None) -> pd.DataFrame:
    """
    Normalise a raw export table.

    Parameters
    ----------
    raw : pd.DataFrame
        Output of read_debt_csv.
    today : date | None
        Reference date for status inference.

    Returns
    -------
    pd.DataFrame
        Payment records with PAYMENT_COLUMNS, RangeIndex.
    """
    missing = set(RAW_COLUMNS) - set(raw.columns)
    if missing and len(raw) > 0:
        logger.warning("Debt export is missing columns %s; defaulting them", sorted(missing))

    records = [normalize_payment(row, today) for row in raw.to_dict(orient="records")]
    return pd.DataFrame(records, columns=PAYMENT_COLUMNS)


def parse_debt_csv(text: str, today: date | None = None) -> pd.DataFrame:
    """
    Parse export text into normalised payment records.

    Examples
    --------
    >>> payments = parse_debt_csv(content)
    >>> payments[["nr_contrato", "parc_current", "status"]].head(1)
      nr_contrato  parc_current   status
    0    40/00123             3  pending
    """
    raw = read_debt_csv(text)
    payments = normalize_payments(raw, today)
    logger.info(f"Parsed {len(payments)} debt payments from {len(raw)} rows")
    return payments


def load_debt_payments(
    path: str | Path,
    encoding: str = "utf-8",
    today: date | None = None,
) -> pd.DataFrame:
    """
    Load and normalise a debt-schedule export file.

    Parameters
    ----------
    path : str | Path
        Path to the semicolon-separated export.
    encoding : str, default "utf-8"
        File encoding. Bank exports are often "latin-1".
    today : date | None
        Reference date for status inference.

    Returns
    -------
    pd.DataFrame
        Normalised payment records.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Debt export file not found: {path}")

    payments = parse_debt_csv(path.read_text(encoding=encoding), today)
    logger.info(f"Loaded {len(payments)} debt payments from {path}")
    return payments


def format_br_number(value: float | None, decimals: int = 2) -> str:
    """
    Format a number with Brazilian separators.

    Examples
    --------
    >>> format_br_number(1234.5)
    '1.234,50'
    """
    if value is None or pd.isna(value):
        return ""
    text = f"{value:,.{decimals}f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_br_date(iso_date: str | None) -> str:
    """Format an ISO date string as DD/MM/YYYY."""
    if not isinstance(iso_date, str) or not iso_date:
        return ""
    parsed = date.fromisoformat(iso_date)
    return parsed.strftime("%d/%m/%Y")


def to_debt_csv(payments: pd.DataFrame) -> str:
    """
    Render payment records back into the export format.

    Currency labels are written as ISO codes; all other cells follow
    the export's locale formatting, so parse_debt_csv reproduces the
    numeric fields. Cells containing the delimiter are quoted.
    """
    rows = []
    for p in payments.to_dict(orient="records"):
        cells = [
            p["agente"],
            p["modalidade"],
            p["nr_contrato"],
            format_br_number(p["tx_jur"], 4),
            p["objeto_financiado"],
            format_br_date(p["data_contrato"]),
            p["moeda"],
            f"({p['parc_current']}/{p['parc_total']})",
            format_br_date(p["vencim_parcela"]),
            str(p["ano"]),
            str(p["mes"]),
            str(p["dia"]),
            *(format_br_number(p[field_name]) for field_name in MONEY_COLUMNS.values()),
            "Sim" if p["rolagem"] else "Não",
            format_br_number(p["cambio"], 4),
            format_br_number(p["valor_pagar_reais"]),
            p["documento"],
        ]
        rows.append([str(c) for c in cells])
    return pd.DataFrame(rows, columns=RAW_COLUMNS).to_csv(sep=DELIMITER, index=False)
