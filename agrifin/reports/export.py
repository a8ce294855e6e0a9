from __future__ import annotations

"""Report export.

Builds the content of a report export and a download URL. Excel and
PDF rendering is not implemented: those formats return the workbook or
document structure that a renderer would consume. CSV and JSON exports
carry their final text.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

EXPORT_URL_PREFIX = "/api/files/exports"

PAYMENT_HEADERS = {
    "vencim_parcela": "Due date",
    "agente": "Institution",
    "nr_contrato": "Contract",
    "moeda": "Currency",
    "vlr_capital_parcela": "Principal",
    "juros_parcela": "Interest",
    "tot_capital_juros": "Total",
    "status": "Status",
}

INSTITUTION_HEADERS = {
    "institution": "Institution",
    "amount": "Amount",
    "percentage": "Percentage",
    "avg_rate": "Average rate",
    "count": "Contracts",
    "risk_rating": "Rating",
}


class ExportFormat(str, Enum):
    EXCEL = "excel"
    PDF = "pdf"
    CSV = "csv"
    JSON = "json"

    @property
    def extension(self) -> str:
        return "xlsx" if self is ExportFormat.EXCEL else self.value


class UnsupportedExportFormatError(ValueError):
    """Raised for export formats other than excel, pdf, csv and json."""


@dataclass
class ExportResult:
    """A generated export."""

    url: str
    file_name: str
    format: ExportFormat
    size: int
    content: Any
    generated_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def summary(self) -> dict[str, Any]:
        """Download metadata without the content."""
        return {
            "download_url": self.url,
            "file_name": self.file_name,
            "format": self.format.value,
            "size": self.size,
            "generated_at": self.generated_at,
        }


def parse_export_format(value: str) -> ExportFormat:
    """
    Case-insensitive format lookup.

    Raises
    ------
    UnsupportedExportFormatError
        If ``value`` is not a known format.
    """
    try:
        return ExportFormat(str(value).lower())
    except ValueError as exc:
        raise UnsupportedExportFormatError(f"Unsupported format: {value}") from exc


def _rows(records: list[dict[str, Any]], headers: dict[str, str]) -> list[list[Any]]:
    return [list(headers.values())] + [[r.get(k) for k in headers] for r in records]


def excel_structure(report_type: str, data: dict[str, Any]) -> dict[str, Any]:
    """Workbook sheets as lists of rows."""
    sheets: list[dict[str, Any]] = []

    if report_type == "cash-flow":
        summary = data.get("summary") or {}
        sheets = [
            {"name": "Executive summary", "data": [
                ["Metric", "Value"],
                ["Period total", summary.get("total_amount", 0)],
                ["Payment count", summary.get("payment_count", 0)],
                ["Largest payment", summary.get("max_payment", 0)],
                ["Average payment", summary.get("avg_payment", 0)],
                ["Concentration (%)", summary.get("concentration_percent", 0)],
            ]},
            {"name": "Detailed schedule",
             "data": _rows(data.get("payments") or [], PAYMENT_HEADERS)},
            {"name": "Grouped by period", "data": [
                ["Period", "Start", "End", "Principal", "Interest", "Total", "Payments"],
                *[
                    [g.get("period"), g.get("start_date"), g.get("end_date"),
                     g.get("principal_amount"), g.get("interest_amount"),
                     g.get("total_amount"), g.get("payment_count")]
                    for g in data.get("grouped_data") or []
                ],
            ]},
        ]
    elif report_type == "debt-position":
        summary = data.get("executive_summary") or {}
        composition = data.get("composition_analysis") or {}
        sheets = [
            {"name": "Executive summary", "data": [
                ["Metric", "Value"],
                ["Total debt", summary.get("total_debt", 0)],
                ["Total contracts", summary.get("total_contracts", 0)],
                ["Weighted average rate", summary.get("avg_weighted_rate", 0)],
                ["USD exposure", summary.get("usd_exposure", 0)],
                ["USD exposure (%)", summary.get("usd_exposure_percent", 0)],
            ]},
            {"name": "By currency", "data": _rows(
                composition.get("by_currency") or [],
                {"currency": "Currency", "amount": "Amount", "percentage": "Percentage",
                 "avg_rate": "Average rate", "count": "Contracts"},
            )},
            {"name": "By institution",
             "data": _rows(composition.get("by_institution") or [], INSTITUTION_HEADERS)},
        ]

    return {"sheets": sheets}


def pdf_structure(report_type: str, data: dict[str, Any]) -> dict[str, Any]:
    """Document title and sections."""
    if report_type == "cash-flow":
        return {
            "title": "Maturity Cash-Flow Report",
            "sections": [
                {"title": "Executive summary", "type": "metrics", "content": data.get("summary")},
                {"title": "Maturities chart", "type": "chart", "content": data.get("grouped_data")},
                {"title": "Detailed schedule", "type": "table", "content": data.get("payments")},
            ],
        }
    return {
        "title": "Debt Position Report",
        "sections": [
            {"title": "Executive view", "type": "metrics",
             "content": data.get("executive_summary")},
            {"title": "Debt composition", "type": "charts",
             "content": data.get("composition_analysis")},
            {"title": "Concentration analysis", "type": "analysis",
             "content": data.get("concentration_risks")},
            {"title": "Benchmarking", "type": "comparison",
             "content": data.get("benchmark_comparison")},
        ] if report_type == "debt-position" else [],
    }


def csv_content(report_type: str, data: dict[str, Any]) -> str:
    """CSV text of the payment schedule or the institution breakdown."""
    if report_type == "cash-flow" and data.get("payments"):
        records, headers = data["payments"], PAYMENT_HEADERS
    elif report_type == "debt-position" and (data.get("composition_analysis") or {}).get(
        "by_institution"
    ):
        records, headers = data["composition_analysis"]["by_institution"], INSTITUTION_HEADERS
    else:
        return ""

    frame = pd.DataFrame(records).reindex(columns=list(headers)).rename(columns=headers)
    return frame.to_csv(index=False)


def generate_export(
    report_type: str,
    export_format: str | ExportFormat,
    data: dict[str, Any],
    file_name: str | None = None,
    now: datetime | None = None,
) -> ExportResult:
    """
    Generate a report export.

    Parameters
    ----------
    report_type : str
        "cash-flow" or "debt-position". Other types export only as JSON
        content or empty structures.
    export_format : str | ExportFormat
        excel, pdf, csv or json (case-insensitive).
    data : dict[str, Any]
        Report payload as built by the report builders.
    file_name : str | None
        File name; defaults to "<report_type>-<epoch ms>.<ext>".
    now : datetime | None
        Timestamp for the default file name.

    Returns
    -------
    ExportResult

    Raises
    ------
    UnsupportedExportFormatError
        If the format is unknown.

    Examples
    --------
    >>> result = generate_export("cash-flow", "json", report)
    >>> result.url
    '/api/files/exports/cash-flow-1735689600000.json'
    """
    fmt = parse_export_format(export_format)
    now = now or datetime.now(timezone.utc)
    name = file_name or f"{report_type}-{int(now.timestamp() * 1000)}.{fmt.extension}"

    if fmt is ExportFormat.EXCEL:
        content: Any = excel_structure(report_type, data)
    elif fmt is ExportFormat.PDF:
        content = pdf_structure(report_type, data)
    elif fmt is ExportFormat.CSV:
        content = csv_content(report_type, data)
    else:
        content = json.dumps(data, indent=2, default=str)

    text = content if isinstance(content, str) else json.dumps(content, default=str)
    size = len(text.encode("utf-8"))
    logger.info(f"Generated {fmt.value} export {name} ({size} bytes)")

    return ExportResult(
        url=f"{EXPORT_URL_PREFIX}/{name}",
        file_name=name,
        format=fmt,
        size=size,
        content=content,
        generated_at=now.isoformat(),
    )
