"""Debt-position report.

Executive summary, composition, concentration risks, sector benchmark
and recommendations for the assembled contracts (see
portfolio.assemble_contracts). Sector averages, percentiles and the
historical series are static reference figures, not market data.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any

import pandas as pd

from ..metrics.debt import average_maturity_months, weighted_average_rate
from .portfolio import portfolio_composition

logger = logging.getLogger(__name__)

FARM_HECTARES = 5000

SECTOR_BENCHMARKS = {
    "debt_per_hectare": {"sector_average": 12200.0, "percentile": 75},
    "usd_exposure": {"sector_average": 35.2, "percentile": 90},
    "avg_rate": {"sector_average": 11.4, "percentile": 25},
    "top_three_concentration": {"sector_average": 60.0, "percentile": 80},
}

TOP_THREE_LIMIT = 70.0
USD_EXPOSURE_LIMIT = 50.0
SINGLE_INSTITUTION_LIMIT = 25.0
SINGLE_INSTITUTION_HIGH = 35.0
REFINANCING_RATE = 12.0

HISTORICAL_DEBT = [
    ("2024-07", 500_000_000), ("2024-08", 520_000_000), ("2024-09", 605_000_000),
    ("2024-10", 610_000_000), ("2024-11", 615_000_000), ("2024-12", 620_000_000),
    ("2025-01", 740_000_000), ("2025-02", 735_000_000), ("2025-03", 730_000_000),
    ("2025-04", 725_000_000), ("2025-05", 680_000_000), ("2025-06", 690_000_000),
    ("2025-07", 687_500_000),
]


def _records(frame: pd.DataFrame) -> list[dict[str, Any]]:
    return frame.astype(object).where(frame.notna(), None).to_dict(orient="records")


def empty_debt_position() -> dict[str, Any]:
    """Report payload when there are no contracts."""
    return {
        "executive_summary": {
            "total_debt": 0.0,
            "total_contracts": 0,
            "avg_weighted_rate": 0.0,
            "usd_exposure": 0.0,
            "usd_exposure_percent": 0.0,
            "top_institution": "N/A",
            "top_institution_percent": 0.0,
            "avg_maturity": 0,
            "next_payment_date": None,
        },
        "composition_analysis": {"by_currency": [], "by_institution": [], "by_modality": []},
        "concentration_risks": [],
        "benchmark_comparison": {
            key: {"value": 0.0, "sector_average": ref["sector_average"], "percentile": 50}
            for key, ref in SECTOR_BENCHMARKS.items()
        },
        "recommendations": [],
    }


def concentration_risks(
    by_institution: pd.DataFrame,
    by_currency: pd.DataFrame,
) -> list[dict[str, str]]:
    """
    Flag creditor and currency concentration.

    Top three institutions above 70% of debt, USD above 50%, and any
    single institution above 25% (high severity above 35%).
    """
    risks = []

    top_three = float(by_institution["percentage"].head(3).sum())
    if top_three > TOP_THREE_LIMIT:
        risks.append({
            "type": "institution_concentration",
            "severity": "high",
            "description": f"{top_three:.1f}% of debt concentrated in 3 institutions",
            "recommendation": "Diversify the creditor base",
        })

    usd = by_currency.loc[by_currency["currency"] == "USD", "percentage"]
    usd_pct = float(usd.iloc[0]) if len(usd) else 0.0
    if usd_pct > USD_EXPOSURE_LIMIT:
        risks.append({
            "type": "currency_concentration",
            "severity": "high",
            "description": f"{usd_pct:.1f}% of debt in USD",
            "recommendation": "Implement an FX hedging strategy",
        })

    for row in by_institution.itertuples(index=False):
        if row.percentage > SINGLE_INSTITUTION_LIMIT:
            risks.append({
                "type": "single_institution",
                "severity": "high" if row.percentage > SINGLE_INSTITUTION_HIGH else "medium",
                "description": f"{row.institution}: {row.percentage:.1f}% of total debt",
                "recommendation": "Consider diversifying to reduce dependence",
            })

    return risks


def recommendations(summary: dict[str, Any], risks: list[dict[str, str]]) -> list[dict[str, str]]:
    result = []

    if summary["usd_exposure_percent"] > USD_EXPOSURE_LIMIT:
        result.append({
            "priority": "high",
            "category": "fx_hedge",
            "title": "Implement an FX hedging strategy",
            "description": "High USD exposure requires protection against FX moves",
            "expected_impact": "Up to 80% reduction of FX risk",
        })

    if any(r["type"] == "institution_concentration" for r in risks):
        result.append({
            "priority": "medium",
            "category": "diversification",
            "title": "Diversify the creditor base",
            "description": "Lower institutional concentration improves negotiating position",
            "expected_impact": "Better bargaining power and lower risk",
        })

    if summary["avg_weighted_rate"] > REFINANCING_RATE:
        result.append({
            "priority": "high",
            "category": "refinancing",
            "title": "Evaluate refinancing opportunities",
            "description": "Average rate above market suggests room for optimisation",
            "expected_impact": "Potential savings of R$ 2-4M per year",
        })

    return result


def benchmark_comparison(summary: dict[str, Any], by_institution: pd.DataFrame) -> dict[str, Any]:
    values = {
        "debt_per_hectare": summary["total_debt"] / FARM_HECTARES,
        "usd_exposure": summary["usd_exposure_percent"],
        "avg_rate": summary["avg_weighted_rate"],
        "top_three_concentration": float(by_institution["percentage"].head(3).sum()),
    }
    return {key: {"value": values[key], **ref} for key, ref in SECTOR_BENCHMARKS.items()}


def historical_debt() -> list[dict[str, Any]]:
    return [{"month": month, "total_debt": float(total)} for month, total in HISTORICAL_DEBT]


def debt_position_report(
    contracts: pd.DataFrame,
    include_historical: bool = False,
    today: date | None = None,
) -> dict[str, Any]:
    """
    Build the debt-position report.

    Parameters
    ----------
    contracts : pd.DataFrame
        Output of portfolio.assemble_contracts.
    include_historical : bool, default False
        Attach the monthly total-debt series.
    today : date | None
        Reference date for maturities.

    Returns
    -------
    dict[str, Any]
        ``executive_summary, composition_analysis, concentration_risks,
        benchmark_comparison, recommendations, historical_data, metadata``.
    """
    today = today or date.today()

    if len(contracts) == 0:
        report = empty_debt_position()
    else:
        composition = portfolio_composition(contracts)
        by_currency = composition["by_currency"]
        by_institution = composition["by_institution"]
        in_brl = contracts.assign(current_balance=contracts["balance_brl"])

        usd = by_currency[by_currency["currency"] == "USD"]
        upcoming = contracts["next_payment_date"].dropna()

        summary = {
            "total_debt": float(in_brl["current_balance"].sum()),
            "total_contracts": int(len(contracts)),
            "avg_weighted_rate": weighted_average_rate(in_brl),
            "usd_exposure": float(usd["amount"].iloc[0]) if len(usd) else 0.0,
            "usd_exposure_percent": float(usd["percentage"].iloc[0]) if len(usd) else 0.0,
            "top_institution": by_institution["institution"].iloc[0],
            "top_institution_percent": float(by_institution["percentage"].iloc[0]),
            "avg_maturity": average_maturity_months(in_brl, today),
            "next_payment_date": upcoming.min().date().isoformat() if len(upcoming) else None,
        }
        risks = concentration_risks(by_institution, by_currency)

        report = {
            "executive_summary": summary,
            "composition_analysis": {
                "by_currency": _records(by_currency),
                "by_institution": _records(by_institution),
                "by_modality": _records(composition["by_modality"]),
            },
            "concentration_risks": risks,
            "benchmark_comparison": benchmark_comparison(summary, by_institution),
            "recommendations": recommendations(summary, risks),
        }

    report["historical_data"] = historical_debt() if include_historical else None
    report["metadata"] = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "include_historical": include_historical,
        "data_points": int(len(contracts)),
    }

    logger.info(f"Debt-position report over {len(contracts)} contracts")
    return report
