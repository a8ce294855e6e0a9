from __future__ import annotations

"""Portfolio assembly from imported payments.

The debt export has one row per installment. This module converts
installment amounts to BRL, rolls installments up into one row per
contract, and builds the maturity profile and composition breakdowns
shown on the portfolio overview.
"""

import logging
from datetime import date
from typing import Any

import numpy as np
import pandas as pd

from ..currency.convert import SUPPORTED_CURRENCIES, conversion_rate
from ..currency.rates import RateSnapshot
from ..data.models import CONTRACT_COLUMNS, ContractStatus, PaymentStatus, RateType
from ..metrics.debt import (
    average_maturity_months,
    composition_by,
    concentration_rating,
    days_until,
    refinancing_need,
    weighted_average_rate,
)

logger = logging.getLogger(__name__)

NOT_SPECIFIED = "Not specified"

CONTRACT_EXTRA_COLUMNS = [
    "modality",
    "balance_brl",
    "document",
    "has_rollover",
    "total_payments",
    "paid_payments",
    "overdue_payments",
    "current_payment_number",
    "payment_progress",
]


def payments_in_brl(payments: pd.DataFrame, snapshot: RateSnapshot) -> pd.DataFrame:
    """
    Add BRL amounts to payment records.

    Adds ``rate_brl``, ``principal_brl``, ``interest_brl``, ``total_brl``
    and ``balance_brl``. Rows in unsupported currencies are dropped with
    a warning.

    Parameters
    ----------
    payments : pd.DataFrame
        Normalised payment records.
    snapshot : RateSnapshot
        Rates used for the conversion.

    Returns
    -------
    pd.DataFrame
        Copy of the supported rows with the BRL columns, RangeIndex.
    """
    extra = ["rate_brl", "principal_brl", "interest_brl", "total_brl", "balance_brl"]
    if len(payments) == 0:
        return payments.reindex(columns=list(payments.columns) + extra)

    supported = payments["moeda"].isin(SUPPORTED_CURRENCIES)
    if not supported.all():
        dropped = sorted(payments.loc[~supported, "moeda"].astype(str).unique())
        logger.warning(
            "Dropping %d payments in unsupported currencies %s", (~supported).sum(), dropped
        )

    result = payments.loc[supported].reset_index(drop=True)
    rates = {code: conversion_rate(code, snapshot) for code in result["moeda"].unique()}
    rate = result["moeda"].map(rates).astype(float)

    result["rate_brl"] = rate
    result["principal_brl"] = result["vlr_capital_parcela"].astype(float) * rate
    result["interest_brl"] = result["juros_parcela"].astype(float) * rate
    result["total_brl"] = result["tot_capital_juros"].astype(float) * rate
    result["balance_brl"] = result["saldo_a_pagar"].astype(float) * rate
    return result


def _contract_status(group: pd.DataFrame, has_future: bool) -> ContractStatus:
    statuses = set(group["status"])
    if PaymentStatus.OVERDUE.value in statuses:
        return ContractStatus.DEFAULT
    if PaymentStatus.PAID.value in statuses and not has_future:
        return ContractStatus.PAID
    return ContractStatus.ACTIVE


def assemble_contracts(payments: pd.DataFrame, today: date | None = None) -> pd.DataFrame:
    """
    Roll BRL-converted payments up into one row per contract.

    The balance is the sum of the remaining balances of the contract's
    installments, in contract currency (``current_balance``) and in BRL
    (``balance_brl``). The original amount is not in the export and is
    set to the current balance. Maturity is the last due date and the
    next payment is the first installment due after ``today``.

    Status: any overdue installment makes the contract "default"; paid
    installments with nothing left to pay make it "paid"; otherwise it
    is "active".

    Parameters
    ----------
    payments : pd.DataFrame
        Output of payments_in_brl.
    today : date | None
        Reference date, defaults to date.today().

    Returns
    -------
    pd.DataFrame
        CONTRACT_COLUMNS plus CONTRACT_EXTRA_COLUMNS.
    """
    columns = CONTRACT_COLUMNS + CONTRACT_EXTRA_COLUMNS
    if len(payments) == 0:
        return pd.DataFrame(columns=columns)

    today_iso = (today or date.today()).isoformat()
    rows: list[dict[str, Any]] = []

    for contract_number, group in payments.groupby("nr_contrato", sort=False):
        group = group.sort_values("vencim_parcela", kind="stable")
        first = group.iloc[0]
        last = group.iloc[-1]
        future = group[group["vencim_parcela"] > today_iso]
        upcoming = future.iloc[0] if len(future) > 0 else None

        if upcoming is not None:
            total_payments = int(upcoming["parc_total"])
            current_number = int(upcoming["parc_current"])
        else:
            total_payments = int(last["parc_total"])
            current_number = total_payments

        balance = float(group["saldo_a_pagar"].astype(float).sum())
        modality = first["modalidade"] or ""
        rows.append({
            "contract_number": contract_number,
            "institution": first["agente"],
            "currency": first["moeda"],
            "original_amount": balance,
            "current_balance": balance,
            "rate_type": (
                RateType.CDI.value if "CDI" in modality.upper() else RateType.PRE_FIXED.value
            ),
            "current_rate": float(first["tx_jur"]) if pd.notna(first["tx_jur"]) else 0.0,
            "spread": 0.0,
            "disbursement_date": first["data_contrato"],
            "maturity_date": last["vencim_parcela"],
            "next_payment_date": upcoming["vencim_parcela"] if upcoming is not None else None,
            "next_payment_amount": (
                float(upcoming["tot_capital_juros"]) if upcoming is not None else 0.0
            ),
            "purpose": first["objeto_financiado"] or NOT_SPECIFIED,
            "collateral": NOT_SPECIFIED,
            "status": _contract_status(group, upcoming is not None).value,
            "modality": modality,
            "balance_brl": float(group["balance_brl"].sum()),
            "document": first["documento"],
            "has_rollover": bool(group["rolagem"].any()),
            "total_payments": total_payments,
            "paid_payments": current_number - 1,
            "overdue_payments": int((group["status"] == PaymentStatus.OVERDUE.value).sum()),
            "current_payment_number": current_number,
            "payment_progress": f"{current_number}/{total_payments}",
        })

    frame = pd.DataFrame(rows, columns=columns)
    for col in ("disbursement_date", "maturity_date", "next_payment_date"):
        frame[col] = pd.to_datetime(frame[col])

    logger.info(f"Assembled {len(frame)} contracts from {len(payments)} payments")
    return frame


def maturity_profile(payments: pd.DataFrame, capacity_ratio: float = 0.02) -> pd.DataFrame:
    """
    Quarterly maturity profile of BRL-converted payments.

    USD principal is reported separately; BRL and EUR principal are
    grouped together. Payment capacity is an estimate of
    ``capacity_ratio`` times the total outstanding balance.

    Returns
    -------
    pd.DataFrame
        Columns ``period, year, quarter, principal_brl, principal_usd,
        interest, total, accumulated, payments, payment_capacity, dscr``,
        sorted chronologically.
    """
    columns = [
        "period", "year", "quarter", "principal_brl", "principal_usd", "interest",
        "total", "accumulated", "payments", "payment_capacity", "dscr",
    ]
    dated = payments[payments["vencim_parcela"].astype(str) != ""] if len(payments) else payments
    if len(dated) == 0:
        return pd.DataFrame(columns=columns)

    due = pd.to_datetime(dated["vencim_parcela"])
    is_usd = dated["moeda"] == "USD"
    work = pd.DataFrame({
        "year": due.dt.year,
        "quarter": due.dt.quarter,
        "principal_brl": np.where(is_usd, 0.0, dated["principal_brl"]),
        "principal_usd": np.where(is_usd, dated["principal_brl"], 0.0),
        "interest": dated["interest_brl"].astype(float),
    })

    profile = (
        work.groupby(["year", "quarter"])
        .agg(
            principal_brl=("principal_brl", "sum"),
            principal_usd=("principal_usd", "sum"),
            interest=("interest", "sum"),
            payments=("interest", "size"),
        )
        .reset_index()
        .sort_values(["year", "quarter"])
        .reset_index(drop=True)
    )
    profile["period"] = profile["year"].astype(str) + "-Q" + profile["quarter"].astype(str)
    profile["total"] = profile["principal_brl"] + profile["principal_usd"] + profile["interest"]
    profile["accumulated"] = profile["total"].cumsum()

    capacity = float(payments["balance_brl"].sum()) * capacity_ratio
    profile["payment_capacity"] = capacity
    profile["dscr"] = capacity / profile["total"].where(profile["total"] != 0, 1.0)
    return profile[columns]


def portfolio_composition(contracts: pd.DataFrame) -> dict[str, pd.DataFrame]:
    """
    Composition of the assembled contracts by institution, currency,
    modality, rate type and purpose, in BRL.

    The institution breakdown carries a concentration ``risk_rating``.
    """
    work = contracts.assign(current_rate=contracts["current_rate"].fillna(0.0))
    keys = {
        "by_institution": "institution",
        "by_currency": "currency",
        "by_modality": "modality",
        "by_rate_type": "rate_type",
        "by_purpose": "purpose",
    }
    composition = {
        name: composition_by(work, key, amount_col="balance_brl", rate_col="current_rate")
        for name, key in keys.items()
    }

    by_institution = composition["by_institution"]
    total = float(by_institution["amount"].sum()) if len(by_institution) else 0.0
    by_institution["risk_rating"] = [
        concentration_rating(amount, total) for amount in by_institution["amount"]
    ]
    return composition


def portfolio_overview(
    contracts: pd.DataFrame,
    snapshot: RateSnapshot,
    today: date | None = None,
) -> dict[str, Any]:
    """
    Headline figures of the portfolio in BRL.

    Weighted averages use the BRL balance as weight.
    """
    today = today or date.today()
    usd_to_brl = conversion_rate("USD", snapshot)

    if len(contracts) == 0:
        return {
            "total_debt": 0.0,
            "total_debt_usd": 0.0,
            "usd_exposure": 0.0,
            "usd_exposure_percent": 0.0,
            "avg_weighted_rate": 0.0,
            "avg_maturity_months": 0,
            "refinancing_need_12m": 0.0,
            "next_payment": None,
        }

    in_brl = contracts.assign(current_balance=contracts["balance_brl"])
    total = float(in_brl["current_balance"].sum())
    usd = float(in_brl.loc[in_brl["currency"] == "USD", "current_balance"].sum())

    upcoming = contracts.dropna(subset=["next_payment_date"])
    next_payment = None
    if len(upcoming) > 0:
        row = upcoming.sort_values("next_payment_date").iloc[0]
        due = row["next_payment_date"].date()
        next_payment = {
            "contract_number": row["contract_number"],
            "amount": float(row["next_payment_amount"]) * conversion_rate(row["currency"], snapshot),
            "due_date": due.isoformat(),
            "days_until": days_until(due, today),
        }

    return {
        "total_debt": total,
        "total_debt_usd": total / usd_to_brl,
        "usd_exposure": usd,
        "usd_exposure_percent": usd / total * 100 if total > 0 else 0.0,
        "avg_weighted_rate": weighted_average_rate(in_brl),
        "avg_maturity_months": average_maturity_months(in_brl, today),
        "refinancing_need_12m": refinancing_need(in_brl, 12, today),
        "next_payment": next_payment,
    }
