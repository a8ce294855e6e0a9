from __future__ import annotations

"""Cash-flow report builders.

All builders take BRL-converted payments (see portfolio.payments_in_brl).
Debt payments are the only real data; opening cash, receivables,
seasonal inflows and non-debt payables come from Settings and are
estimates.
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any

import pandas as pd

from ..data.config import Settings
from ..data.models import PaymentStatus
from ..scenarios.projector import SURVIVAL_SENTINEL

logger = logging.getLogger(__name__)

UPCOMING_DAYS = 7


class GroupBy(str, Enum):
    WEEK = "week"
    MONTH = "month"


@dataclass
class CashFlowOverview:
    current_balance: float
    daily_variation: float
    projected_balance_30d: float
    cash_days: int
    working_capital_need: float
    receivables_total: float
    payables_total: float


@dataclass
class CashTransaction:
    id: str
    date: str
    description: str
    amount: float
    type: str
    category: str
    source: str
    status: str
    reference: str


@dataclass
class PaymentCalendarDay:
    date: str
    inflows: float = 0.0
    outflows: float = 0.0
    net_flow: float = 0.0
    has_debt_payments: bool = False
    debt_payment_amount: float = 0.0
    transactions: list[CashTransaction] = field(default_factory=list)


@dataclass
class AgingBucket:
    name: str
    days: str
    amount: float = 0.0
    count: int = 0
    percentage: float = 0.0


@dataclass
class PayablesAging:
    total: float
    due_in_7_days: float
    aging: list[AgingBucket]
    debt_payments_total: float
    debt_payments_percentage: float


def _due_dates(payments: pd.DataFrame) -> pd.Series:
    return pd.to_datetime(payments["vencim_parcela"], errors="coerce")


def _days_from(payments: pd.DataFrame, today: date) -> pd.Series:
    return (_due_dates(payments) - pd.Timestamp(today)).dt.days


def cash_flow_summary(payments: pd.DataFrame) -> dict[str, float]:
    """
    Totals of the period and the largest single-institution share.

    Returns
    -------
    dict[str, float]
        ``total_amount, payment_count, max_payment, avg_payment,
        concentration_percent``.
    """
    if len(payments) == 0:
        return {
            "total_amount": 0.0,
            "payment_count": 0,
            "max_payment": 0.0,
            "avg_payment": 0.0,
            "concentration_percent": 0.0,
        }

    amounts = payments["total_brl"].astype(float)
    total = float(amounts.sum())
    by_institution = amounts.groupby(payments["agente"]).sum()
    return {
        "total_amount": total,
        "payment_count": int(len(payments)),
        "max_payment": max(float(amounts.max()), 0.0),
        "avg_payment": total / len(payments),
        "concentration_percent": float(by_institution.max()) / total * 100 if total > 0 else 0.0,
    }


def group_payments(payments: pd.DataFrame, group_by: GroupBy | str = GroupBy.WEEK) -> pd.DataFrame:
    """
    Aggregate payments per calendar week (Monday to Sunday) or month.

    Parameters
    ----------
    payments : pd.DataFrame
        BRL-converted payments.
    group_by : GroupBy | str
        "week" or "month".

    Returns
    -------
    pd.DataFrame
        Columns ``period, start_date, end_date, total_amount,
        principal_amount, interest_amount, payment_count`` in date order.
        Weekly periods are keyed "start_end", monthly ones "YYYY-MM".

    Raises
    ------
    ValueError
        If ``group_by`` is not week or month.
    """
    group_by = GroupBy(group_by)
    columns = [
        "period", "start_date", "end_date", "total_amount",
        "principal_amount", "interest_amount", "payment_count",
    ]
    due = _due_dates(payments) if len(payments) else pd.Series(dtype="datetime64[ns]")
    dated = payments.loc[due.notna()] if len(payments) else payments
    if len(dated) == 0:
        return pd.DataFrame(columns=columns)

    due = due[due.notna()]
    if group_by is GroupBy.WEEK:
        start = due - pd.to_timedelta(due.dt.weekday, unit="D")
        end = start + pd.Timedelta(days=6)
        period = start.dt.strftime("%Y-%m-%d") + "_" + end.dt.strftime("%Y-%m-%d")
    else:
        start = due.dt.to_period("M").dt.start_time
        end = due.dt.to_period("M").dt.end_time.dt.normalize()
        period = due.dt.strftime("%Y-%m")

    work = pd.DataFrame({
        "period": period,
        "start_date": start.dt.date.astype(str),
        "end_date": end.dt.date.astype(str),
        "total_amount": dated["total_brl"].astype(float),
        "principal_amount": dated["principal_brl"].astype(float),
        "interest_amount": dated["interest_brl"].astype(float),
    })
    grouped = (
        work.groupby(["period", "start_date", "end_date"])
        .agg(
            total_amount=("total_amount", "sum"),
            principal_amount=("principal_amount", "sum"),
            interest_amount=("interest_amount", "sum"),
            payment_count=("total_amount", "size"),
        )
        .reset_index()
        .sort_values("start_date")
        .reset_index(drop=True)
    )
    return grouped[columns]


def cash_flow_alerts(
    summary: dict[str, float],
    payments: pd.DataFrame,
    settings: Settings | None = None,
    today: date | None = None,
) -> list[dict[str, str]]:
    """
    Alerts for institutional concentration, foreign-currency share and
    payments due within the next 7 days.
    """
    settings = settings or Settings()
    today = today or date.today()
    alerts: list[dict[str, str]] = []

    concentration = summary["concentration_percent"]
    if concentration > settings.concentration_alert_pct:
        alerts.append({
            "type": "warning",
            "title": "High institutional concentration",
            "message": f"{concentration:.1f}% of maturities with a single institution",
            "recommendation": "Consider diversifying funding sources",
        })

    if len(payments) == 0:
        return alerts

    total = summary["total_amount"]
    foreign = payments[payments["moeda"] != "BRL"]
    if len(foreign) > 0 and total > 0:
        foreign_pct = float(foreign["total_brl"].sum()) / total * 100
        if foreign_pct > settings.fx_alert_pct:
            alerts.append({
                "type": "warning",
                "title": "High FX exposure",
                "message": f"{foreign_pct:.1f}% of maturities in foreign currency",
                "recommendation": "Review the FX hedge position",
            })

    days = _days_from(payments, today)
    upcoming = payments[(days >= 0) & (days <= UPCOMING_DAYS)]
    if len(upcoming) > 0:
        amount = float(upcoming["total_brl"].sum())
        alerts.append({
            "type": "info",
            "title": "Upcoming maturities",
            "message": f"{len(upcoming)} payments in the next {UPCOMING_DAYS} days",
            "recommendation": f"Total amount: R$ {amount / 1_000_000:.1f}M",
        })

    return alerts


def _records(frame: pd.DataFrame) -> list[dict[str, Any]]:
    """JSON-safe records: NaN becomes None."""
    return frame.astype(object).where(frame.notna(), None).to_dict(orient="records")


def cash_flow_report(
    payments: pd.DataFrame,
    start_date: str,
    end_date: str,
    group_by: GroupBy | str = GroupBy.WEEK,
    currency: str | None = None,
    institution: str | None = None,
    settings: Settings | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """
    Cash-flow report for payments already filtered to the period.

    Parameters
    ----------
    payments : pd.DataFrame
        BRL-converted payments due between ``start_date`` and ``end_date``.
    start_date, end_date : str
        ISO dates of the period, for the metadata.
    group_by : GroupBy | str
        "week" or "month".
    currency, institution : str | None
        Filters that were applied, for the metadata. None means all.

    Returns
    -------
    dict[str, Any]
        ``summary, grouped_data, payments, alerts, metadata``.
    """
    group_by = GroupBy(group_by)
    summary = cash_flow_summary(payments)
    grouped = group_payments(payments, group_by)
    alerts = cash_flow_alerts(summary, payments, settings, today)

    logger.info(
        f"Cash-flow report {start_date}..{end_date}: {summary['payment_count']} payments, "
        f"{len(alerts)} alerts"
    )

    return {
        "summary": summary,
        "grouped_data": _records(grouped),
        "payments": _records(payments),
        "alerts": alerts,
        "metadata": {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "period": f"{start_date} to {end_date}",
            "group_by": group_by.value,
            "filters": {
                "currency": currency or "all",
                "institution": institution or "all",
            },
        },
    }


def cash_flow_overview(
    payments: pd.DataFrame,
    settings: Settings | None = None,
    today: date | None = None,
) -> CashFlowOverview:
    """
    Headline cash position.

    Projected 30-day balance deducts unpaid debt payments due within 30
    days from the opening cash. Cash days is opening cash over average
    daily debt payables (999 when there are none). Payables include the
    estimated non-debt share.
    """
    settings = settings or Settings()
    today = today or date.today()

    total_debt = float(payments["total_brl"].sum()) if len(payments) else 0.0
    if len(payments):
        cutoff = (today + timedelta(days=30)).isoformat()
        due_soon = payments[
            (payments["vencim_parcela"] != "")
            & (payments["vencim_parcela"] <= cutoff)
            & (payments["status"] != PaymentStatus.PAID.value)
        ]
        next_30 = float(due_soon["total_brl"].sum())
    else:
        next_30 = 0.0

    daily_payables = total_debt / 365
    cash_days = (
        math.floor(settings.opening_cash / daily_payables) if daily_payables > 0 else SURVIVAL_SENTINEL
    )

    return CashFlowOverview(
        current_balance=settings.opening_cash,
        daily_variation=settings.daily_variation,
        projected_balance_30d=settings.opening_cash - next_30,
        cash_days=cash_days,
        working_capital_need=settings.working_capital_need,
        receivables_total=settings.receivables_total,
        payables_total=total_debt * (1 + settings.other_payables_ratio),
    )


def cash_flow_projections(
    payments: pd.DataFrame,
    settings: Settings | None = None,
    today: date | None = None,
) -> pd.DataFrame:
    """
    Monthly projection starting at the current month.

    Inflows follow the configured seasonal pattern; outflows are the
    month's debt payments plus other outflows estimated as a share of
    inflows. The first month is current, later months are projected.

    Returns
    -------
    pd.DataFrame
        Columns ``date, inflows, outflows, net_flow, running_balance,
        is_projected``; one row per configured monthly inflow.
    """
    settings = settings or Settings()
    today = today or date.today()
    first_month = pd.Timestamp(today).to_period("M")

    debt_by_month: pd.Series
    if len(payments):
        due = _due_dates(payments)
        debt_by_month = payments["total_brl"].astype(float).groupby(due.dt.to_period("M")).sum()
    else:
        debt_by_month = pd.Series(dtype=float)

    rows = []
    balance = settings.opening_cash
    for i, inflows in enumerate(settings.monthly_inflows):
        month = first_month + i
        outflows = float(debt_by_month.get(month, 0.0)) + inflows * settings.other_outflow_ratio
        net = inflows - outflows
        balance += net
        rows.append({
            "date": month.start_time.date().isoformat(),
            "inflows": float(inflows),
            "outflows": outflows,
            "net_flow": net,
            "running_balance": balance,
            "is_projected": i > 0,
        })

    return pd.DataFrame(rows, columns=[
        "date", "inflows", "outflows", "net_flow", "running_balance", "is_projected",
    ])


def payment_calendar(
    payments: pd.DataFrame,
    today: date | None = None,
    days: int = 365,
) -> list[PaymentCalendarDay]:
    """
    Daily calendar of debt outflows for the next ``days`` days.

    Payments outside the window are ignored. Overdue payments appear as
    pending transactions.
    """
    today = today or date.today()
    calendar = {
        (today + timedelta(days=i)).isoformat(): PaymentCalendarDay(
            date=(today + timedelta(days=i)).isoformat()
        )
        for i in range(days)
    }

    for idx, p in enumerate(payments.to_dict(orient="records")):
        day = calendar.get(p["vencim_parcela"])
        if day is None:
            continue
        amount = float(p["total_brl"])
        day.outflows += amount
        day.debt_payment_amount += amount
        day.has_debt_payments = True
        day.net_flow = day.inflows - day.outflows
        status = p["status"]
        day.transactions.append(CashTransaction(
            id=f"{p['nr_contrato']}-{p['parc_current']}-{idx}",
            date=p["vencim_parcela"],
            description=f"Payment {p['agente']} - {p['nr_contrato']}",
            amount=-amount,
            type="outflow",
            category="Debt Payment",
            source=p["agente"],
            status=PaymentStatus.PENDING.value if status == PaymentStatus.OVERDUE.value else status,
            reference=p["nr_contrato"],
        ))

    return [calendar[key] for key in sorted(calendar)]


def payables_aging(
    payments: pd.DataFrame,
    settings: Settings | None = None,
    today: date | None = None,
) -> PayablesAging:
    """
    Aging of debt payables plus the estimated non-debt payables.

    Buckets: due in 0-30, 31-60, 61-90 and >90 days, overdue up to 30
    days and overdue more than 30 days. The non-debt estimate is spread
    evenly across the six buckets.
    """
    settings = settings or Settings()
    today = today or date.today()

    buckets = [
        AgingBucket("Due 0-30 days", "0-30"),
        AgingBucket("Due 31-60 days", "31-60"),
        AgingBucket("Due 61-90 days", "61-90"),
        AgingBucket("Due >90 days", ">90"),
        AgingBucket("Overdue 1-30 days", "overdue-30"),
        AgingBucket("Overdue >30 days", "overdue-30+"),
    ]

    debt_total = 0.0
    due_in_7 = 0.0
    if len(payments):
        days = _days_from(payments, today)
        for diff, amount in zip(days, payments["total_brl"].astype(float)):
            if pd.isna(diff):
                continue
            debt_total += amount
            if 0 <= diff <= UPCOMING_DAYS:
                due_in_7 += amount
            if diff < 0:
                index = 4 if -diff <= 30 else 5
            elif diff <= 30:
                index = 0
            elif diff <= 60:
                index = 1
            elif diff <= 90:
                index = 2
            else:
                index = 3
            buckets[index].amount += amount
            buckets[index].count += 1

    other = debt_total * settings.other_payables_ratio
    total = debt_total + other
    share = other / len(buckets)
    for bucket in buckets:
        bucket.amount += share
        bucket.percentage = bucket.amount / total * 100 if total > 0 else 0.0

    return PayablesAging(
        total=total,
        due_in_7_days=due_in_7 + other * 0.1,
        aging=buckets,
        debt_payments_total=debt_total,
        debt_payments_percentage=debt_total / total * 100 if total > 0 else 0.0,
    )


def cash_flow_portfolio(
    payments: pd.DataFrame,
    settings: Settings | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """Overview, projections, calendar and payables aging in one payload."""
    settings = settings or Settings()
    today = today or date.today()
    return {
        "overview": asdict(cash_flow_overview(payments, settings, today)),
        "projections": _records(cash_flow_projections(payments, settings, today)),
        "calendar": [asdict(day) for day in payment_calendar(payments, today)],
        "payables": asdict(payables_aging(payments, settings, today)),
    }
