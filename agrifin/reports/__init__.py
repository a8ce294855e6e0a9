"""agrifin Reports Package - Portfolio, cash-flow and debt-position reports.

Public API:
- payments_in_brl / assemble_contracts: Payments to BRL and to contracts
- maturity_profile / portfolio_composition / portfolio_overview: Portfolio views
- cash_flow_report / cash_flow_portfolio: Cash-flow reports
- debt_position_report: Debt-position report
- generate_export: Report export
"""

from .portfolio import (
    assemble_contracts,
    maturity_profile,
    payments_in_brl,
    portfolio_composition,
    portfolio_overview,
)
from .cash_flow import (
    GroupBy,
    cash_flow_alerts,
    cash_flow_overview,
    cash_flow_portfolio,
    cash_flow_projections,
    cash_flow_report,
    group_payments,
    payables_aging,
    payment_calendar,
)
from .debt_position import debt_position_report
from .export import ExportFormat, ExportResult, UnsupportedExportFormatError, generate_export

__all__ = [
    "assemble_contracts",
    "maturity_profile",
    "payments_in_brl",
    "portfolio_composition",
    "portfolio_overview",
    "GroupBy",
    "cash_flow_alerts",
    "cash_flow_overview",
    "cash_flow_portfolio",
    "cash_flow_projections",
    "cash_flow_report",
    "group_payments",
    "payables_aging",
    "payment_calendar",
    "debt_position_report",
    "ExportFormat",
    "ExportResult",
    "UnsupportedExportFormatError",
    "generate_export",
]
