"""agrifin Metrics Package - Debt and financial metrics.

Public API:
- calculate_dscr, debt_to_ebitda: Coverage and leverage ratios
- weighted_average_rate, average_maturity_months: Balance-weighted portfolio metrics
- currency_exposure, currency_var, parametric_var: Currency risk
- refinancing_need, composition_by, concentration_rating: Portfolio structure
"""

from .debt import (
    as_contract_frame,
    average_maturity_months,
    calculate_debt_service,
    calculate_dscr,
    collateral_coverage,
    composition_by,
    concentration_rating,
    currency_exposure,
    days_until,
    debt_to_ebitda,
    liquidity_ratio,
    months_to_maturity,
    refinancing_need,
    weighted_average_rate,
)
from .risk import Z_SCORES, currency_var, fx_sensitivity, parametric_var

__all__ = [
    "as_contract_frame",
    "average_maturity_months",
    "calculate_debt_service",
    "calculate_dscr",
    "collateral_coverage",
    "composition_by",
    "concentration_rating",
    "currency_exposure",
    "days_until",
    "debt_to_ebitda",
    "liquidity_ratio",
    "months_to_maturity",
    "refinancing_need",
    "weighted_average_rate",
    "Z_SCORES",
    "currency_var",
    "fx_sensitivity",
    "parametric_var",
]
