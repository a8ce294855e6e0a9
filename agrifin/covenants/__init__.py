"""agrifin Covenants Package - Covenant evaluation and monitoring.

Public API:
- classify_covenant: Classify one measurement as compliant, warning or breach
- overall_status: Worst status of a collection
- evaluate_contract_covenants: Re-derive the covenant statuses of a contract
- build_covenant_monitoring: Portfolio monitoring panel
"""

from .evaluator import (
    classify_covenant,
    evaluate_contract_covenants,
    evaluate_covenant,
    overall_status,
    portfolio_covenant_status,
)
from .monitoring import CovenantMetric, CovenantMonitoring, build_covenant_monitoring

__all__ = [
    "classify_covenant",
    "evaluate_contract_covenants",
    "evaluate_covenant",
    "overall_status",
    "portfolio_covenant_status",
    "CovenantMetric",
    "CovenantMonitoring",
    "build_covenant_monitoring",
]
