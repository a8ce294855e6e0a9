"""agrifin Scenarios Package - Rate and FX scenario projection.

Public API:
- scenario_debt_service: Annual debt service under macro assumptions
- survival_months: Months of liquidity at a given burn
- run_scenario / standard_scenarios: Scenario projections
- run_stress_test / STRESS_SCENARIOS: Predefined macro shocks
- sensitivity_matrix: Debt-service impact over policy and FX grids
"""

from .projector import (
    NamedScenario,
    ScenarioAssumptions,
    ScenarioResult,
    run_scenario,
    scenario_debt_service,
    standard_scenarios,
    survival_months,
)
from .stress import (
    STRESS_SCENARIOS,
    StressResult,
    StressScenario,
    run_stress_test,
    sensitivity_matrix,
    survival_path,
)

__all__ = [
    "NamedScenario",
    "ScenarioAssumptions",
    "ScenarioResult",
    "run_scenario",
    "scenario_debt_service",
    "standard_scenarios",
    "survival_months",
    "STRESS_SCENARIOS",
    "StressResult",
    "StressScenario",
    "run_stress_test",
    "sensitivity_matrix",
    "survival_path",
]
