# agrifin analytics packages
"""
Package structure:
- data: Config, record types and CSV ingestion (sole file reader)
- currency: Exchange-rate cache and conversion
- metrics: Debt and financial ratio calculators
- covenants: Covenant classification and monitoring
- scenarios: Scenario and stress projections
- reports: Portfolio, cash-flow and debt-position reports
- api: HTTP surface over the report builders
"""

__version__ = "0.1.0"
