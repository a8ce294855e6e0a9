"""agrifin Data Package - Data loading layer.

This is the ONLY package that reads files. All other packages
receive DataFrames or record types from this package.

Public API:
- load_config / load_settings: Load YAML configuration
- parse_debt_csv / load_debt_payments: Parse the bank debt-schedule export
- backfill_past_installments: Synthetic history for known contracts
- PaymentStore / import_payments: Keyed in-memory storage with batched upserts
- validate_payments: Validate payment data quality
"""

from .config import Settings, get_nested, load_config, load_settings
from .models import (
    ContractCovenant,
    ContractStatus,
    CovenantStatus,
    CovenantType,
    Currency,
    DebtContract,
    PaymentStatus,
    RateType,
    StatusSource,
    contracts_to_frame,
)
from .cleaners import (
    clean_currency_value,
    clean_percentage_value,
    parse_br_date,
    parse_installment,
)
from .importer import (
    infer_payment_status,
    load_debt_payments,
    normalize_payments,
    parse_debt_csv,
    to_debt_csv,
)
from .backfill import backfill_past_installments, with_backfill
from .store import ImportResult, PaymentStore, import_payments
from .validation import ValidationResult, validate_payments

__all__ = [
    "Settings",
    "get_nested",
    "load_config",
    "load_settings",
    "ContractCovenant",
    "ContractStatus",
    "CovenantStatus",
    "CovenantType",
    "Currency",
    "DebtContract",
    "PaymentStatus",
    "RateType",
    "StatusSource",
    "contracts_to_frame",
    "clean_currency_value",
    "clean_percentage_value",
    "parse_br_date",
    "parse_installment",
    "infer_payment_status",
    "load_debt_payments",
    "normalize_payments",
    "parse_debt_csv",
    "to_debt_csv",
    "backfill_past_installments",
    "with_backfill",
    "ImportResult",
    "PaymentStore",
    "import_payments",
    "ValidationResult",
    "validate_payments",
]
