"""Core record types for debt analytics.

Dataclasses and enums for contracts, covenants and imported payments,
plus the column contracts used by the DataFrame-based calculators.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import date
from enum import Enum

import pandas as pd


class Currency(str, Enum):
    """ISO currency codes used in the portfolio."""

    BRL = "BRL"
    USD = "USD"
    EUR = "EUR"


class RateType(str, Enum):
    """Rate indexation of a contract."""

    CDI = "CDI"
    PRE_FIXED = "PreFixed"
    TJLP = "TJLP"
    LIBOR = "Libor"
    IPCA = "IPCA"
    SOFR = "SOFR"


class ContractStatus(str, Enum):
    """Contract lifecycle status. Contracts are never deleted."""

    ACTIVE = "active"
    GRACE = "grace"
    DEFAULT = "default"
    PAID = "paid"


class PaymentStatus(str, Enum):
    """Installment status."""

    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class StatusSource(str, Enum):
    """How an installment status was obtained.

    INFERRED statuses come from comparing the due date with today; the
    source export carries no payment confirmation.
    """

    INFERRED = "inferred"
    CONFIRMED = "confirmed"


class CovenantStatus(str, Enum):
    """Covenant classification.

    COMPLIANT, WARNING and BREACH are the evaluator outcomes. GOOD and
    UNKNOWN only appear in the monitoring view.
    """

    COMPLIANT = "compliant"
    WARNING = "warning"
    BREACH = "breach"
    GOOD = "good"
    UNKNOWN = "unknown"


class CovenantType(str, Enum):
    """Covenant metric."""

    DSCR = "DSCR"
    DEBT_TO_EBITDA = "DebtToEbitda"
    LIQUIDITY_RATIO = "LiquidityRatio"
    COLLATERAL_COVERAGE = "CollateralCoverage"


# Covenants where the current value must stay at or below the requirement
MAXIMUM_COVENANTS = {CovenantType.DEBT_TO_EBITDA}


@dataclass
class ContractCovenant:
    """A covenant attached to a contract."""

    type: CovenantType
    required: float
    current: float
    status: CovenantStatus = CovenantStatus.COMPLIANT
    measurement_date: date | None = None

    @property
    def kind(self) -> str:
        """'max' for ceiling covenants, 'min' otherwise."""
        return "max" if self.type in MAXIMUM_COVENANTS else "min"


@dataclass
class DebtContract:
    """A financial obligation of the enterprise.

    Balances and payment amounts are in the contract currency; rates
    are percent per year.
    """

    contract_number: str
    institution: str
    currency: Currency
    original_amount: float
    current_balance: float
    rate_type: RateType
    current_rate: float
    disbursement_date: date
    maturity_date: date
    next_payment_date: date | None = None
    next_payment_amount: float = 0.0
    spread: float = 0.0
    purpose: str = ""
    collateral: str = ""
    covenants: list[ContractCovenant] = field(default_factory=list)
    status: ContractStatus = ContractStatus.ACTIVE
    dscr: float | None = None

    def with_status(self, status: ContractStatus) -> DebtContract:
        """Return a copy transitioned to ``status``."""
        return replace(self, status=ContractStatus(status))

    def with_balance(self, current_balance: float) -> DebtContract:
        """Return a copy with an updated outstanding balance."""
        return replace(self, current_balance=float(current_balance))


CONTRACT_COLUMNS = [
    "contract_number",
    "institution",
    "currency",
    "original_amount",
    "current_balance",
    "rate_type",
    "current_rate",
    "spread",
    "disbursement_date",
    "maturity_date",
    "next_payment_date",
    "next_payment_amount",
    "purpose",
    "collateral",
    "status",
]

# Normalised import schema, in output order
PAYMENT_COLUMNS = [
    "agente",
    "modalidade",
    "nr_contrato",
    "tx_jur",
    "objeto_financiado",
    "data_contrato",
    "moeda",
    "documento",
    "parc_current",
    "parc_total",
    "vencim_parcela",
    "ano",
    "mes",
    "dia",
    "vlr_capital_parcela",
    "juros_parcela",
    "tot_capital_juros",
    "saldo_capital_parc",
    "saldo_juros_parc",
    "saldo_a_pagar",
    "rolagem",
    "cambio",
    "valor_pagar_reais",
    "status",
    "status_source",
    "payment_date",
    "is_synthetic",
]

# Upsert key of an installment
PAYMENT_KEY = ("nr_contrato", "parc_current", "vencim_parcela")

REQUIRED_CONTRACT_COLUMNS = {"current_balance", "current_rate"}


def contracts_to_frame(contracts: list[DebtContract]) -> pd.DataFrame:
    """
    Convert contracts to the tabular form used by the calculators.

    Enum fields are stored as their string values and dates as
    datetime64 columns. Covenants are dropped.

    Parameters
    ----------
    contracts : list[DebtContract]
        Contracts to convert.

    Returns
    -------
    pd.DataFrame
        One row per contract with CONTRACT_COLUMNS.
    """
    if not contracts:
        return pd.DataFrame(columns=CONTRACT_COLUMNS)

    rows = []
    for contract in contracts:
        row = asdict(contract)
        row.pop("covenants")
        row.pop("dscr")
        for key in ("currency", "rate_type", "status"):
            row[key] = getattr(contract, key).value
        rows.append(row)

    frame = pd.DataFrame(rows, columns=CONTRACT_COLUMNS)
    for col in ("disbursement_date", "maturity_date", "next_payment_date"):
        frame[col] = pd.to_datetime(frame[col])
    return frame
