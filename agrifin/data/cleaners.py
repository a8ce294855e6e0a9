"""Field cleaners for the bank debt-schedule export.

The export uses Brazilian formatting: comma decimal separator, dot
thousands separator and DD/MM/YYYY dates. Cleaners never raise on
malformed input; they default to 0, None or (1, 1) instead.
"""

import re
from datetime import date
from typing import NamedTuple

_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)")
_CURRENCY_SYMBOLS = re.compile(r"(?:R\$|US\$|€|\$)\s*")
_INSTALLMENT = re.compile(r"\((\d+)/(\d+)\)")
_BR_DATE = re.compile(r"(\d{2})/(\d{2})/(\d{4})")

# Currency labels seen in the export mapped to ISO codes
CURRENCY_ALIASES = {
    "R$": "BRL",
    "BRL": "BRL",
    "US$": "USD",
    "USD": "USD",
    "€UR": "EUR",
    "EUR": "EUR",
}


class Installment(NamedTuple):
    """Installment position parsed from strings like '(3/12)'."""

    current: int
    total: int


def _leading_float(text: str) -> float | None:
    """Parse the leading numeric prefix of ``text``, or None."""
    match = _LEADING_NUMBER.match(text)
    if match is None:
        return None
    return float(match.group(0))


def _is_blank(value: str | None) -> bool:
    return value is None or value.strip() == "" or value.strip() == "-"


def clean_currency_value(value: str | None) -> float:
    """
    Convert a locale-formatted money string to a float.

    Parameters
    ----------
    value : str | None
        Raw cell, e.g. "R$ 1.234,56".

    Returns
    -------
    float
        Parsed amount. 0.0 for blank, "-" or unparseable cells.

    Examples
    --------
    >>> clean_currency_value("R$ 1.234,56")
    1234.56
    >>> clean_currency_value("-")
    0.0
    """
    if _is_blank(value):
        return 0.0

    cleaned = _CURRENCY_SYMBOLS.sub("", value)
    cleaned = re.sub(r"\s+", "", cleaned)
    cleaned = cleaned.replace(".", "").replace(",", ".")

    parsed = _leading_float(cleaned)
    return parsed if parsed is not None else 0.0


def clean_percentage_value(value: str | None) -> float | None:
    """
    Convert a rate or FX cell to a float.

    Everything except digits and separators is dropped and the first
    comma becomes the decimal point, so "12,5% a.a." gives 12.5.

    Returns
    -------
    float | None
        Parsed value, or None for blank, "-" or unparseable cells.
    """
    if _is_blank(value):
        return None

    cleaned = re.sub(r"[^\d.,]", "", value).replace(",", ".", 1)
    return _leading_float(cleaned)


def parse_installment(parc: str | None) -> Installment:
    """
    Parse an installment marker.

    Examples
    --------
    >>> parse_installment("(3/12)")
    Installment(current=3, total=12)
    >>> parse_installment("n/a")
    Installment(current=1, total=1)
    """
    match = _INSTALLMENT.search(parc or "")
    if match is None:
        return Installment(1, 1)
    return Installment(int(match.group(1)), int(match.group(2)))


def parse_br_date(value: str | None) -> str | None:
    """
    Convert "DD/MM/YYYY" to an ISO "YYYY-MM-DD" string.

    Returns None for blank cells, non-matching text and impossible
    calendar dates such as 31/02/2025.

    Examples
    --------
    >>> parse_br_date("05/03/2025")
    '2025-03-05'
    >>> parse_br_date("") is None
    True
    """
    if value is None or value.strip() == "":
        return None

    match = _BR_DATE.search(value)
    if match is None:
        return None

    day, month, year = (int(g) for g in match.groups())
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def parse_int(value: str | None, default: int) -> int:
    """Parse the leading integer of a cell, or return ``default``."""
    match = re.match(r"\s*([+-]?\d+)", value or "")
    if match is None:
        return default
    parsed = int(match.group(1))
    return parsed if parsed != 0 else default


def parse_rollover(value: str | None) -> bool:
    """'Sim' (yes) marks an installment rolled into a new obligation."""
    return (value or "").strip().lower() == "sim"


def normalize_currency_code(value: str | None, default: str = "BRL") -> str:
    """
    Map a currency label from the export to its ISO code.

    Unknown labels are returned stripped and upper-cased so that
    downstream conversion can reject them explicitly.

    Examples
    --------
    >>> normalize_currency_code("US$")
    'USD'
    >>> normalize_currency_code("")
    'BRL'
    """
    if value is None or value.strip() == "":
        return default
    label = value.strip()
    return CURRENCY_ALIASES.get(label, CURRENCY_ALIASES.get(label.upper(), label.upper()))
