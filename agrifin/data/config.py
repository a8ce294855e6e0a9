"""Configuration loading utilities.

This module provides functions to load YAML configuration files
and the typed settings used throughout the agrifin analytics system.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# conf/agrifin.yaml at the repository root
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "conf" / "agrifin.yaml"

# Units of each currency per 1 USD
DEFAULT_FALLBACK_RATES = {"BRL": 5.50, "EUR": 0.92, "USD": 1.00}

# Seasonal agricultural inflows, one per month starting at the current month
DEFAULT_MONTHLY_INFLOWS = [
    180_000_000, 120_000_000, 200_000_000, 85_000_000, 45_000_000, 35_000_000,
    28_000_000, 42_000_000, 155_000_000, 285_000_000, 195_000_000, 150_000_000,
]


def load_config(path: str | Path) -> dict[str, Any]:
    """
    Load a YAML configuration file.

    Parameters
    ----------
    path : str | Path
        Path to the YAML configuration file.

    Returns
    -------
    dict[str, Any]
        Configuration dictionary.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    yaml.YAMLError
        If the YAML is malformed.

    Examples
    --------
    >>> cfg = load_config("conf/agrifin.yaml")
    >>> cfg["currency"]["cache_ttl_seconds"]
    300
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f)

    return config if config is not None else {}


def get_nested(config: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """
    Get a nested value from a configuration dictionary.

    Parameters
    ----------
    config : dict[str, Any]
        Configuration dictionary.
    *keys : str
        Sequence of keys to traverse.
    default : Any, optional
        Default value if key path doesn't exist.

    Returns
    -------
    Any
        The value at the nested key path, or default.

    Examples
    --------
    >>> cfg = {"covenants": {"dscr_min": 1.25}}
    >>> get_nested(cfg, "covenants", "dscr_min")
    1.25
    >>> get_nested(cfg, "covenants", "missing", default=3.5)
    3.5
    """
    result = config
    for key in keys:
        if isinstance(result, dict) and key in result:
            result = result[key]
        else:
            return default
    return result


@dataclass
class Settings:
    """Runtime settings.

    Parameters
    ----------
    rate_url : str
        Exchange-rate endpoint returning USD-based rates.
    rate_timeout : float, default 10.0
        HTTP timeout in seconds for the rate fetch.
    rate_cache_ttl : float, default 300.0
        Freshness window of the cached rate snapshot, in seconds.
    fallback_rates : dict[str, float]
        Units of currency per USD used when no live snapshot exists.
    dscr_min, debt_to_ebitda_max, current_ratio_min : float
        Portfolio covenant thresholds.
    import_batch_size : int, default 100
        Records per sequential upsert batch.
    opening_cash, receivables_total, working_capital_need, daily_variation : float
        Synthetic cash-flow figures (no ledger integration exists).
    other_payables_ratio : float, default 0.4
        Non-debt payables estimated as a share of debt payables.
    other_outflow_ratio : float, default 0.6
        Operating outflows estimated as a share of monthly inflows.
    monthly_inflows : list[float]
        Seasonal inflow estimate per projected month.
    concentration_alert_pct, fx_alert_pct : float
        Cash-flow alert thresholds in percent.
    """

    rate_url: str = "https://api.exchangerate-api.com/v4/latest/USD"
    rate_timeout: float = 10.0
    rate_cache_ttl: float = 300.0
    fallback_rates: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_FALLBACK_RATES)
    )
    dscr_min: float = 1.25
    debt_to_ebitda_max: float = 3.5
    current_ratio_min: float = 1.2
    import_batch_size: int = 100
    opening_cash: float = 45_700_000.0
    receivables_total: float = 156_000_000.0
    working_capital_need: float = 125_000_000.0
    daily_variation: float = 2_300_000.0
    other_payables_ratio: float = 0.4
    other_outflow_ratio: float = 0.6
    monthly_inflows: list[float] = field(
        default_factory=lambda: list(DEFAULT_MONTHLY_INFLOWS)
    )
    concentration_alert_pct: float = 35.0
    fx_alert_pct: float = 50.0


def settings_from_dict(config: dict[str, Any]) -> Settings:
    """
    Build Settings from a configuration dictionary.

    Missing keys keep their defaults.

    Parameters
    ----------
    config : dict[str, Any]
        Parsed configuration, typically from load_config.

    Returns
    -------
    Settings
    """
    defaults = Settings()

    def pick(section: str, key: str, fallback: Any) -> Any:
        return get_nested(config, section, key, default=fallback)

    fallback_rates = pick("currency", "fallback_rates", defaults.fallback_rates)

    return Settings(
        rate_url=pick("currency", "url", defaults.rate_url),
        rate_timeout=float(pick("currency", "timeout_seconds", defaults.rate_timeout)),
        rate_cache_ttl=float(pick("currency", "cache_ttl_seconds", defaults.rate_cache_ttl)),
        fallback_rates={k: float(v) for k, v in fallback_rates.items()},
        dscr_min=float(pick("covenants", "dscr_min", defaults.dscr_min)),
        debt_to_ebitda_max=float(
            pick("covenants", "debt_to_ebitda_max", defaults.debt_to_ebitda_max)
        ),
        current_ratio_min=float(
            pick("covenants", "current_ratio_min", defaults.current_ratio_min)
        ),
        import_batch_size=int(pick("import", "batch_size", defaults.import_batch_size)),
        opening_cash=float(pick("cash_flow", "opening_cash", defaults.opening_cash)),
        receivables_total=float(
            pick("cash_flow", "receivables_total", defaults.receivables_total)
        ),
        working_capital_need=float(
            pick("cash_flow", "working_capital_need", defaults.working_capital_need)
        ),
        daily_variation=float(pick("cash_flow", "daily_variation", defaults.daily_variation)),
        other_payables_ratio=float(
            pick("cash_flow", "other_payables_ratio", defaults.other_payables_ratio)
        ),
        other_outflow_ratio=float(
            pick("cash_flow", "other_outflow_ratio", defaults.other_outflow_ratio)
        ),
        monthly_inflows=[
            float(v) for v in pick("cash_flow", "monthly_inflows", defaults.monthly_inflows)
        ],
        concentration_alert_pct=float(
            pick("alerts", "concentration_pct", defaults.concentration_alert_pct)
        ),
        fx_alert_pct=float(pick("alerts", "fx_exposure_pct", defaults.fx_alert_pct)),
    )


def load_settings(path: str | Path | None = None) -> Settings:
    """
    Load Settings from a YAML file, or defaults when no path is given.

    Examples
    --------
    >>> load_settings().rate_cache_ttl
    300.0
    >>> load_settings("conf/agrifin.yaml").import_batch_size
    100
    """
    if path is None:
        return Settings()
    return settings_from_dict(load_config(path))
