# gdp_growth_forecaster/config_utils.py

import argparse
import logging
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union, get_args

import yaml

logger = logging.getLogger(__name__)

# Global configuration manager, populated by initialize_config()
config_manager = None

# Periods per year with a pandas period alias (annual, quarterly, monthly)
SUPPORTED_FREQUENCIES = (1, 4, 12)

# Marks a key that is absent from the file, as opposed to an explicit null
MISSING = object()


class ConfigManager:
    """Read-only view over a nested YAML mapping with dot-notation access."""

    def __init__(self, data: Optional[Dict[str, Any]] = None, source: Optional[Path] = None):
        self.data = data or {}
        self.source = source

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "ConfigManager":
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping at the top level")
        return cls(data, source=path)

    def get(self, key_path: str, default=None):
        node: Any = self.data
        for part in key_path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def validate_configuration(self) -> Dict[str, list]:
        """Return {section: [messages]} for unknown keys under `forecast`."""
        known = {f.name for f in fields(ForecastConfig)}
        section = self.data.get("forecast", {}) or {}
        unknown = sorted(k for k in section if k not in known)
        return {"forecast": [f"unknown key '{k}'" for k in unknown]} if unknown else {}


def initialize_config(path: Optional[Union[str, Path]] = None) -> None:
    """
    Initializes the global configuration manager.
    A missing or unreadable file is logged and the defaults are used instead.
    """
    global config_manager
    if path is None:
        config_manager = None
        return
    try:
        config_manager = ConfigManager.from_yaml(path)
        validation_errors = config_manager.validate_configuration()
        if validation_errors:
            logger.warning("Configuration validation warnings: %s", validation_errors)
        logger.info("Loaded configuration from %s", path)
    except (OSError, yaml.YAMLError, ValueError) as e:
        logger.error("Failed to initialize configuration from %s: %s. Using defaults.", path, e)
        config_manager = None


def get_config_value(key_path: str, default=None, args=None, cli_param=None):
    """
    Retrieves a configuration value, providing support for command-line overrides.
    The function prioritizes values in the following order:
    1. CLI argument (if provided)
    2. Configuration file
    3. Default value
    """
    # First priority: CLI argument
    if args and cli_param and hasattr(args, cli_param):
        cli_value = getattr(args, cli_param)
        if cli_value is not None:
            return cli_value

    # Second priority: Configuration file (an explicit null counts as set)
    if config_manager:
        config_value = config_manager.get(key_path, MISSING)
        if config_value is not MISSING:
            return config_value

    # Third priority: Default value
    return default


@dataclass(frozen=True)
class ForecastConfig:
    """Settings for one forecasting run."""

    # Grid search bounds
    nonseasonal_max: int = 1            # upper bound for p, d, q
    seasonal_max: int = 2               # upper bound for P, D, Q

    # Forecast / cross-validation
    horizon: int = 4                    # steps ahead, also the CV horizon
    frequency: int = 4                  # periods per year, also the seasonal period
    cv_min_window: int = 8              # smallest training window in the CV scan
    cv_step: int = 1                    # origin advance between CV fits
    maxiter: int = 50                   # optimizer iterations per SARIMA fit

    # Transforms
    canonical_end_year: Optional[int] = 2019  # year the source data is anchored to; None keeps ingested dates
    box_cox_method: str = "guerrero"    # "guerrero" or "loglik"
    box_cox_lambda: Optional[float] = None  # fixed lambda; None estimates it
    trim_breakpoints: bool = True
    breakpoint_min_segment: float = 0.15
    breakpoint_significance: float = 0.01  # Chow test level for accepting a break

    # Execution
    n_jobs: int = 1
    grid_timeout: Optional[float] = None  # seconds per country grid search
    show_progress: bool = True

    def __post_init__(self):
        for name in ("horizon", "frequency", "cv_min_window", "cv_step", "maxiter", "n_jobs"):
            if int(getattr(self, name)) < 1:
                raise ValueError(f"{name} must be >= 1")
        for name in ("nonseasonal_max", "seasonal_max"):
            if int(getattr(self, name)) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.box_cox_method not in ("guerrero", "loglik"):
            raise ValueError(f"Invalid box_cox_method '{self.box_cox_method}'")
        if not 0.0 < float(self.breakpoint_min_segment) < 0.5:
            raise ValueError("breakpoint_min_segment must lie in (0, 0.5)")
        if not 0.0 < float(self.breakpoint_significance) < 1.0:
            raise ValueError("breakpoint_significance must lie in (0, 1)")
        if int(self.frequency) not in SUPPORTED_FREQUENCIES:
            raise ValueError(f"frequency must be one of {SUPPORTED_FREQUENCIES}, got {self.frequency}")
        if self.grid_timeout is not None and float(self.grid_timeout) <= 0:
            raise ValueError("grid_timeout must be positive when set")

    @property
    def grid_size(self) -> int:
        return (self.nonseasonal_max + 1) ** 3 * (self.seasonal_max + 1) ** 3

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_config_manager(cls, args: Optional[argparse.Namespace] = None) -> "ForecastConfig":
        """
        Build a ForecastConfig from the global configuration and CLI arguments.

        Keys are read from the `forecast` section of the YAML file; a CLI
        attribute with the same name as the field overrides the file value.
        An explicit null in the file is honoured for optional fields (e.g.
        `canonical_end_year: null` keeps the ingested dates) and ignored with
        a warning for the others. `args.keep_dates` forces
        `canonical_end_year` to None.
        """
        values: Dict[str, Any] = {}
        for f in fields(cls):
            default = f.default
            value = get_config_value(f"forecast.{f.name}", default, args, f.name)
            if value is None and type(None) not in get_args(f.type):
                logger.warning("forecast.%s cannot be null; using default %r", f.name, default)
                value = default
            if value is not None and default is not None and not isinstance(default, bool):
                value = type(default)(value)
            values[f.name] = value
        if getattr(args, "keep_dates", False):
            values["canonical_end_year"] = None
        return cls(**values)
