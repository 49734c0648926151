"""Rolling-origin cross-validation for seasonal ARIMA candidates.

This module scores one candidate order against one series by refitting the
model on a growing training window and forecasting a fixed horizon from each
origin.

Features:
- Expanding training window starting at a configurable minimum size
- Fixed forecast horizon per origin; error slots past the end of the series
  are left missing
- Per-origin fit failures recorded as missing rows instead of aborting
- Null-aware RMSE / MAE aggregation
"""

import logging
from typing import List, Optional, Union
from dataclasses import dataclass, field

import pandas as pd
import numpy as np

from gdp_growth_forecaster.errors import ModelFitFailure
from gdp_growth_forecaster.forecasting_utils import ModelOrder, forecast_sarima

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BacktestConfig:
    """Configuration for rolling-origin cross-validation."""

    min_train_size: int = 8             # First training window length
    forecast_horizon: int = 4           # Steps ahead to forecast at every origin
    step_size: int = 1                  # Steps between origins
    frequency: int = 4                  # Seasonal period passed to SARIMA
    maxiter: int = 50                   # Optimizer iterations per fit
    show_progress: bool = True

    def __post_init__(self):
        if self.min_train_size < 1:
            raise ValueError("min_train_size must be >= 1")
        if self.forecast_horizon < 1:
            raise ValueError("forecast_horizon must be >= 1")
        if self.step_size < 1:
            raise ValueError("step_size must be >= 1")

    @classmethod
    def from_forecast_config(cls, forecast_config=None) -> 'BacktestConfig':
        """Create BacktestConfig from a ForecastConfig.

        Parameters
        ----------
        forecast_config : ForecastConfig, optional
            Run configuration. If None, uses defaults.

        Returns
        -------
        BacktestConfig
            Cross-validation settings derived from the run configuration
        """
        if forecast_config is None:
            return cls()
        return cls(
            min_train_size=forecast_config.cv_min_window,
            forecast_horizon=forecast_config.horizon,
            step_size=forecast_config.cv_step,
            frequency=forecast_config.frequency,
            maxiter=forecast_config.maxiter,
            show_progress=forecast_config.show_progress,
        )


@dataclass(frozen=True)
class CrossValidationResult:
    """Errors of one order scored over every rolling origin."""

    order: ModelOrder
    train_sizes: List[int]
    errors: np.ndarray = field(repr=False)  # origins x horizon, actual - forecast, NaN when missing
    failed_origins: int = 0

    @property
    def n_origins(self) -> int:
        return len(self.train_sizes)

    @property
    def rmse(self) -> float:
        e = self.errors[np.isfinite(self.errors)]
        if e.size == 0:
            return float("nan")
        return float(np.sqrt(np.mean(e ** 2)))

    @property
    def mae(self) -> float:
        e = self.errors[np.isfinite(self.errors)]
        if e.size == 0:
            return float("nan")
        return float(np.mean(np.abs(e)))

    def per_horizon_rmse(self) -> pd.Series:
        """RMSE at each forecast step, ignoring missing slots."""
        out = []
        for j in range(self.errors.shape[1]):
            col = self.errors[:, j]
            col = col[np.isfinite(col)]
            out.append(float(np.sqrt(np.mean(col ** 2))) if col.size else float("nan"))
        return pd.Series(out, index=range(1, self.errors.shape[1] + 1), name="rmse")

    def to_frame(self) -> pd.DataFrame:
        """Error matrix with one row per origin (training size) and one column per step."""
        cols = [f"h{j}" for j in range(1, self.errors.shape[1] + 1)]
        return pd.DataFrame(self.errors, index=pd.Index(self.train_sizes, name="train_size"), columns=cols)


class RollingOriginValidator:
    """Rolling-origin cross-validator for seasonal ARIMA orders."""

    def __init__(self, config: Optional[BacktestConfig] = None):
        """Initialize the validator.

        Parameters
        ----------
        config : BacktestConfig, optional
            Cross-validation configuration. If None, uses defaults.
        """
        self.config = config or BacktestConfig()

    def _generate_train_sizes(self, n_obs: int) -> List[int]:
        """Training window lengths from the minimum size up to n - 1."""
        return list(range(self.config.min_train_size, n_obs, self.config.step_size))

    def evaluate(self,
                 series: Union[pd.Series, np.ndarray],
                 order: Union[ModelOrder, tuple]) -> CrossValidationResult:
        """Score one order with rolling-origin cross-validation.

        Parameters
        ----------
        series : Union[pd.Series, np.ndarray]
            Series to evaluate on
        order : Union[ModelOrder, tuple]
            (p, d, q, P, D, Q)

        Returns
        -------
        CrossValidationResult
            Error matrix and aggregated RMSE / MAE
        """
        order = ModelOrder(*order)
        y = np.asarray(series, dtype=float).ravel()
        n = len(y)
        h = self.config.forecast_horizon

        train_sizes = self._generate_train_sizes(n)
        errors = np.full((len(train_sizes), h), np.nan)
        failed = 0

        for i, w in enumerate(train_sizes):
            try:
                fc = forecast_sarima(y[:w], order, steps=h, s=self.config.frequency, maxiter=self.config.maxiter)
            except ModelFitFailure as e:
                logger.debug("%s failed at train_size=%d: %s", order, w, e)
                failed += 1
                continue

            n_actual = min(h, n - w)
            errors[i, :n_actual] = y[w:w + n_actual] - fc[:n_actual]

        if failed:
            logger.debug("%s: %d/%d origins failed", order, failed, len(train_sizes))

        return CrossValidationResult(order=order, train_sizes=train_sizes, errors=errors, failed_origins=failed)


def run_rolling_origin_backtest(series: Union[pd.Series, np.ndarray],
                                order: Union[ModelOrder, tuple],
                                config: Optional[BacktestConfig] = None) -> CrossValidationResult:
    """Convenience function to score a single order.

    Parameters
    ----------
    series : Union[pd.Series, np.ndarray]
        Series to evaluate on
    order : Union[ModelOrder, tuple]
        Candidate order
    config : BacktestConfig, optional
        Cross-validation configuration

    Returns
    -------
    CrossValidationResult
        Error matrix and aggregated metrics
    """
    validator = RollingOriginValidator(config)
    return validator.evaluate(series, order)
