# gdp_growth_forecaster/forecasting_utils.py

import hashlib
import time
import warnings
import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from itertools import product
from typing import List, NamedTuple, Optional, Tuple, Union
import logging

from statsmodels.tsa.statespace.sarimax import SARIMAX

from .errors import ForecastFitError, GridSearchTimeoutError, ModelFitFailure, NoViableModelError
from .transform_utils import box_cox_inverse

logger = logging.getLogger(__name__)

GRID_COLUMN = "(p,d,q,P,D,Q)"


class ModelOrder(NamedTuple):
    """Seasonal ARIMA order (p, d, q) x (P, D, Q)."""

    p: int
    d: int
    q: int
    P: int
    D: int
    Q: int

    @property
    def order(self) -> Tuple[int, int, int]:
        return (self.p, self.d, self.q)

    def seasonal_order(self, s: int) -> Tuple[int, int, int, int]:
        # statsmodels expects a zero period when there is no seasonal component
        if self.P == 0 and self.D == 0 and self.Q == 0:
            return (0, 0, 0, 0)
        return (self.P, self.D, self.Q, s)

    @property
    def trend(self) -> str:
        """Include a mean only when the model is undifferenced."""
        return "c" if self.d == 0 and self.D == 0 else "n"

    def __str__(self) -> str:
        return f"SARIMA({self.p},{self.d},{self.q})({self.P},{self.D},{self.Q})"


@dataclass(frozen=True)
class SelectedModel:
    """Minimum-RMSE order from a cross-validated grid search."""

    order: ModelOrder
    rmse: float
    mae: float
    grid: pd.DataFrame = field(repr=False, compare=False)

    @property
    def n_candidates(self) -> int:
        return len(self.grid)


@dataclass(frozen=True)
class ForecastResult:
    """Growth and GDP-level forecasts for one country."""

    country: Optional[str]
    order: ModelOrder
    lam: float
    growth: pd.Series
    box_cox_levels: pd.Series
    gdp: pd.Series

    @property
    def horizon(self) -> int:
        return len(self.growth)


def enumerate_orders(nonseasonal_max: int, seasonal_max: int) -> List[ModelOrder]:
    """
    Enumerate the full order grid in lexicographic (p, d, q, P, D, Q) order.

    Parameters
    ----------
    nonseasonal_max : int
        Upper bound (inclusive) for p, d and q
    seasonal_max : int
        Upper bound (inclusive) for P, D and Q

    Returns
    -------
    List[ModelOrder]
        (nonseasonal_max + 1)^3 * (seasonal_max + 1)^3 orders
    """
    if nonseasonal_max < 0 or seasonal_max < 0:
        raise ValueError("Order bounds must be non-negative")
    ns = range(nonseasonal_max + 1)
    ss = range(seasonal_max + 1)
    return [ModelOrder(*o) for o in product(ns, ns, ns, ss, ss, ss)]


def fit_sarima(endog: Union[pd.Series, np.ndarray],
               order: ModelOrder,
               s: int = 4,
               maxiter: int = 50):
    """
    Fit a seasonal ARIMA model, converting any failure into ModelFitFailure.

    Parameters
    ----------
    endog : Union[pd.Series, np.ndarray]
        Training series
    order : ModelOrder
        Candidate order
    s : int, default=4
        Seasonal period
    maxiter : int, default=50
        Maximum optimizer iterations

    Returns
    -------
    SARIMAXResults
        Fitted results

    Raises
    ------
    ModelFitFailure
        If the model cannot be constructed or fit, or the log-likelihood is
        not finite
    """
    order = ModelOrder(*order)
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            model = SARIMAX(
                endog,
                order=order.order,
                seasonal_order=order.seasonal_order(s),
                trend=order.trend,
                simple_differencing=False,
            )
            res = model.fit(disp=False, maxiter=maxiter)
    except Exception as e:
        raise ModelFitFailure(f"{order} fit failed: {e}", order=order) from e

    if not np.isfinite(getattr(res, "llf", np.nan)):
        raise ModelFitFailure(f"{order} fit returned a non-finite log-likelihood", order=order)
    return res


def forecast_sarima(endog: Union[pd.Series, np.ndarray],
                    order: ModelOrder,
                    steps: int,
                    s: int = 4,
                    maxiter: int = 50) -> np.ndarray:
    """
    Fit `order` on `endog` and return a `steps`-ahead mean forecast.

    Raises
    ------
    ModelFitFailure
        If fitting fails or the forecast contains non-finite values
    """
    res = fit_sarima(np.asarray(endog, dtype=float), order, s=s, maxiter=maxiter)
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            fc = np.asarray(res.forecast(steps=steps), dtype=float)
    except Exception as e:
        raise ModelFitFailure(f"{order} forecast failed: {e}", order=order) from e
    if fc.shape != (steps,) or not np.all(np.isfinite(fc)):
        raise ModelFitFailure(f"{order} produced a non-finite forecast", order=order)
    return fc


def select_best_model(series: Union[pd.Series, np.ndarray],
                      nonseasonal_max: int,
                      seasonal_max: int,
                      config=None,
                      deadline: Optional[float] = None,
                      progress=None,
                      country: Optional[str] = None) -> SelectedModel:
    """
    Grid-search seasonal ARIMA orders and rank them by cross-validated RMSE.

    Every order in the (p, d, q, P, D, Q) grid is scored with rolling-origin
    cross-validation; the order with the smallest RMSE wins.

    Parameters
    ----------
    series : Union[pd.Series, np.ndarray]
        Stationary growth-rate series
    nonseasonal_max : int
        Upper bound for p, d, q
    seasonal_max : int
        Upper bound for P, D, Q
    config : BacktestConfig or ForecastConfig, optional
        Cross-validation settings (horizon, minimum window, frequency)
    deadline : float, optional
        time.monotonic() value after which the search is abandoned
    progress : BatchProgress, optional
        Receives one tick per evaluated grid point
    country : str, optional
        Label for logging and the progress bar

    Returns
    -------
    SelectedModel
        Best order with its RMSE/MAE and the RMSE-ranked grid table

    Raises
    ------
    NoViableModelError
        If every candidate has an undefined RMSE
    GridSearchTimeoutError
        If the deadline passes before the grid is exhausted

    Notes
    -----
    Ties keep the first order in enumeration order, so repeated runs on the
    same data select the same model.
    """
    from backtesting.rolling_origin import BacktestConfig, RollingOriginValidator
    from helpers.progress import grid_progress_bar

    if config is None or not isinstance(config, BacktestConfig):
        config = BacktestConfig.from_forecast_config(config)
    validator = RollingOriginValidator(config)

    orders = enumerate_orders(nonseasonal_max, seasonal_max)
    label = country or "series"
    logger.info("Grid search for %s: %d candidate orders, %d observations", label, len(orders), len(series))

    rows = []
    best_order: Optional[ModelOrder] = None
    best_rmse = float("inf")
    best_mae = float("nan")

    with grid_progress_bar(len(orders), f"Grid search {label}", enabled=config.show_progress) as pbar:
        for i, order in enumerate(orders):
            if deadline is not None and time.monotonic() > deadline:
                raise GridSearchTimeoutError(
                    f"Grid search for {label} timed out after {i}/{len(orders)} candidates",
                    evaluated=i,
                    total=len(orders),
                )

            cv = validator.evaluate(series, order)
            rows.append([tuple(order), cv.rmse, cv.mae, cv.failed_origins])

            # strict '<' keeps the first order on ties; NaN never compares smaller
            if np.isfinite(cv.rmse) and cv.rmse < best_rmse:
                best_order, best_rmse, best_mae = order, cv.rmse, cv.mae

            pbar.update(1)
            if progress is not None:
                progress.grid_point_done()

    grid = pd.DataFrame(rows, columns=[GRID_COLUMN, "RMSE", "MAE", "failed_origins"])
    grid = grid.sort_values(by="RMSE", ascending=True, kind="mergesort", na_position="last").reset_index(drop=True)

    if best_order is None:
        raise NoViableModelError(
            f"No viable model for {label}: all {len(orders)} candidates have undefined RMSE",
            n_candidates=len(orders),
        )

    logger.info("Selected %s for %s with RMSE=%.4f, MAE=%.4f", best_order, label, best_rmse, best_mae)
    logger.debug("Top 5 models by RMSE for %s:\n%s", label, grid.head().to_string())
    return SelectedModel(order=best_order, rmse=float(best_rmse), mae=float(best_mae), grid=grid)


def forecast_country(series: pd.Series,
                     selected_model: Union[SelectedModel, ModelOrder, Tuple],
                     last_box_cox_level: float,
                     lam: float,
                     horizon: int = 4,
                     frequency: int = 4,
                     maxiter: int = 50,
                     country: Optional[str] = None) -> ForecastResult:
    """
    Forecast growth with the selected model and rebuild GDP levels.

    The growth forecasts are compounded onto the last Box-Cox level,
    level[i] = level[i-1] * (1 + growth[i] / 100), and the compounded path
    is mapped back to GDP units with the inverse Box-Cox transform.

    Parameters
    ----------
    series : pd.Series
        Full (transformed, trimmed) growth-rate series
    selected_model : Union[SelectedModel, ModelOrder, Tuple]
        Order to fit
    last_box_cox_level : float
        Last observed GDP level on the Box-Cox scale
    lam : float
        Box-Cox lambda of this country
    horizon : int, default=4
        Steps to forecast
    frequency : int, default=4
        Seasonal period
    maxiter : int, default=50
        Maximum optimizer iterations
    country : str, optional
        Label stored on the result

    Returns
    -------
    ForecastResult
        Growth, Box-Cox level and GDP forecasts indexed by the forecast periods

    Raises
    ------
    ForecastFitError
        If the final model cannot be fit or forecast
    DegenerateSeriesError
        If the compounded levels fall outside the domain of the inverse
        Box-Cox transform
    """
    order = ModelOrder(*getattr(selected_model, "order", selected_model))
    try:
        growth = forecast_sarima(series, order, steps=horizon, s=frequency, maxiter=maxiter)
    except ModelFitFailure as e:
        raise ForecastFitError(f"Final fit of {order} failed for {country or 'series'}: {e}") from e

    levels = np.empty(horizon, dtype=float)
    prev = float(last_box_cox_level)
    for i in range(horizon):
        prev = prev * (1.0 + growth[i] / 100.0)
        levels[i] = prev

    gdp = box_cox_inverse(levels, lam)

    if isinstance(series, pd.Series) and isinstance(series.index, pd.PeriodIndex):
        from helpers.temporal import future_periods
        index = future_periods(series.index, horizon)
    else:
        index = pd.RangeIndex(len(series), len(series) + horizon)

    logger.info("Forecast for %s with %s: growth=%s", country or "series", order, np.round(growth, 4).tolist())
    return ForecastResult(
        country=country,
        order=order,
        lam=float(lam),
        growth=pd.Series(growth, index=index, name="growth"),
        box_cox_levels=pd.Series(levels, index=index, name="box_cox_level"),
        gdp=pd.Series(np.asarray(gdp, dtype=float), index=index, name="gdp"),
    )


def hash_forecast(seq: Union[List[float], np.ndarray, pd.Series]) -> str:
    """
    Generate a hash fingerprint for a forecast sequence.

    Used to check that serial and parallel runs produce identical forecasts.

    Returns
    -------
    str
        16-character SHA-1 hash of the float64 bytes of the sequence
    """
    arr = np.asarray(seq, dtype=np.float64)
    return hashlib.sha1(arr.tobytes()).hexdigest()[:16]
