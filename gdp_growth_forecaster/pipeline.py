# gdp_growth_forecaster/pipeline.py

"""
Per-country forecasting pipeline and batch runner.

Each country flows through:

    GDP levels -> Box-Cox -> growth rate -> break trim -> re-dated series
      -> cross-validated grid search -> final fit -> compounded levels
      -> inverse Box-Cox -> optional scoring against actuals

All state for one country lives in its CountryResult. Countries never share
mutable state, so the batch can run them in a process pool without changing
any result.
"""

import dataclasses
import logging
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from helpers.progress import BatchProgress
from helpers.temporal import build_series, ensure_period_index, period_freq

from .config_utils import ForecastConfig
from .errors import ForecastPipelineError, GridSearchTimeoutError, NoViableModelError
from .forecasting_utils import ForecastResult, SelectedModel, forecast_country, hash_forecast, select_best_model
from .metrics_utils import score_forecast
from .transform_utils import box_cox_forward, box_cox_lambda, breakpoint_trim, percentage_change

logger = logging.getLogger(__name__)

Observations = Union[pd.Series, Sequence[Tuple[object, float]]]


@dataclass(frozen=True)
class CountryResult:
    """Everything produced for one country in one run."""

    country: str
    status: str                                   # "ok" or "failed"
    n_observations: int = 0
    lam: Optional[float] = None
    growth: Optional[pd.Series] = field(default=None, repr=False)
    n_trimmed: int = 0
    grid_points_evaluated: int = 0               # candidates scored, also when the search failed
    selected: Optional[SelectedModel] = None
    forecast: Optional[ForecastResult] = None
    scores: Optional[Dict[str, float]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def observations_to_series(observations: Observations, country: str = "series", frequency: int = 4) -> pd.Series:
    """
    Normalize ingested observations to a float series with a contiguous PeriodIndex.

    Accepts a dated pandas Series or a sequence of (period, value) pairs.
    """
    if isinstance(observations, pd.Series):
        s = observations
    else:
        pairs = list(observations)
        if not pairs:
            s = pd.Series([], dtype=float)
        else:
            periods, values = zip(*pairs)
            s = pd.Series(values, index=pd.PeriodIndex([pd.Period(p, freq=period_freq(frequency)) for p in periods]))
    s = pd.to_numeric(s, errors="coerce").astype(float)
    s = ensure_period_index(s, frequency)
    s.name = country
    return s


def run_country(country: str,
                observations: Observations,
                config: Optional[ForecastConfig] = None,
                actuals: Optional[Sequence[float]] = None,
                progress: Optional[BatchProgress] = None) -> CountryResult:
    """
    Run the full transform / select / forecast pipeline for one country.

    Parameters
    ----------
    country : str
        Country identifier
    observations : Observations
        Quarterly GDP levels
    config : ForecastConfig, optional
        Run configuration; defaults are used when omitted
    actuals : Sequence[float], optional
        Realized GDP for the forecast quarters, matched by position
    progress : BatchProgress, optional
        Receives grid-point ticks during the search

    Returns
    -------
    CountryResult
        status "ok" with the forecast, or status "failed" with the error text.
        Pipeline errors never escape this function.
    """
    config = config or ForecastConfig()
    n_obs = 0
    lam = None
    growth = None
    n_trimmed = 0
    selected = None
    try:
        raw = observations_to_series(observations, country, config.frequency)
        n_obs = len(raw)
        logger.info("Processing %s: %d observations (%s to %s)",
                    country, n_obs, raw.index[0] if n_obs else "-", raw.index[-1] if n_obs else "-")

        if config.box_cox_lambda is not None:
            lam = float(config.box_cox_lambda)
        else:
            lam = box_cox_lambda(raw, frequency=config.frequency, method=config.box_cox_method)
        logger.info("Box-Cox lambda for %s: %.4f", country, lam)

        bc = box_cox_forward(raw, lam)
        growth_full = percentage_change(bc)
        if config.trim_breakpoints:
            trimmed = breakpoint_trim(growth_full,
                                      min_segment=config.breakpoint_min_segment,
                                      significance=config.breakpoint_significance)
        else:
            trimmed = growth_full
        n_trimmed = len(growth_full) - len(trimmed)

        if config.canonical_end_year is not None:
            growth = build_series(trimmed.values, config.canonical_end_year, config.frequency, name="growth")
        else:
            growth = trimmed.rename("growth")

        deadline = None
        if config.grid_timeout is not None:
            deadline = time.monotonic() + float(config.grid_timeout)

        selected = select_best_model(
            growth,
            config.nonseasonal_max,
            config.seasonal_max,
            config=config,
            deadline=deadline,
            progress=progress,
            country=country,
        )

        forecast = forecast_country(
            growth,
            selected,
            last_box_cox_level=float(bc.iloc[-1]),
            lam=lam,
            horizon=config.horizon,
            frequency=config.frequency,
            maxiter=config.maxiter,
            country=country,
        )
    except ForecastPipelineError as e:
        logger.error("Pipeline failed for %s: %s: %s", country, type(e).__name__, e)
        if isinstance(e, NoViableModelError):
            evaluated = e.n_candidates
        elif isinstance(e, GridSearchTimeoutError):
            evaluated = e.evaluated
        else:
            evaluated = selected.n_candidates if selected is not None else 0
        return CountryResult(
            country=country,
            status="failed",
            n_observations=n_obs,
            lam=lam,
            growth=growth,
            n_trimmed=n_trimmed,
            grid_points_evaluated=evaluated,
            selected=selected,
            error=f"{type(e).__name__}: {e}",
        )

    scores = None
    if actuals is not None:
        real = np.full(config.horizon, np.nan)
        vals = np.asarray(actuals, dtype=float).ravel()[: config.horizon]
        real[: len(vals)] = vals
        scores = score_forecast(forecast.gdp.values, real)
        logger.info("Scores for %s: %s", country, ", ".join(f"{k}={v:.4f}" for k, v in scores.items()))

    return CountryResult(
        country=country,
        status="ok",
        n_observations=n_obs,
        lam=lam,
        growth=growth,
        n_trimmed=n_trimmed,
        grid_points_evaluated=selected.n_candidates,
        selected=selected,
        forecast=forecast,
        scores=scores,
    )


def _run_country_task(task: Tuple[str, Observations, ForecastConfig, Optional[Sequence[float]]]) -> CountryResult:
    """Process-pool entry point; must stay at module level to be picklable."""
    country, observations, config, actuals = task
    return run_country(country, observations, config, actuals)


def _failed_result(country: str, exc: BaseException) -> CountryResult:
    return CountryResult(country=country, status="failed", error=f"{type(exc).__name__}: {exc}")


def run_batch(series_by_country: Mapping[str, Observations],
              config: Optional[ForecastConfig] = None,
              actuals_by_country: Optional[Mapping[str, Sequence[float]]] = None,
              progress: Optional[BatchProgress] = None) -> Dict[str, CountryResult]:
    """
    Forecast every country in the batch.

    Parameters
    ----------
    series_by_country : Mapping[str, Observations]
        GDP observations keyed by country identifier
    config : ForecastConfig, optional
        Run configuration; config.n_jobs > 1 uses a process pool
    actuals_by_country : Mapping[str, Sequence[float]], optional
        Realized values for scoring, keyed by country identifier
    progress : BatchProgress, optional
        Observable progress counters; created when omitted

    Returns
    -------
    Dict[str, CountryResult]
        Results in the key order of series_by_country, whatever the
        execution mode

    Notes
    -----
    A country that fails is reported on its own result and does not stop
    the others.
    """
    config = config or ForecastConfig()
    actuals_by_country = actuals_by_country or {}
    countries = list(series_by_country.keys())

    if progress is None:
        progress = BatchProgress(total_countries=len(countries))
    else:
        progress.total_countries = len(countries)

    results: Dict[str, CountryResult] = {}

    if config.n_jobs <= 1 or len(countries) <= 1:
        for country in countries:
            try:
                res = run_country(country, series_by_country[country], config,
                                  actuals_by_country.get(country), progress=progress)
            except Exception as e:
                logger.exception("Unexpected failure for %s", country)
                res = _failed_result(country, e)
            results[country] = res
            progress.country_done(country, failed=not res.ok)
    else:
        worker_config = dataclasses.replace(config, show_progress=False)
        n_workers = min(config.n_jobs, len(countries))
        logger.info("Running %d countries on %d worker processes", len(countries), n_workers)
        with ProcessPoolExecutor(max_workers=n_workers) as executor:
            futures = {
                executor.submit(
                    _run_country_task,
                    (country, series_by_country[country], worker_config, actuals_by_country.get(country)),
                ): country
                for country in countries
            }
            for future in as_completed(futures):
                country = futures[future]
                try:
                    res = future.result()
                except Exception as e:
                    logger.error("Worker failed for %s: %s", country, e)
                    res = _failed_result(country, e)
                progress.grid_point_done(res.grid_points_evaluated)
                results[country] = res
                progress.country_done(country, failed=not res.ok)

    snap = progress.snapshot()
    logger.info("Batch finished: %d countries, %d failed, %d grid points evaluated",
                snap["countries_completed"], snap["countries_failed"], snap["grid_points_evaluated"])
    return {c: results[c] for c in countries}


def results_to_frame(results: Union[Mapping[str, CountryResult], Iterable[CountryResult]]) -> pd.DataFrame:
    """
    Flatten country results into one row per country and forecast step.

    Failed countries contribute a single row carrying the error text.
    """
    records = results.values() if isinstance(results, Mapping) else results
    rows = []
    for r in records:
        base = {
            "country": r.country,
            "status": r.status,
            "error": r.error or "",
            "n_obs": r.n_observations,
            "n_trimmed": r.n_trimmed,
            "lambda": r.lam,
            "order": str(tuple(r.selected.order)) if r.selected is not None else "",
            "cv_RMSE": r.selected.rmse if r.selected is not None else np.nan,
            "cv_MAE": r.selected.mae if r.selected is not None else np.nan,
        }
        scores = r.scores or {}
        for k in ("MAE", "RMSE", "MAPE", "sMAPE"):
            base[k] = scores.get(k, np.nan)

        if r.forecast is None:
            rows.append({**base, "step": np.nan, "period": "", "growth": np.nan, "gdp": np.nan, "hash": ""})
            continue

        fc_hash = hash_forecast(r.forecast.gdp.values)
        for step, (period, g, y) in enumerate(zip(r.forecast.gdp.index, r.forecast.growth.values,
                                                  r.forecast.gdp.values), start=1):
            rows.append({**base, "step": step, "period": str(period), "growth": g, "gdp": y, "hash": fc_hash})

    return pd.DataFrame(rows)
