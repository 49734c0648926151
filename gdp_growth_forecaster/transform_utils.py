# gdp_growth_forecaster/transform_utils.py

import math
import numpy as np
import pandas as pd
from typing import Optional, Union
import logging

import ruptures as rpt
from scipy import optimize, special, stats

from .errors import DegenerateSeriesError

logger = logging.getLogger(__name__)

ArrayLike = Union[pd.Series, np.ndarray, list]


def _as_float_array(series: ArrayLike) -> np.ndarray:
    return np.asarray(series, dtype=float).ravel()


def _wrap_like(values: np.ndarray, template: ArrayLike, index=None) -> Union[pd.Series, np.ndarray]:
    """Return values as a Series when the input was a Series, otherwise as an array."""
    if isinstance(template, pd.Series):
        idx = template.index if index is None else index
        return pd.Series(values, index=idx, name=template.name)
    return values


def validate_positive_series(series: ArrayLike, what: str = "Box-Cox") -> np.ndarray:
    """
    Validate that a series is non-empty, finite and strictly positive.

    Parameters
    ----------
    series : ArrayLike
        Input values
    what : str
        Name of the operation requiring positivity, used in the error message

    Returns
    -------
    np.ndarray
        The values as a float array

    Raises
    ------
    DegenerateSeriesError
        If the series is empty, contains non-finite values, or any value <= 0
    """
    arr = _as_float_array(series)
    if arr.size == 0:
        raise DegenerateSeriesError(f"{what} requires a non-empty series")
    if not np.all(np.isfinite(arr)):
        raise DegenerateSeriesError(f"{what} requires finite values")
    if np.any(arr <= 0):
        n_bad = int(np.sum(arr <= 0))
        raise DegenerateSeriesError(f"{what} requires strictly positive values ({n_bad} non-positive)")
    return arr


def guerrero_cv(lam: float, x: np.ndarray, frequency: int = 4) -> float:
    """
    Coefficient of variation of sd / mean^(1 - lam) across yearly sub-series.

    The leading partial year is dropped so that the last observation always
    closes a complete block.
    """
    period = max(2, int(round(frequency)))
    n_years = len(x) // period
    block = x[len(x) - n_years * period:].reshape(n_years, period)
    means = block.mean(axis=1)
    sds = block.std(axis=1, ddof=1)
    ratios = sds / np.power(means, 1.0 - lam)
    denom = np.mean(ratios)
    if denom == 0.0 or not np.isfinite(denom):
        return float("nan")
    return float(np.std(ratios, ddof=1) / denom)


def box_cox_lambda(series: ArrayLike,
                   frequency: int = 4,
                   method: str = "guerrero",
                   lower: float = -1.0,
                   upper: float = 2.0) -> float:
    """
    Estimate the variance-stabilizing Box-Cox parameter for a level series.

    Parameters
    ----------
    series : ArrayLike
        Strictly positive level series (e.g. quarterly GDP)
    frequency : int, default=4
        Observations per year; defines the sub-series used by Guerrero's method
    method : str, default="guerrero"
        "guerrero" minimizes the coefficient of variation of sd/mean^(1-lambda)
        across yearly sub-series. "loglik" maximizes the Box-Cox profile
        log-likelihood.
    lower, upper : float
        Search bounds for lambda

    Returns
    -------
    float
        Estimated lambda

    Raises
    ------
    DegenerateSeriesError
        If the series has non-positive values, is too short, or has no
        variance for the search to work with

    Notes
    -----
    Negative or zero values are not shifted automatically; the error is
    propagated to the caller.
    """
    x = validate_positive_series(series, what="Box-Cox lambda estimation")

    if method == "guerrero":
        period = max(2, int(round(frequency)))
        if len(x) // period < 2:
            raise DegenerateSeriesError(
                f"Guerrero lambda search needs at least two complete years ({2 * period} obs), got {len(x)}"
            )
        if not np.isfinite(guerrero_cv(1.0, x, frequency)):
            raise DegenerateSeriesError("Guerrero lambda search failed: sub-series have no variance")
        objective = lambda lam: guerrero_cv(lam, x, frequency)
    elif method == "loglik":
        if len(x) < 3 or np.ptp(x) == 0.0:
            raise DegenerateSeriesError("Log-likelihood lambda search needs a non-constant series")
        objective = lambda lam: -float(stats.boxcox_llf(lam, x))
    else:
        raise ValueError(f"Unknown Box-Cox lambda method '{method}'. Must be 'guerrero' or 'loglik'.")

    res = optimize.minimize_scalar(objective, bounds=(lower, upper), method="bounded")
    if not np.isfinite(res.x) or not np.isfinite(res.fun):
        raise DegenerateSeriesError(f"Box-Cox lambda search did not converge (method={method})")

    lam = float(res.x)
    logger.debug("Box-Cox lambda (%s) = %.6f", method, lam)
    return lam


def box_cox_forward(series: ArrayLike, lam: float) -> Union[pd.Series, np.ndarray]:
    """
    Apply the Box-Cox transform elementwise.

    lambda == 0 gives the natural log, otherwise (y^lambda - 1) / lambda.

    Raises
    ------
    DegenerateSeriesError
        If any value is non-positive
    """
    x = validate_positive_series(series, what="Box-Cox transform")
    return _wrap_like(special.boxcox(x, lam), series)


def box_cox_inverse(series: ArrayLike, lam: float) -> Union[pd.Series, np.ndarray]:
    """
    Invert the Box-Cox transform elementwise.

    lambda == 0 gives exp, otherwise (lambda * y + 1)^(1 / lambda).

    Raises
    ------
    DegenerateSeriesError
        If lambda * y + 1 <= 0 for some value (no real inverse exists)
    """
    y = _as_float_array(series)
    if not np.all(np.isfinite(y)):
        raise DegenerateSeriesError("Box-Cox inverse requires finite values")
    if lam != 0.0:
        base = lam * y + 1.0
        if np.any(base <= 0.0):
            raise DegenerateSeriesError(
                f"Box-Cox inverse undefined for lambda={lam:.6f}: lambda*y + 1 <= 0"
            )
    return _wrap_like(special.inv_boxcox(y, lam), series)


def percentage_change(series: ArrayLike) -> Union[pd.Series, np.ndarray]:
    """
    Growth rate in percent, normalized by the later observation.

    growth[t] = (series[t] - series[t-1]) / series[t] * 100

    Parameters
    ----------
    series : ArrayLike
        Level series of length n >= 1

    Returns
    -------
    Union[pd.Series, np.ndarray]
        Growth series of length n - 1. For a Series input the index is
        that of series[1:].

    Notes
    -----
    The denominator is the later value, not the earlier one. This is the
    definition the forecast reconstruction is calibrated against; do not
    replace it with the textbook (t2 - t1) / t1 form.
    """
    x = _as_float_array(series)
    if x.size == 0:
        raise DegenerateSeriesError("Cannot compute growth rates of an empty series")
    later = x[1:]
    if np.any(later == 0.0):
        raise DegenerateSeriesError("Growth rate undefined: zero value in the denominator")
    out = (later - x[:-1]) / later * 100.0
    if isinstance(series, pd.Series):
        return pd.Series(out, index=series.index[1:], name=series.name)
    return out


def _segment_rss(y: np.ndarray) -> float:
    """Residual sum of squares of y around its mean."""
    return float(np.sum((y - y.mean()) ** 2)) if y.size else 0.0


def _bic(rss: float, n: int, n_params: int) -> float:
    return n * math.log(max(rss, np.finfo(float).tiny) / n) + n_params * math.log(n)


def detect_breakpoint(series: ArrayLike,
                      min_segment: float = 0.15,
                      significance: float = 0.01) -> Optional[int]:
    """
    Locate a single structural break in the mean of a series.

    The best single split is found with an exact dynamic-programming search
    over the l2 (mean-shift) cost. It is accepted only when

    - the Chow F-test of two means against one rejects at `significance`, and
    - the one-break model beats a linear trend on BIC.

    Parameters
    ----------
    series : ArrayLike
        Input series (typically growth rates)
    min_segment : float, default=0.15
        Minimum segment length as a fraction of n (at least 3 observations)
    significance : float, default=0.01
        Level of the Chow F-test

    Returns
    -------
    Optional[int]
        Position of the last observation before the break, or None
    """
    y = _as_float_array(series)
    n = len(y)
    h = max(3, int(math.floor(min_segment * n)))
    if n < 2 * h:
        return None

    rss0 = _segment_rss(y)
    if rss0 <= n * (1e-10 * max(1.0, float(np.abs(y).max()))) ** 2:
        return None

    algo = rpt.Dynp(model="l2", min_size=h, jump=1).fit(y)
    bkp = int(algo.predict(n_bkps=1)[0])
    rss1 = _segment_rss(y[:bkp]) + _segment_rss(y[bkp:])

    if rss1 <= 0.0:
        p_value = 0.0
    else:
        f_stat = (rss0 - rss1) / (rss1 / (n - 2))
        p_value = float(stats.f.sf(f_stat, 1, n - 2))
    if p_value >= significance:
        return None

    t = np.arange(n, dtype=float)
    trend_resid = y - np.polyval(np.polyfit(t, y, 1), t)
    bic_trend = _bic(float(np.sum(trend_resid ** 2)), n, 2)
    bic_break = _bic(rss1, n, 3)
    if bic_break >= bic_trend:
        logger.debug("Mean shift at %d rejected: a linear trend fits better (BIC %.3f >= %.3f)",
                     bkp - 1, bic_break, bic_trend)
        return None

    logger.debug("Structural break after position %d (Chow p=%.3g)", bkp - 1, p_value)
    return bkp - 1


def breakpoint_trim(series: ArrayLike,
                    min_segment: float = 0.15,
                    significance: float = 0.01) -> Union[pd.Series, np.ndarray]:
    """
    Keep only the observations after the most recent structural break.

    Parameters
    ----------
    series : ArrayLike
        Input series
    min_segment : float, default=0.15
        Minimum segment fraction passed to detect_breakpoint
    significance : float, default=0.01
        Chow test level passed to detect_breakpoint

    Returns
    -------
    Union[pd.Series, np.ndarray]
        series[k+1:] when a break is found after position k, else the series
        unchanged
    """
    k = detect_breakpoint(series, min_segment=min_segment, significance=significance)
    if k is None:
        return series
    logger.info("Trimming %d observations before structural break", k + 1)
    if isinstance(series, pd.Series):
        return series.iloc[k + 1:]
    return _as_float_array(series)[k + 1:]
