# gdp_growth_forecaster/metrics_utils.py

import numpy as np
import pandas as pd
from typing import Union, List, Dict, Tuple
import logging

logger = logging.getLogger(__name__)

ArrayLike = Union[List[float], np.ndarray, pd.Series]


def to_paired_arrays(y_hat: ArrayLike, y_true: ArrayLike) -> Tuple[np.ndarray, np.ndarray]:
    """
    Convert forecast and reality to aligned 1D float arrays.

    Pairs where either side is non-finite are dropped together so the two
    arrays stay aligned.

    Parameters
    ----------
    y_hat : ArrayLike
        Forecast values
    y_true : ArrayLike
        Realized values

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        (forecast, reality) restricted to finite pairs

    Raises
    ------
    ValueError
        If the inputs have different lengths
    """
    yh = np.asarray(y_hat, dtype=float).ravel()
    yt = np.asarray(y_true, dtype=float).ravel()
    if len(yh) != len(yt):
        raise ValueError(f"Forecast and reality must have the same length ({len(yh)} != {len(yt)})")
    mask = np.isfinite(yh) & np.isfinite(yt)
    return yh[mask], yt[mask]


def mae(y_hat: ArrayLike, y_true: ArrayLike) -> float:
    """
    Calculate Mean Absolute Error, mean(|forecast - reality|).

    Returns
    -------
    float
        Mean absolute error, or NaN if no valid data
    """
    yh, yt = to_paired_arrays(y_hat, y_true)
    if yh.size == 0:
        return float("nan")
    return float(np.mean(np.abs(yh - yt)))


def rmse(y_hat: ArrayLike, y_true: ArrayLike) -> float:
    """
    Calculate Root Mean Square Error, sqrt(mean((forecast - reality)^2)).

    Returns
    -------
    float
        Root mean square error, or NaN if no valid data
    """
    yh, yt = to_paired_arrays(y_hat, y_true)
    if yh.size == 0:
        return float("nan")
    return float(np.sqrt(np.mean((yh - yt) ** 2)))


def mape(y_hat: ArrayLike, y_true: ArrayLike) -> float:
    """
    Calculate the signed Mean Percentage Error used in the GDP reports.

    MAPE = 100 * mean((forecast - reality) / reality)

    Notes
    -----
    No absolute value is taken, so over- and under-forecasts offset each
    other and the sign shows the direction of the bias. This is not the
    textbook MAPE.
    """
    yh, yt = to_paired_arrays(y_hat, y_true)
    if yh.size == 0:
        return float("nan")
    if np.any(yt == 0.0):
        logger.warning("MAPE undefined: realized value of zero")
        return float("nan")
    return float(np.mean((yh - yt) / yt) * 100.0)


def smape(y_hat: ArrayLike, y_true: ArrayLike) -> float:
    """
    Calculate the symmetric percentage error used in the GDP reports.

    sMAPE = 100 * mean(|forecast - reality| / (forecast + reality))

    Notes
    -----
    The denominator is the plain sum of forecast and reality: no absolute
    values and no halving, so the result is half the textbook sMAPE for
    positive data.
    """
    yh, yt = to_paired_arrays(y_hat, y_true)
    if yh.size == 0:
        return float("nan")
    denom = yh + yt
    if np.any(denom == 0.0):
        logger.warning("sMAPE undefined: forecast + reality is zero")
        return float("nan")
    return float(np.mean(np.abs(yh - yt) / denom) * 100.0)


def score_forecast(y_hat: ArrayLike, y_true: ArrayLike) -> Dict[str, float]:
    """
    Score a forecast against realized values.

    Parameters
    ----------
    y_hat : ArrayLike
        Forecast values
    y_true : ArrayLike
        Realized values for the same periods

    Returns
    -------
    Dict[str, float]
        MAE, RMSE, MAPE and sMAPE

    Examples
    --------
    >>> score_forecast([100, 100, 100, 100], [110, 90, 100, 105])["MAE"]
    6.25
    """
    return {
        "MAE": mae(y_hat, y_true),
        "RMSE": rmse(y_hat, y_true),
        "MAPE": mape(y_hat, y_true),
        "sMAPE": smape(y_hat, y_true),
    }
