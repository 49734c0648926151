# -*- coding: utf-8 -*-
"""
Temporal utilities for dating quarterly (or annual, monthly) series.

Functions
---------
- infer_start_period(length, canonical_end_year, frequency): Back-compute the
  (year, sub-period) at which a series of the given length starts.
- build_series(values, canonical_end_year, frequency): Attach a PeriodIndex to
  a flat list of values using infer_start_period.
- period_freq(frequency): pandas period alias for 1, 4 or 12 periods a year.
- ensure_period_index(series, frequency): Convert a dated series to a
  contiguous PeriodIndex, rejecting gaps and duplicates.
- future_periods(index, steps): The periods following the end of an index.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np
import pandas as pd

from gdp_growth_forecaster.errors import DataValidationError

_FREQ_ALIASES = {1: "Y-DEC", 4: "Q-DEC", 12: "M"}


def period_freq(frequency: int) -> str:
    """pandas period alias for a number of periods per year."""
    try:
        return _FREQ_ALIASES[int(frequency)]
    except KeyError:
        raise ValueError(f"Unsupported frequency {frequency}; expected one of {sorted(_FREQ_ALIASES)}")


def infer_start_period(length: int, canonical_end_year: int, frequency: int = 4) -> Tuple[int, int]:
    """
    Back-compute the start period of a series that ends at a fixed, known date.

    Parameters
    ----------
    length : int
        Number of observations
    canonical_end_year : int
        Fixed end year of the source data
    frequency : int, default=4
        Periods per year

    Returns
    -------
    Tuple[int, int]
        (start_year, start_sub_period) with sub-period in 1..frequency

    Notes
    -----
    start_year = canonical_end_year - ceil(length / frequency). The
    sub-period is 1 when length is an exact multiple of frequency, otherwise
    (length mod frequency) + 1. For quarterly data with end year 2019:
    44 -> 2008Q1, 45 -> 2007Q2, 46 -> 2007Q3, 47 -> 2007Q4. The mapping is
    kept as is because downstream date axes are built on it.
    """
    if length <= 0:
        raise ValueError("length must be positive")
    frequency = int(frequency)
    start_year = int(canonical_end_year) - int(math.ceil(length / frequency))
    remainder = length % frequency
    sub_period = 1 if remainder == 0 else remainder + 1
    return start_year, sub_period


def build_series(values: Sequence[float],
                 canonical_end_year: int,
                 frequency: int = 4,
                 name: str | None = None) -> pd.Series:
    """
    Attach a PeriodIndex to a flat list of values.

    Upstream trimming drops the period labels, so the start period is
    recovered from the series length with infer_start_period.

    Parameters
    ----------
    values : Sequence[float]
        Observations in time order
    canonical_end_year : int
        Fixed end year of the source data
    frequency : int, default=4
        Periods per year
    name : str, optional
        Name of the returned series

    Returns
    -------
    pd.Series
        Series with a PeriodIndex of the given frequency
    """
    arr = np.asarray(values, dtype=float).ravel()
    start_year, sub_period = infer_start_period(len(arr), canonical_end_year, frequency)
    freq = period_freq(frequency)
    if frequency == 4:
        start = pd.Period(year=start_year, quarter=sub_period, freq=freq)
    elif frequency == 12:
        start = pd.Period(year=start_year, month=sub_period, freq=freq)
    else:
        start = pd.Period(year=start_year, freq=freq)
    idx = pd.period_range(start=start, periods=len(arr), freq=freq)
    return pd.Series(arr, index=idx, name=name)


def ensure_period_index(series: pd.Series, frequency: int = 4) -> pd.Series:
    """
    Convert a dated series to a contiguous PeriodIndex of the given frequency.

    Accepts a DatetimeIndex (any day within the period), a PeriodIndex, or
    labels pandas can parse as dates.

    Raises
    ------
    DataValidationError
        If the index has duplicate periods, is not increasing, or has gaps
    """
    freq = period_freq(frequency)
    if isinstance(series.index, pd.PeriodIndex):
        idx = series.index.asfreq(freq)
    elif isinstance(series.index, pd.DatetimeIndex):
        idx = series.index.to_period(freq)
    else:
        try:
            idx = pd.DatetimeIndex(pd.to_datetime(series.index)).to_period(freq)
        except (TypeError, ValueError) as e:
            raise DataValidationError(f"Series index cannot be interpreted as dates: {e}")

    if idx.has_duplicates:
        raise DataValidationError("Series contains duplicate periods")
    if len(idx) > 1:
        steps = np.diff(idx.asi8)
        if np.any(steps <= 0):
            raise DataValidationError("Series periods are not strictly increasing")
        if np.any(steps != 1):
            raise DataValidationError("Series has gaps between periods")

    out = series.copy()
    out.index = idx
    return out


def future_periods(index: pd.PeriodIndex, steps: int) -> pd.PeriodIndex:
    """Return the `steps` periods that follow the last element of `index`."""
    last = index[-1]
    return pd.period_range(start=last + 1, periods=steps, freq=index.freq)
