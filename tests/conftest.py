import numpy as np
import pandas as pd
import pytest


def quarterly_series(values, start="2008Q1", name="gdp"):
    """Wrap values in a Series with a quarterly PeriodIndex."""
    idx = pd.period_range(start=start, periods=len(values), freq="Q-DEC")
    return pd.Series(np.asarray(values, dtype=float), index=idx, name=name)


@pytest.fixture
def exponential_gdp():
    """48 quarters of GDP growing exactly 2% per quarter."""
    return quarterly_series(100.0 * 1.02 ** np.arange(48))


@pytest.fixture
def noisy_gdp():
    rng = np.random.default_rng(7)
    growth = 0.005 + 0.004 * rng.standard_normal(40)
    return quarterly_series(1000.0 * np.exp(np.cumsum(growth)))


@pytest.fixture(autouse=True)
def _reset_global_config():
    from gdp_growth_forecaster.config_utils import initialize_config

    initialize_config(None)
    yield
    initialize_config(None)
