import numpy as np
import pandas as pd
import pytest

from gdp_growth_forecaster.config_utils import ForecastConfig
from gdp_growth_forecaster.pipeline import observations_to_series, results_to_frame, run_batch, run_country
from helpers.progress import BatchProgress

from conftest import quarterly_series

FAST = ForecastConfig(
    nonseasonal_max=0,
    seasonal_max=0,
    trim_breakpoints=False,
    show_progress=False,
)


def _gdp(seed, start=100.0, n=40):
    rng = np.random.default_rng(seed)
    growth = 0.006 + 0.003 * rng.standard_normal(n)
    return quarterly_series(start * np.exp(np.cumsum(growth)), start="2009Q1")


@pytest.fixture
def batch():
    return {
        "US": _gdp(1, 200.0),
        "XX": quarterly_series(np.linspace(-5.0, 5.0, 40), start="2009Q1"),
        "DE": _gdp(2, 50.0),
    }


def test_observations_from_pairs():
    s = observations_to_series([("2019Q3", 1.0), ("2019Q4", 2.0)], "US")
    assert s.name == "US"
    assert list(s.index.astype(str)) == ["2019Q3", "2019Q4"]


def test_run_country_ok():
    res = run_country("US", _gdp(1, 200.0), FAST)
    assert res.ok
    assert res.error is None
    assert res.n_observations == 40
    assert len(res.growth) == 39
    assert tuple(res.selected.order) == (0, 0, 0, 0, 0, 0)
    assert res.forecast.horizon == 4
    assert np.all(np.isfinite(res.forecast.gdp.values))
    assert res.scores is None


def test_growth_is_redated_to_canonical_end_year():
    res = run_country("US", _gdp(1), FAST)
    # 39 growth rates anchored on 2019: ceil(39 / 4) = 10 years back, remainder 3 gives Q4
    assert res.growth.index[0] == pd.Period("2009Q4", freq="Q-DEC")


def test_ingested_dates_kept_without_canonical_year():
    from dataclasses import replace

    res = run_country("US", _gdp(1), replace(FAST, canonical_end_year=None))
    assert res.growth.index[0] == pd.Period("2009Q2", freq="Q-DEC")
    assert res.forecast.gdp.index[0] == pd.Period("2019Q1", freq="Q-DEC")


def test_fixed_lambda_is_used():
    from dataclasses import replace

    res = run_country("US", _gdp(1), replace(FAST, box_cox_lambda=0.0))
    assert res.lam == 0.0


def test_scores_against_actuals():
    res = run_country("US", _gdp(1, 200.0), FAST, actuals=[250.0, 251.0])
    assert set(res.scores) == {"MAE", "RMSE", "MAPE", "sMAPE"}
    assert np.isfinite(res.scores["MAE"])


def test_non_positive_country_fails_in_isolation(batch):
    results = run_batch(batch, FAST)

    assert list(results) == ["US", "XX", "DE"]
    assert results["US"].ok and results["DE"].ok
    failed = results["XX"]
    assert failed.status == "failed"
    assert failed.forecast is None
    assert failed.error.startswith("DegenerateSeriesError")


def test_grid_timeout_fails_country():
    from dataclasses import replace

    res = run_country("US", _gdp(1), replace(FAST, grid_timeout=1e-9))
    assert not res.ok
    assert res.error.startswith("GridSearchTimeoutError")


def test_progress_counters(batch):
    progress = BatchProgress()
    run_batch(batch, FAST, progress=progress)
    snap = progress.snapshot()
    assert snap["total_countries"] == 3
    assert snap["countries_completed"] == 3
    assert snap["countries_failed"] == 1
    assert snap["grid_points_evaluated"] == 2


def test_parallel_matches_serial(batch):
    from dataclasses import replace

    serial = run_batch(batch, FAST)
    parallel = run_batch(batch, replace(FAST, n_jobs=2))

    assert list(parallel) == list(serial)
    for country in serial:
        assert parallel[country].status == serial[country].status
        if serial[country].ok:
            np.testing.assert_array_equal(parallel[country].forecast.gdp.values,
                                          serial[country].forecast.gdp.values)
            assert parallel[country].selected.order == serial[country].selected.order


def test_results_to_frame(batch):
    results = run_batch(batch, FAST, actuals_by_country={"US": [1.0, 2.0, 3.0, 4.0]})
    df = results_to_frame(results)

    assert len(df) == 4 + 1 + 4
    assert df["country"].tolist()[:5] == ["US"] * 4 + ["XX"]
    us = df[df["country"] == "US"]
    assert us["step"].tolist() == [1, 2, 3, 4]
    assert us["hash"].nunique() == 1
    assert us["MAE"].notna().all()
    assert df[df["country"] == "DE"]["MAE"].isna().all()
    xx = df[df["country"] == "XX"].iloc[0]
    assert xx["status"] == "failed"
    assert np.isnan(xx["gdp"])


def test_failed_search_still_counts_grid_points():
    from dataclasses import replace

    cfg = replace(FAST, box_cox_lambda=0.0)
    short = quarterly_series(100.0 * np.exp(0.01 * np.arange(9)), start="2009Q1")
    res = run_country("SHORT", short, cfg)
    assert res.error.startswith("NoViableModelError")
    assert res.grid_points_evaluated == 1

    batch = {"US": _gdp(1, 200.0), "SHORT": short}
    counts = []
    for jobs in (1, 2):
        progress = BatchProgress()
        run_batch(batch, replace(cfg, n_jobs=jobs), progress=progress)
        counts.append(progress.snapshot()["grid_points_evaluated"])
    assert counts == [2, 2]
