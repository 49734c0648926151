import numpy as np
import pandas as pd
import pytest

import backtesting.rolling_origin as ro
from backtesting import BacktestConfig, RollingOriginValidator, run_rolling_origin_backtest
from gdp_growth_forecaster.config_utils import ForecastConfig
from gdp_growth_forecaster.errors import ModelFitFailure

ZERO_ORDER = (0, 0, 0, 0, 0, 0)


def _zero_forecast(endog, order, steps, s=4, maxiter=50):
    return np.zeros(steps)


def test_train_sizes_run_up_to_n_minus_one():
    v = RollingOriginValidator(BacktestConfig(min_train_size=8, forecast_horizon=4))
    assert v._generate_train_sizes(12) == [8, 9, 10, 11]
    v2 = RollingOriginValidator(BacktestConfig(min_train_size=8, step_size=2))
    assert v2._generate_train_sizes(13) == [8, 10, 12]


def test_error_matrix_and_missing_tail(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(ro, "forecast_sarima", _zero_forecast)
    y = np.arange(1.0, 13.0)
    res = run_rolling_origin_backtest(y, ZERO_ORDER, BacktestConfig(min_train_size=8, forecast_horizon=4))

    assert res.errors.shape == (4, 4)
    # errors are actual - forecast, so with a zero forecast they equal the actuals
    np.testing.assert_array_equal(res.errors[0], [9.0, 10.0, 11.0, 12.0])
    np.testing.assert_array_equal(res.errors[3, :1], [12.0])
    assert np.isnan(res.errors[3, 1:]).all()
    assert np.isnan(res.errors[2, 2:]).all()

    finite = res.errors[np.isfinite(res.errors)]
    assert finite.size == 4 + 3 + 2 + 1
    assert res.rmse == pytest.approx(np.sqrt(np.mean(finite ** 2)))
    assert res.mae == pytest.approx(np.mean(np.abs(finite)))


def test_fit_failures_are_recorded_as_missing(monkeypatch: pytest.MonkeyPatch):
    def flaky(endog, order, steps, s=4, maxiter=50):
        if len(endog) == 9:
            raise ModelFitFailure("singular", order=order)
        return np.zeros(steps)

    monkeypatch.setattr(ro, "forecast_sarima", flaky)
    res = RollingOriginValidator(BacktestConfig(min_train_size=8)).evaluate(np.ones(12), ZERO_ORDER)

    assert res.failed_origins == 1
    assert np.isnan(res.errors[1]).all()
    assert np.isfinite(res.rmse)


def test_all_origins_failing_gives_nan(monkeypatch: pytest.MonkeyPatch):
    def always_fail(endog, order, steps, s=4, maxiter=50):
        raise ModelFitFailure("no convergence", order=order)

    monkeypatch.setattr(ro, "forecast_sarima", always_fail)
    res = RollingOriginValidator().evaluate(np.ones(12), ZERO_ORDER)
    assert res.failed_origins == res.n_origins == 4
    assert np.isnan(res.rmse)
    assert np.isnan(res.mae)


def test_series_shorter_than_window_has_no_origins():
    res = RollingOriginValidator(BacktestConfig(min_train_size=8)).evaluate(np.ones(8), ZERO_ORDER)
    assert res.n_origins == 0
    assert np.isnan(res.rmse)


def test_frames_and_per_horizon_rmse(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(ro, "forecast_sarima", _zero_forecast)
    res = RollingOriginValidator(BacktestConfig(min_train_size=8, forecast_horizon=2)).evaluate(
        np.full(11, 2.0), ZERO_ORDER
    )
    frame = res.to_frame()
    assert frame.columns.tolist() == ["h1", "h2"]
    assert frame.index.tolist() == [8, 9, 10]
    per_h = res.per_horizon_rmse()
    assert per_h.index.tolist() == [1, 2]
    assert per_h.tolist() == pytest.approx([2.0, 2.0])


def test_real_fit_constant_mean_model():
    rng = np.random.default_rng(3)
    y = pd.Series(1.5 + 0.2 * rng.standard_normal(20))
    res = run_rolling_origin_backtest(y, ZERO_ORDER, BacktestConfig(min_train_size=12, forecast_horizon=4))
    assert res.failed_origins == 0
    assert np.isfinite(res.rmse)
    assert res.rmse < 1.0


def test_config_from_forecast_config():
    cfg = BacktestConfig.from_forecast_config(ForecastConfig(cv_min_window=12, horizon=2, cv_step=3))
    assert (cfg.min_train_size, cfg.forecast_horizon, cfg.step_size) == (12, 2, 3)
    assert BacktestConfig.from_forecast_config(None) == BacktestConfig()


def test_invalid_backtest_config():
    with pytest.raises(ValueError):
        BacktestConfig(min_train_size=0)
    with pytest.raises(ValueError):
        BacktestConfig(forecast_horizon=0)
