import argparse
from pathlib import Path

import pytest

from gdp_growth_forecaster import config_utils
from gdp_growth_forecaster.config_utils import ForecastConfig, get_config_value, initialize_config
from gdp_growth_forecaster.main import setup_cli_parser


def _write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "forecast.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_config():
    cfg = ForecastConfig.from_config_manager(None)
    assert cfg == ForecastConfig()
    assert (cfg.nonseasonal_max, cfg.seasonal_max, cfg.horizon, cfg.frequency, cfg.cv_min_window) == (1, 2, 4, 4, 8)
    assert cfg.grid_size == 8 * 27


def test_cli_overrides_file_overrides_default(tmp_path: Path):
    path = _write_config(tmp_path, "forecast:\n  nonseasonal_max: 2\n  horizon: 8\n  trim_breakpoints: false\n")
    initialize_config(path)

    args = argparse.Namespace(nonseasonal_max=0, horizon=None, grid_timeout=30)
    cfg = ForecastConfig.from_config_manager(args)

    assert cfg.nonseasonal_max == 0       # CLI
    assert cfg.horizon == 8               # file
    assert cfg.trim_breakpoints is False  # file
    assert cfg.seasonal_max == 2          # default
    assert cfg.grid_timeout == 30


def test_get_config_value_dotted_lookup(tmp_path: Path):
    initialize_config(_write_config(tmp_path, "forecast:\n  box_cox_method: loglik\n"))
    assert get_config_value("forecast.box_cox_method", "guerrero") == "loglik"
    assert get_config_value("forecast.missing", 3) == 3
    assert get_config_value("nope.deeper.key", None) is None


def test_file_values_are_cast_to_field_types(tmp_path: Path):
    initialize_config(_write_config(tmp_path, "forecast:\n  horizon: '6'\n  breakpoint_min_segment: 0.2\n"))
    cfg = ForecastConfig.from_config_manager(None)
    assert cfg.horizon == 6
    assert cfg.breakpoint_min_segment == pytest.approx(0.2)


def test_unknown_keys_are_reported(tmp_path: Path):
    initialize_config(_write_config(tmp_path, "forecast:\n  horizon: 4\n  max_lag: 3\n"))
    problems = config_utils.config_manager.validate_configuration()
    assert problems == {"forecast": ["unknown key 'max_lag'"]}


def test_missing_or_broken_config_falls_back_to_defaults(tmp_path: Path):
    initialize_config(tmp_path / "does_not_exist.yaml")
    assert config_utils.config_manager is None

    initialize_config(_write_config(tmp_path, "- just\n- a list\n"))
    assert config_utils.config_manager is None
    assert ForecastConfig.from_config_manager(None) == ForecastConfig()


def test_shipped_config_matches_defaults():
    shipped = Path(__file__).resolve().parents[1] / "config" / "forecast.yaml"
    initialize_config(shipped)
    assert ForecastConfig.from_config_manager(None) == ForecastConfig()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"horizon": 0},
        {"nonseasonal_max": -1},
        {"box_cox_method": "mle"},
        {"breakpoint_min_segment": 0.6},
        {"grid_timeout": 0},
        {"frequency": 5},
        {"breakpoint_significance": 0.0},
        {"breakpoint_significance": 1.5},
    ],
)
def test_invalid_settings_rejected(kwargs):
    with pytest.raises(ValueError):
        ForecastConfig(**kwargs)


def test_explicit_null_keeps_ingested_dates(tmp_path: Path):
    initialize_config(_write_config(tmp_path, "forecast:\n  canonical_end_year: null\n  horizon: 6\n"))
    assert get_config_value("forecast.canonical_end_year", 2019) is None
    cfg = ForecastConfig.from_config_manager(None)
    assert cfg.canonical_end_year is None
    assert cfg.horizon == 6


def test_null_for_required_setting_uses_default(tmp_path: Path):
    initialize_config(_write_config(tmp_path, "forecast:\n  horizon: null\n  grid_timeout: null\n"))
    cfg = ForecastConfig.from_config_manager(None)
    assert cfg.horizon == 4
    assert cfg.grid_timeout is None


def test_keep_dates_flag(tmp_path: Path):
    initialize_config(_write_config(tmp_path, "forecast:\n  canonical_end_year: 2021\n"))
    args = setup_cli_parser().parse_args(["--series-csv", "x.csv", "--keep-dates"])
    assert ForecastConfig.from_config_manager(args).canonical_end_year is None

    args = setup_cli_parser().parse_args(["--series-csv", "x.csv"])
    assert ForecastConfig.from_config_manager(args).canonical_end_year == 2021


def test_keep_dates_conflicts_with_canonical_end_year():
    with pytest.raises(SystemExit):
        setup_cli_parser().parse_args(["--series-csv", "x.csv", "--keep-dates", "--canonical-end-year", "2019"])
