from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from gdp_growth_forecaster.config_utils import ForecastConfig
from gdp_growth_forecaster.data_utils import load_actuals_by_country, load_panel_csv, load_series_by_country
from gdp_growth_forecaster.file_utils import resolve_path
from gdp_growth_forecaster.parsing_utils import parse_countries, validate_log_level
from gdp_growth_forecaster.pipeline import run_country


def _panel_csv(tmp_path: Path, rows) -> Path:
    path = tmp_path / "panel.csv"
    pd.DataFrame(rows, columns=["country", "date", "gdp"]).to_csv(path, index=False)
    return path


def test_load_series_by_country_sorts_and_indexes(tmp_path: Path):
    path = _panel_csv(tmp_path, [
        ("US", "2020-06-30", 2.0),
        ("DE", "2020-03-31", 10.0),
        ("US", "2020-03-31", 1.0),
        ("DE", "2020-06-30", 11.0),
        ("US", "2020-09-30", 3.0),
    ])
    series = load_series_by_country(path)

    assert set(series) == {"US", "DE"}
    us = series["US"]
    assert us.tolist() == [1.0, 2.0, 3.0]
    assert list(us.index.astype(str)) == ["2020Q1", "2020Q2", "2020Q3"]
    assert us.name == "US"


def test_country_subset_keeps_requested_order(tmp_path: Path):
    path = _panel_csv(tmp_path, [("US", "2020-03-31", 1.0), ("DE", "2020-03-31", 2.0), ("FR", "2020-03-31", 3.0)])
    series = load_series_by_country(path, ["FR", "US", "XX"])
    assert list(series) == ["FR", "US"]


def test_unparseable_rows_are_dropped(tmp_path: Path):
    path = _panel_csv(tmp_path, [("US", "2020-03-31", 1.0), ("US", "not a date", 2.0), ("US", "2020-06-30", "n/a")])
    panel = load_panel_csv(path)
    assert len(panel) == 1
    assert str(panel.loc[0, "period"]) == "2020Q1"


def test_duplicate_quarters_load_and_fail_in_pipeline(tmp_path: Path):
    path = _panel_csv(tmp_path, [
        ("US", "2020-01-15", 1.0),
        ("US", "2020-03-31", 2.0),
        ("DE", "2020-03-31", 3.0),
    ])
    series = load_series_by_country(path)
    assert set(series) == {"US", "DE"}
    assert series["US"].index.has_duplicates

    res = run_country("US", series["US"], ForecastConfig(show_progress=False))
    assert res.status == "failed"
    assert res.error.startswith("DataValidationError")


def test_monthly_frequency_periods(tmp_path: Path):
    path = _panel_csv(tmp_path, [("US", "2020-01-31", 1.0), ("US", "2020-02-29", 2.0), ("US", "2020-03-31", 3.0)])
    series = load_series_by_country(path, frequency=12)
    assert list(series["US"].index.astype(str)) == ["2020-01", "2020-02", "2020-03"]


def test_missing_file_or_columns_exit(tmp_path: Path):
    with pytest.raises(SystemExit):
        load_panel_csv(tmp_path / "missing.csv")
    bad = tmp_path / "bad.csv"
    pd.DataFrame({"country": ["US"], "value": [1.0]}).to_csv(bad, index=False)
    with pytest.raises(SystemExit):
        load_panel_csv(bad)


def test_load_actuals_by_country(tmp_path: Path):
    path = _panel_csv(tmp_path, [
        ("US", "2020-06-30", 102.0),
        ("US", "2020-03-31", 101.0),
        ("DE", "2020-03-31", 50.0),
    ])
    actuals = load_actuals_by_country(path)
    assert actuals == {"US": [101.0, 102.0], "DE": [50.0]}


def test_parse_countries():
    assert parse_countries(" US , EU27_2020 ,CN,US") == ["US", "EU27_2020", "CN"]
    assert parse_countries(None) == []
    assert parse_countries("") == []


def test_validate_log_level():
    assert validate_log_level("debug") == "DEBUG"
    with pytest.raises(ValueError):
        validate_log_level("chatty")


def test_resolve_path(tmp_path: Path):
    assert resolve_path("out/x.csv", tmp_path) == tmp_path / "out" / "x.csv"
    assert resolve_path(str(tmp_path / "y.csv"), Path("/elsewhere")) == tmp_path / "y.csv"
