# gdp_growth_forecaster/data_utils.py

import pandas as pd
from pathlib import Path
from typing import Dict, List, Optional
import logging

from helpers.temporal import period_freq

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("country", "date", "gdp")


def load_panel_csv(csv_path: Path, value_column: str = "gdp", frequency: int = 4) -> pd.DataFrame:
    """
    Load a long-format GDP panel with 'country', 'date' and a value column.

    Parameters
    ----------
    csv_path : Path
        CSV file path
    value_column : str, default="gdp"
        Name of the numeric column
    frequency : int, default=4
        Periods per year used to build the 'period' column

    Returns
    -------
    pd.DataFrame
        Cleaned panel with parsed dates and a 'period' column, sorted by
        country and period

    Raises
    ------
    SystemExit
        If the file doesn't exist, lacks required columns, or contains no valid data.
    """
    if not csv_path.exists():
        raise SystemExit(f"Series CSV not found: {csv_path}")

    logger.info("Loading GDP panel from: %s", csv_path)
    df = pd.read_csv(csv_path)

    missing = [c for c in ("country", "date", value_column) if c not in df.columns]
    if missing:
        raise SystemExit(f"Series CSV must contain columns {missing}.")

    # Parse and validate data
    df["country"] = df["country"].astype(str).str.strip()
    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df[value_column] = pd.to_numeric(df[value_column], errors="coerce")
    n_before = len(df)
    df = df.dropna(subset=["date", value_column])
    if len(df) < n_before:
        logger.info("Dropped %d unparseable rows from %s", n_before - len(df), csv_path)

    if df.empty:
        raise SystemExit("No valid rows found in series CSV after parsing.")

    df["period"] = df["date"].dt.to_period(period_freq(frequency))
    return df.sort_values(["country", "period"], kind="mergesort").reset_index(drop=True)


def group_by_country(panel: pd.DataFrame,
                     value_column: str = "gdp",
                     countries: Optional[List[str]] = None) -> Dict[str, pd.Series]:
    """
    Split a long-format panel into one series per country.

    Parameters
    ----------
    panel : pd.DataFrame
        Output of load_panel_csv
    value_column : str, default="gdp"
        Column holding the values
    countries : List[str], optional
        Restrict to these countries, in this order. Unknown countries are
        logged and skipped.

    Returns
    -------
    Dict[str, pd.Series]
        Series with a PeriodIndex keyed by country, in input order

    Notes
    -----
    Duplicate or missing periods are passed through unchanged. They are
    rejected per country by the pipeline, so one bad country does not stop
    the others from loading.
    """
    out: Dict[str, pd.Series] = {}
    for country, grp in panel.groupby("country", sort=False):
        if grp["period"].duplicated().any():
            logger.warning("%s has duplicate periods; it will be rejected by the pipeline", country)
        out[str(country)] = pd.Series(
            grp[value_column].to_numpy(dtype=float),
            index=pd.PeriodIndex(grp["period"]),
            name=str(country),
        )

    if countries:
        selected: Dict[str, pd.Series] = {}
        for c in countries:
            if c in out:
                selected[c] = out[c]
            else:
                logger.warning("Country %s not present in the panel; skipping", c)
        return selected
    return out


def load_series_by_country(csv_path: Path,
                           countries: Optional[List[str]] = None,
                           frequency: int = 4) -> Dict[str, pd.Series]:
    """Load a GDP panel CSV and split it per country."""
    return group_by_country(load_panel_csv(csv_path, frequency=frequency), countries=countries)


def load_actuals_by_country(csv_path: Path,
                            countries: Optional[List[str]] = None,
                            frequency: int = 4) -> Dict[str, List[float]]:
    """
    Load realized GDP values for the forecast periods.

    Same long format as the training panel. Values are returned in time
    order and matched to forecasts by position.
    """
    series = group_by_country(load_panel_csv(csv_path, frequency=frequency), countries=countries)
    return {c: s.tolist() for c, s in series.items()}
