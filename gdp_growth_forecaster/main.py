# gdp_growth_forecaster/main.py

"""
One-year-ahead quarterly GDP forecasts per country.

Purpose
-------
- Load a long-format GDP panel (country, date, gdp)
- Per country: Box-Cox the levels, take growth rates, trim before the last
  structural break, and re-date the trimmed series
- Grid-search SARIMA orders (p, d, q)(P, D, Q) by rolling-origin
  cross-validated RMSE
- Fit the selected order, forecast four quarters of growth and rebuild GDP
  levels through the inverse transforms
- Optionally score the forecasts against realized values and export a CSV

Configuration-Driven Workflow
-----------------------------
Search bounds, horizon and transform settings come from a YAML file
(see config/forecast.yaml). CLI arguments override configuration values.
"""

import argparse
import logging
import sys
import warnings
from pathlib import Path
from typing import List, Optional

from .config_utils import ForecastConfig, initialize_config
from .data_utils import load_actuals_by_country, load_series_by_country
from .file_utils import resolve_path, write_grid_tables, write_results_csv
from .parsing_utils import parse_countries, validate_log_level
from .pipeline import results_to_frame, run_batch

logger = logging.getLogger(__name__)


def setup_cli_parser() -> argparse.ArgumentParser:
    """
    Set up the command-line argument parser.

    Every forecast setting defaults to None so that unset flags fall through
    to the configuration file and then to the built-in defaults.
    """
    parser = argparse.ArgumentParser(
        description="Forecast quarterly GDP one year ahead with cross-validated SARIMA models."
    )

    # Data and output arguments
    parser.add_argument(
        "--series-csv", type=str, required=True,
        help="Long-format GDP CSV with columns 'country', 'date' and 'gdp'."
    )
    parser.add_argument(
        "--actuals-csv", type=str, default=None,
        help="Optional CSV (same format) with realized GDP for the forecast quarters."
    )
    parser.add_argument(
        "--countries", type=str, default=None,
        help="Comma-separated subset of countries to forecast (default: all in the CSV)."
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="YAML configuration file (see config/forecast.yaml)."
    )
    parser.add_argument(
        "--output-csv", type=str, default="output/forecasts.csv",
        help="Where to write the per-country forecast table."
    )
    parser.add_argument(
        "--grid-dir", type=str, default=None,
        help="If provided, save each country's RMSE-ranked grid table in this directory."
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity level."
    )

    # Grid search controls
    parser.add_argument("--nonseasonal-max", dest="nonseasonal_max", type=int, default=None,
                        help="Upper bound for p, d and q.")
    parser.add_argument("--seasonal-max", dest="seasonal_max", type=int, default=None,
                        help="Upper bound for P, D and Q.")
    parser.add_argument("--horizon", type=int, default=None,
                        help="Forecast and cross-validation horizon in quarters.")
    parser.add_argument("--cv-min-window", dest="cv_min_window", type=int, default=None,
                        help="Smallest training window in the rolling-origin scan.")
    parser.add_argument("--maxiter", type=int, default=None,
                        help="Optimizer iterations per SARIMA fit.")

    # Transform controls
    dating = parser.add_mutually_exclusive_group()
    dating.add_argument("--canonical-end-year", dest="canonical_end_year", type=int, default=None,
                        help="Fixed end year used to re-date trimmed series.")
    dating.add_argument("--keep-dates", dest="keep_dates", action="store_true",
                        help="Keep the ingested dates instead of re-dating from a fixed end year.")
    parser.add_argument("--box-cox-method", dest="box_cox_method", choices=["guerrero", "loglik"], default=None,
                        help="Lambda estimation method.")
    parser.add_argument("--box-cox-lambda", dest="box_cox_lambda", type=float, default=None,
                        help="Use this fixed lambda instead of estimating it.")
    parser.add_argument("--no-trim", dest="trim_breakpoints", action="store_const", const=False, default=None,
                        help="Disable structural-break trimming.")
    parser.add_argument("--breakpoint-significance", dest="breakpoint_significance", type=float, default=None,
                        help="Chow test level for accepting a structural break.")

    # Execution controls
    parser.add_argument("--n-jobs", dest="n_jobs", type=int, default=None,
                        help="Worker processes for the country batch (1 = sequential).")
    parser.add_argument("--grid-timeout", dest="grid_timeout", type=float, default=None,
                        help="Per-country grid search deadline in seconds.")
    parser.add_argument("--no-progress", dest="show_progress", action="store_const", const=False, default=None,
                        help="Hide the grid search progress bars.")

    return parser


def setup_logging(log_level: str) -> None:
    """
    Configure logging with specified level and warning filters.

    Parameters
    ----------
    log_level : str
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = validate_log_level(log_level)
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    # Configure warnings based on log level
    if level == "DEBUG":
        warnings.resetwarnings()
        warnings.filterwarnings("default")
    else:
        from statsmodels.tools.sm_exceptions import ConvergenceWarning
        warnings.filterwarnings("ignore", category=ConvergenceWarning)
        warnings.filterwarnings("ignore", category=FutureWarning)
        warnings.filterwarnings("ignore", category=UserWarning, module="statsmodels")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the GDP growth forecaster.

    Returns
    -------
    int
        0 when every country was forecast, 1 when at least one failed
    """
    parser = setup_cli_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    initialize_config(args.config)
    config = ForecastConfig.from_config_manager(args)
    logger.info("Run configuration: %s", config.to_dict())

    base_dir = Path.cwd()
    series_path = resolve_path(args.series_csv, base_dir)
    countries = parse_countries(args.countries)

    series_by_country = load_series_by_country(series_path, countries or None, frequency=config.frequency)
    if not series_by_country:
        logger.warning("No countries to forecast in %s; nothing to run.", series_path)
        return 0

    actuals_by_country = None
    if args.actuals_csv:
        actuals_by_country = load_actuals_by_country(resolve_path(args.actuals_csv, base_dir), countries or None,
                                                    frequency=config.frequency)

    results = run_batch(series_by_country, config, actuals_by_country)

    write_results_csv(results_to_frame(results), resolve_path(args.output_csv, base_dir))
    if args.grid_dir:
        write_grid_tables(results, resolve_path(args.grid_dir, base_dir))

    failed = [c for c, r in results.items() if not r.ok]
    for c in failed:
        logger.error("%s: %s", c, results[c].error)
    logger.info("Forecast run completed: %d ok, %d failed", len(results) - len(failed), len(failed))
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
