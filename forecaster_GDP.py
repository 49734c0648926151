#!/usr/bin/env python3
"""
One-year-ahead quarterly GDP forecasting with cross-validated SARIMA models.

Usage
-----
    python forecaster_GDP.py --help
    python forecaster_GDP.py --series-csv data/gdp_panel.csv
    python forecaster_GDP.py --series-csv data/gdp_panel.csv --actuals-csv data/gdp_2019.csv --n-jobs 4

Modular Structure
-----------------
The code is organized in gdp_growth_forecaster/ with these modules:
- config_utils.py: Configuration management (YAML + CLI overrides)
- data_utils.py: Panel CSV loading and per-country grouping
- transform_utils.py: Box-Cox, growth rates, structural-break trimming
- forecasting_utils.py: Order grid search and forecast reconstruction
- metrics_utils.py: Forecast accuracy scores
- pipeline.py: Per-country pipeline and batch runner
- main.py: CLI entry point
Rolling-origin cross-validation lives in backtesting/, period helpers in helpers/.
"""

import sys

if __name__ == "__main__":
    from gdp_growth_forecaster.main import main
    sys.exit(main())
