# gdp_growth_forecaster/__init__.py

"""
GDP Growth Forecaster - Cross-Validated SARIMA Forecasts of Quarterly GDP

Per country, the package Box-Cox transforms GDP levels, converts them to
percentage growth, trims everything before the last structural break,
selects a SARIMA order by rolling-origin cross-validation and rebuilds
one year of GDP level forecasts from the forecast growth path.

Key Components
--------------
- config_utils: YAML configuration and CLI override support
- data_utils: Long-format panel loading and per-country grouping
- transform_utils: Box-Cox, percentage change and breakpoint trimming
- forecasting_utils: SARIMA fitting, order grid search, forecast reconstruction
- metrics_utils: MAE, RMSE, MAPE and sMAPE forecast scores
- pipeline: Per-country pipeline and (optionally parallel) batch runner
- file_utils: CSV output helpers
- main: Command-line entry point

Usage
-----
    # Command-line usage
    python -m gdp_growth_forecaster.main --series-csv data/gdp_panel.csv

    # Programmatic usage
    from gdp_growth_forecaster.pipeline import run_batch
    from gdp_growth_forecaster.config_utils import ForecastConfig
"""

__version__ = "1.0.0"
__author__ = "GDP Forecaster Development Team"

# pipeline and main depend on helpers/, which imports this package's errors
# module; they are left to explicit submodule imports.
from .config_utils import ForecastConfig, initialize_config, get_config_value
from .errors import (
    DataValidationError,
    DegenerateSeriesError,
    ForecastFitError,
    ForecastPipelineError,
    GridSearchTimeoutError,
    ModelFitFailure,
    NoViableModelError,
)
from .forecasting_utils import ModelOrder, forecast_country, select_best_model
from .metrics_utils import score_forecast
from .transform_utils import box_cox_forward, box_cox_inverse, box_cox_lambda, breakpoint_trim, percentage_change

__all__ = [
    # Core functionality
    "ForecastConfig",
    "initialize_config",
    "get_config_value",
    "ModelOrder",
    "select_best_model",
    "forecast_country",
    "score_forecast",
    "box_cox_lambda",
    "box_cox_forward",
    "box_cox_inverse",
    "percentage_change",
    "breakpoint_trim",
    # Errors
    "ForecastPipelineError",
    "DegenerateSeriesError",
    "ModelFitFailure",
    "NoViableModelError",
    "ForecastFitError",
    "GridSearchTimeoutError",
    "DataValidationError",
    # Version info
    "__version__",
    "__author__"
]
