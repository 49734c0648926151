"""Rolling-origin cross-validation for GDP growth forecasting.

This package scores seasonal ARIMA candidates by:
- Refitting on an expanding training window from a minimum size
- Forecasting a fixed horizon from every origin
- Recording fit failures as missing errors instead of aborting
- Aggregating errors into null-aware RMSE and MAE
"""

from .rolling_origin import (
    RollingOriginValidator,
    CrossValidationResult,
    BacktestConfig,
    run_rolling_origin_backtest
)

__all__ = [
    'RollingOriginValidator',
    'CrossValidationResult',
    'BacktestConfig',
    'run_rolling_origin_backtest',
]

# Version info
__version__ = '1.0.0'
