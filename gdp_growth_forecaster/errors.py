# gdp_growth_forecaster/errors.py

"""
Exception taxonomy for the GDP growth forecasting pipeline.

Failures are scoped by how far they propagate:

- ModelFitFailure: one cross-validation origin or one grid point. Absorbed
  locally and recorded as a missing value.
- DegenerateSeriesError, NoViableModelError, ForecastFitError,
  GridSearchTimeoutError, DataValidationError: fatal for a single country.
  The batch runner records them on that country's result and moves on.
"""


class ForecastPipelineError(Exception):
    """Base class for all pipeline errors."""
    pass


class DegenerateSeriesError(ForecastPipelineError):
    """Raised when a series cannot be transformed (e.g. non-positive values for Box-Cox)."""
    pass


class ModelFitFailure(ForecastPipelineError):
    """Raised when a single SARIMA fit or forecast fails or returns non-finite values."""

    def __init__(self, message: str, order=None):
        super().__init__(message)
        self.order = order


class NoViableModelError(ForecastPipelineError):
    """Raised when every candidate in the order grid has an undefined RMSE."""

    def __init__(self, message: str, n_candidates: int = 0):
        super().__init__(message)
        self.n_candidates = n_candidates


class ForecastFitError(ForecastPipelineError):
    """Raised when the selected model cannot be fit on the full series."""
    pass


class GridSearchTimeoutError(ForecastPipelineError):
    """Raised when the grid search exceeds its deadline."""

    def __init__(self, message: str, evaluated: int = 0, total: int = 0):
        super().__init__(message)
        self.evaluated = evaluated
        self.total = total


class DataValidationError(ForecastPipelineError):
    """Raised for input series that break the quarterly contiguity contract."""
    pass
