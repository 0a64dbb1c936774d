"""Application layer package."""

from .forecast_service import ForecastRequest, ForecastResult, run_pl_forecast
from .merge import merge_line_trees

__all__ = ["ForecastRequest", "ForecastResult", "merge_line_trees", "run_pl_forecast"]
