"""Monthly P&L forecast package."""

from .application import ForecastRequest, ForecastResult, merge_line_trees, run_pl_forecast
from .application.evaluator import EvaluationResult, ForecastEvaluator

__all__ = [
    "EvaluationResult",
    "ForecastEvaluator",
    "ForecastRequest",
    "ForecastResult",
    "merge_line_trees",
    "run_pl_forecast",
]
