"""Infrastructure layer package."""

from .csv_repository import load_account_mappings, load_actuals, load_channel_data, load_targets
from .report_exporter import lines_frame, records_frame, save_output_workbook, save_summary_json

__all__ = [
    "load_account_mappings",
    "load_actuals",
    "load_channel_data",
    "load_targets",
    "lines_frame",
    "records_frame",
    "save_output_workbook",
    "save_summary_json",
]
