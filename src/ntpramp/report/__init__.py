from __future__ import annotations

from ntpramp.report.charts import render_charts
from ntpramp.report.export import series_frame, write_csv
from ntpramp.report.text import format_config, format_step, format_summary

__all__ = [
    "format_config",
    "format_step",
    "format_summary",
    "render_charts",
    "series_frame",
    "write_csv",
]
