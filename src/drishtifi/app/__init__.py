"""Presentation-side logic: session/view state, dashboard search, export, progress and uploads."""

from .dashboard import filter_reports, format_analysis_date, sort_reports
from .export import export_filename, render_report_text
from .progress import SimulatedProgress
from .session import ReportSession
from .uploads import read_image_upload

__all__ = [
    "ReportSession",
    "SimulatedProgress",
    "export_filename",
    "filter_reports",
    "format_analysis_date",
    "read_image_upload",
    "render_report_text",
    "sort_reports",
]
