"""User interaction helpers."""

from .progress import ProgressActivity
from .sink import ResultSink, SinkSummary, render_records_table

__all__ = ["ProgressActivity", "ResultSink", "SinkSummary", "render_records_table"]
