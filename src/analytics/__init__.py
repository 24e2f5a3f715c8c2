"""Public exports for session logging and analytics reporting."""

from .contracts import SessionRecorder
from .report import NO_DATA_MESSAGE, AnalyticsSummary, format_report, summarize
from .store import JsonSessionLog, SessionLogError

__all__ = [
    "NO_DATA_MESSAGE",
    "AnalyticsSummary",
    "JsonSessionLog",
    "SessionLogError",
    "SessionRecorder",
    "format_report",
    "summarize",
]
