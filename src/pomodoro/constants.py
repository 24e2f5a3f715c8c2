"""Phase kinds, defaults and banner text used by the phase scheduler."""

from __future__ import annotations

DEFAULT_WORK_SECONDS = 25 * 60
DEFAULT_BREAK_SECONDS = 5 * 60
DEFAULT_POLL_INTERVAL_SECONDS = 1.0

KIND_WORK = "work"
KIND_BREAK = "break"

BANNER_WORK_STARTED = "🍅 Work session started! Playing music for {duration}..."
BANNER_BREAK_STARTED = "⏸️ Break time! Playing music for {duration}..."
BANNER_SILENT = "Silent mode is enabled. You will only hear the chime."
BANNER_WORK_COMPLETE = "Work session complete. Stopping work music..."
BANNER_BREAK_COMPLETE = "Break complete. Stopping break music..."
