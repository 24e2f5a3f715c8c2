"""Terminal output for phase banners and the single-line countdown."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

from durations import describe_duration, format_clock

from .constants import (
    BANNER_BREAK_COMPLETE,
    BANNER_BREAK_STARTED,
    BANNER_SILENT,
    BANNER_WORK_COMPLETE,
    BANNER_WORK_STARTED,
    KIND_WORK,
)


class CountdownDisplay:
    """Writes phase banners and rewrites the countdown line in place."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream
        self._countdown_active = False

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    def phase_started(self, kind: str, planned_seconds: int, *, silent: bool) -> None:
        template = BANNER_WORK_STARTED if kind == KIND_WORK else BANNER_BREAK_STARTED
        self._line(template.format(duration=describe_duration(planned_seconds)))
        if silent:
            self._line(BANNER_SILENT)

    def remaining(self, kind: str, remaining_seconds: int) -> None:
        self.stream.write(f"\r{kind.capitalize()} remaining: {format_clock(remaining_seconds)}")
        self.stream.flush()
        self._countdown_active = True

    def countdown_finished(self) -> None:
        if self._countdown_active:
            self.stream.write("\n")
            self.stream.flush()
            self._countdown_active = False

    def phase_completed(self, kind: str) -> None:
        self._line(BANNER_WORK_COMPLETE if kind == KIND_WORK else BANNER_BREAK_COMPLETE)

    def message(self, text: str) -> None:
        self._line(text)

    def _line(self, text: str) -> None:
        if self._countdown_active:
            self.stream.write("\n")
            self._countdown_active = False
        self.stream.write(f"{text}\n")
        self.stream.flush()
