"""Work/break phase scheduler driving playback, countdown and session logging."""

from __future__ import annotations

import datetime as dt
import enum
import logging
import math
import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from analytics.contracts import SessionRecorder

from .constants import (
    DEFAULT_BREAK_SECONDS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_WORK_SECONDS,
    KIND_BREAK,
    KIND_WORK,
)
from .contracts import Chime, PlaybackControl
from .display import CountdownDisplay


class PhaseKind(str, enum.Enum):
    WORK = KIND_WORK
    BREAK = KIND_BREAK

    @property
    def next(self) -> "PhaseKind":
        return PhaseKind.BREAK if self is PhaseKind.WORK else PhaseKind.WORK


@dataclass(frozen=True)
class Phase:
    """One timed interval; ``actual_elapsed_seconds`` is set on completion."""
    kind: PhaseKind
    planned_seconds: int
    started_at: dt.datetime
    actual_elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class PhasePlan:
    """Durations and track directories for both phase kinds."""
    work_dir: Path
    break_dir: Path
    work_seconds: int = DEFAULT_WORK_SECONDS
    break_seconds: int = DEFAULT_BREAK_SECONDS

    def __post_init__(self) -> None:
        if self.work_seconds < 0 or self.break_seconds < 0:
            raise ValueError("phase durations must not be negative")

    def duration_for(self, kind: PhaseKind) -> int:
        return self.work_seconds if kind is PhaseKind.WORK else self.break_seconds

    def track_dir_for(self, kind: PhaseKind) -> Path:
        return self.work_dir if kind is PhaseKind.WORK else self.break_dir


class PhaseScheduler:
    """Alternates WORK -> chime -> BREAK -> chime -> WORK until the process ends.

    Interruption is handled out-of-band by process signals; an interrupted
    phase is abandoned without being recorded.
    """

    def __init__(
        self,
        *,
        plan: PhasePlan,
        playback: PlaybackControl,
        recorder: SessionRecorder,
        chime: Optional[Chime] = None,
        display: Optional[CountdownDisplay] = None,
        silent: bool = False,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        logger: Optional[logging.Logger] = None,
    ):
        if poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be greater than zero")

        self._plan = plan
        self._playback = playback
        self._recorder = recorder
        self._chime = chime
        self._display = display or CountdownDisplay()
        self._silent = silent
        self._poll_interval_seconds = poll_interval_seconds
        self._logger = logger or logging.getLogger("pomodoro")
        self._current: Optional[Phase] = None

    @property
    def current_phase(self) -> Optional[Phase]:
        return self._current

    def run(self, *, max_phases: Optional[int] = None) -> list[Phase]:
        """Run phases forever, or ``max_phases`` of them; returns completed phases."""
        completed: list[Phase] = []
        kind = PhaseKind.WORK
        while max_phases is None or len(completed) < max_phases:
            phase = self.run_phase(kind)
            if max_phases is not None:
                completed.append(phase)
            kind = kind.next
        return completed

    def run_phase(self, kind: PhaseKind) -> Phase:
        planned = self._plan.duration_for(kind)
        phase = Phase(kind=kind, planned_seconds=planned, started_at=dt.datetime.now())
        self._current = phase
        self._display.phase_started(kind.value, planned, silent=self._silent)
        self._logger.info("%s phase started: planned=%ss", kind.value, planned)

        self._playback.start(self._plan.track_dir_for(kind), silent=self._silent)

        started = time.monotonic()
        self._countdown(kind, started + planned)
        elapsed = max(0.0, time.monotonic() - started)
        phase = replace(phase, actual_elapsed_seconds=elapsed)

        self._display.phase_completed(kind.value)
        self._playback.stop()
        self._record(phase)
        if self._chime is not None:
            self._chime.play()

        self._current = None
        self._logger.info("%s phase completed: elapsed=%.1fs", kind.value, elapsed)
        return phase

    def _countdown(self, kind: PhaseKind, end: float) -> None:
        while True:
            remaining = end - time.monotonic()
            if remaining <= 0:
                break
            self._display.remaining(kind.value, int(math.ceil(remaining)))
            time.sleep(min(self._poll_interval_seconds, remaining))
        self._display.countdown_finished()

    def _record(self, phase: Phase) -> None:
        elapsed = int(round(phase.actual_elapsed_seconds))
        try:
            recorded = self._recorder.record(phase.kind.value, elapsed, dt.date.today())
        except Exception as error:
            self._logger.warning("Session recorder raised: %s", error)
            return
        if not recorded:
            self._logger.warning("%s session of %ss was not recorded", phase.kind.value, elapsed)
