"""Protocols describing scheduler-facing playback and chime capabilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Protocol


class PlaybackControl(Protocol):
    """Subset of the playback supervisor driven by the phase scheduler."""
    def start(self, track_dir: Path, *, silent: bool = False) -> Optional[Any]:
        ...

    def stop(self, job: Optional[Any] = None) -> None:
        ...


class Chime(Protocol):
    """Blocking transition cue; returns False when nothing was played."""
    def play(self) -> bool:
        ...
