"""Protocols describing the session recorder consumed by the phase scheduler."""

from __future__ import annotations

import datetime as dt
from typing import Protocol


class SessionRecorder(Protocol):
    """Persists one completed phase; returns False when the write failed."""
    def record(
        self,
        kind: str,
        elapsed_seconds: int,
        date: dt.date,
    ) -> bool:
        ...
