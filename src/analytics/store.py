"""JSON session log with atomic prepend-and-replace writes."""

from __future__ import annotations

import datetime as dt
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Optional


class SessionLogError(Exception):
    """Raised when the session log cannot be read or written."""


class JsonSessionLog:
    """Session recorder backed by ``{"sessions": [...]}``, newest entry first."""

    def __init__(self, path: Path, *, logger: Optional[logging.Logger] = None):
        self._path = Path(path)
        self._logger = logger or logging.getLogger("analytics")

    @property
    def path(self) -> Path:
        return self._path

    def record(
        self,
        kind: str,
        elapsed_seconds: int,
        date: dt.date,
    ) -> bool:
        entry = {
            "type": kind,
            "duration": int(elapsed_seconds),
            "timestamp": int(time.time()),
            "date": date.isoformat(),
        }
        try:
            document = self._read_document()
            document["sessions"] = [entry, *document["sessions"]]
            self._write_atomic(document)
        except SessionLogError as error:
            self._logger.warning("Failed to record %s session: %s", kind, error)
            return False

        self._logger.debug("Recorded %s session of %ss", kind, entry["duration"])
        return True

    def load_sessions(self) -> Optional[list[dict[str, Any]]]:
        """Return logged sessions, or None when no log exists yet."""
        if not self._path.exists():
            return None
        return list(self._read_document()["sessions"])

    def _read_document(self) -> dict[str, Any]:
        if not self._path.exists():
            return {"sessions": []}
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as error:
            raise SessionLogError(f"Cannot read {self._path}: {error}") from error
        if not raw.strip():
            return {"sessions": []}

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as error:
            raise SessionLogError(f"{self._path} is not valid JSON: {error}") from error
        if not isinstance(document, dict):
            raise SessionLogError(f"{self._path} must contain a JSON object")

        sessions = document.get("sessions", [])
        if not isinstance(sessions, list):
            raise SessionLogError(f"{self._path}: 'sessions' must be a list")
        document["sessions"] = sessions
        return document

    def _write_atomic(self, document: dict[str, Any]) -> None:
        temp_path: Optional[str] = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                dir=self._path.parent,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
                fh.write("\n")
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(temp_path, self._path)
        except OSError as error:
            if temp_path is not None and os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
            raise SessionLogError(f"Failed to update {self._path}: {error}") from error
