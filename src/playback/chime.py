"""Blocking transition chime played between phases."""

from __future__ import annotations

import logging
import subprocess
import time
from pathlib import Path
from typing import Optional, Protocol

import psutil

from .errors import ChimeError
from .players import AudioPlayer
from .processes import is_alive, terminate_processes


class ChimeOutput(Protocol):
    """In-process audio output able to play a chime file to completion."""
    def play_file(self, path: Path) -> None:
        ...


class ChimePlayer:
    """Plays the chime file once, then pauses briefly.

    A missing chime file is a normal configuration and simply skips the cue.
    """

    def __init__(
        self,
        chime_file: Optional[Path],
        player: AudioPlayer,
        *,
        pause_seconds: float = 1.0,
        timeout_seconds: float = 30.0,
        output: Optional[ChimeOutput] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._chime_file = Path(chime_file) if chime_file else None
        self._player = player
        self._pause_seconds = pause_seconds
        self._timeout_seconds = timeout_seconds
        self._output = output
        self._logger = logger or logging.getLogger("playback.chime")

    @property
    def chime_file(self) -> Optional[Path]:
        return self._chime_file

    def play(self) -> bool:
        """Play the chime; returns False when it was skipped or failed."""
        path = self._chime_file
        if path is None or not path.is_file():
            self._logger.debug("No chime file at %s, skipping", path)
            return False

        try:
            if self._output is not None:
                self._output.play_file(path)
            else:
                self._play_with_player(path)
        except ChimeError as error:
            self._logger.warning("Chime playback failed: %s", error)
            return False

        if self._pause_seconds > 0:
            time.sleep(self._pause_seconds)
        return True

    def _play_with_player(self, path: Path) -> None:
        try:
            process = psutil.Popen(
                self._player.argv_for(path),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as error:
            raise ChimeError(f"Could not start {self._player.name}: {error}") from error

        try:
            process.wait(timeout=self._timeout_seconds or None)
        except psutil.TimeoutExpired:
            self._logger.warning(
                "Chime still playing after %.1fs, stopping it",
                self._timeout_seconds,
            )
        finally:
            # Also runs when a shutdown signal unwinds through the wait.
            if is_alive(process):
                terminate_processes(
                    [process],
                    grace_period_seconds=0.2,
                    attempts=2,
                    logger=self._logger,
                )
