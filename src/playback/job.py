"""Background playback job that loops a track directory through a player."""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from pathlib import Path
from typing import Iterable, Optional

import psutil

from .players import AudioPlayer
from .processes import descendants, is_alive, tree_innermost_first
from .tracks import resolve_tracks

# A player that fails faster than this did not really play its track.
MIN_PLAY_SECONDS = 1.0


class PlaybackJob:
    """Plays every track of a directory in turn, rescanning after each pass.

    Each track runs in its own player process. Every process the job spawns,
    and every descendant observed under it, is kept in the job's handle
    registry until it exits, so the supervisor can tear the whole tree down.
    """

    def __init__(
        self,
        track_dir: Path,
        player: AudioPlayer,
        *,
        extensions: Iterable[str],
        shuffle: bool = False,
        idle_poll_seconds: float = 1.0,
        logger: Optional[logging.Logger] = None,
    ):
        self._track_dir = Path(track_dir)
        self._player = player
        self._extensions = tuple(extensions)
        self._shuffle = shuffle
        self._idle_poll_seconds = idle_poll_seconds
        self._logger = logger or logging.getLogger("playback.job")

        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._handles: dict[int, psutil.Process] = {}
        self._thread: Optional[threading.Thread] = None
        self._tracks_started = 0

    @property
    def track_dir(self) -> Path:
        return self._track_dir

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def is_closed(self) -> bool:
        return self._stop_event.is_set()

    @property
    def tracks_started(self) -> int:
        return self._tracks_started

    def handles(self) -> tuple[psutil.Process, ...]:
        """Snapshot of the processes currently owned by this job."""
        with self._lock:
            return tuple(self._handles.values())

    def start(self) -> None:
        with self._lock:
            if self._thread is not None:
                self._logger.warning("Playback job for %s already started", self._track_dir)
                return
            if self._stop_event.is_set():
                raise RuntimeError("Cannot start a playback job after it was closed")

            self._thread = threading.Thread(
                target=self._run,
                daemon=True,
                name=f"playback-{self._track_dir.name or 'root'}",
            )
            self._thread.start()

    def close(self) -> list[psutil.Process]:
        """Stop spawning players and return every owned process, innermost first."""
        with self._lock:
            self._stop_event.set()
            owned = tree_innermost_first(list(self._handles.values()))
            for process in owned:
                self._handles.setdefault(process.pid, process)
            return owned

    def join(self, timeout: Optional[float] = None) -> bool:
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout=timeout)
        return not thread.is_alive()

    def _run(self) -> None:
        self._logger.debug("Playback job started for %s", self._track_dir)
        try:
            while not self._stop_event.is_set():
                tracks = resolve_tracks(
                    self._track_dir,
                    extensions=self._extensions,
                    shuffle=self._shuffle,
                )
                played = False
                for track in tracks:
                    if self._stop_event.is_set():
                        return
                    process = self._spawn(track)
                    if process is None:
                        continue
                    started = time.monotonic()
                    returncode = self._wait(process)
                    if returncode == 0 or time.monotonic() - started >= MIN_PLAY_SECONDS:
                        played = True
                    self._release_finished()

                if not played:
                    # Nothing played normally: idle before the next pass.
                    self._stop_event.wait(self._idle_poll_seconds)
        except Exception as error:
            self._logger.error("Playback job failed: %s", error, exc_info=True)
        finally:
            self._logger.debug("Playback job for %s terminated", self._track_dir)

    def _spawn(self, track: Path) -> Optional[psutil.Popen]:
        with self._lock:
            if self._stop_event.is_set():
                return None
            try:
                process = psutil.Popen(
                    self._player.argv_for(track),
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    start_new_session=True,
                )
            except OSError as error:
                self._logger.warning("Could not start %s for %s: %s", self._player.name, track, error)
                return None

            self._handles[process.pid] = process
            self._adopt_descendants_locked(process)
            self._tracks_started += 1
            self._logger.debug("Playing %s (pid %s)", track.name, process.pid)
            return process

    def _wait(self, process: psutil.Popen) -> Optional[int]:
        while True:
            try:
                returncode = process.wait(timeout=self._idle_poll_seconds)
                break
            except psutil.TimeoutExpired:
                with self._lock:
                    self._adopt_descendants_locked(process)
            except psutil.NoSuchProcess:
                return None

        if returncode and not self._stop_event.is_set():
            self._logger.debug("Player pid %s exited with %s", process.pid, returncode)
        return returncode

    def _adopt_descendants_locked(self, process: psutil.Process) -> None:
        for child in descendants(process):
            self._handles.setdefault(child.pid, child)

    def _release_finished(self) -> None:
        with self._lock:
            for pid, process in list(self._handles.items()):
                if not is_alive(process):
                    del self._handles[pid]
