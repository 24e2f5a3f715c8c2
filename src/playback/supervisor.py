"""Playback supervisor that owns at most one background playback job."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, Optional

from app_config_schema import DEFAULT_TRACK_EXTENSIONS

from .job import PlaybackJob
from .players import AudioPlayer, player_program_names
from .processes import (
    find_player_processes,
    is_alive,
    kill_processes,
    terminate_processes,
)


class PlaybackSupervisor:
    """Starts, replaces and tears down playback jobs and their process trees.

    Invariant: at most one job is active. ``start`` fully stops the previous
    job before spawning anything for the next one, and ``stop`` returns only
    once no process owned by the job (by handle or by signature) is running.
    """

    def __init__(
        self,
        player: AudioPlayer,
        *,
        signature_dirs: Iterable[Path] = (),
        extensions: Iterable[str] = DEFAULT_TRACK_EXTENSIONS,
        shuffle: bool = False,
        grace_period_seconds: float = 0.5,
        grace_attempts: int = 5,
        idle_poll_seconds: float = 1.0,
        logger: Optional[logging.Logger] = None,
    ):
        self._player = player
        self._signature_dirs = tuple(Path(directory) for directory in signature_dirs)
        self._program_names = player_program_names(player)
        self._extensions = tuple(extensions)
        self._shuffle = shuffle
        self._grace_period_seconds = grace_period_seconds
        self._grace_attempts = grace_attempts
        self._idle_poll_seconds = idle_poll_seconds
        self._logger = logger or logging.getLogger("playback")
        # Re-entrant: a signal-driven shutdown may arrive while stop() runs on the same thread.
        self._lock = threading.RLock()
        self._active_job: Optional[PlaybackJob] = None

    @property
    def player(self) -> AudioPlayer:
        return self._player

    @property
    def active_job(self) -> Optional[PlaybackJob]:
        with self._lock:
            return self._active_job

    def start(self, track_dir: Path, *, silent: bool = False) -> Optional[PlaybackJob]:
        """Start looping ``track_dir``, replacing any active job first."""
        if silent:
            self._logger.debug("Silent mode: no playback job for %s", track_dir)
            return None

        with self._lock:
            previous = self._active_job
            if previous is not None:
                self._logger.debug("Replacing playback job for %s", previous.track_dir)
                self._stop_locked(previous)

            job = PlaybackJob(
                Path(track_dir),
                self._player,
                extensions=self._extensions,
                shuffle=self._shuffle,
                idle_poll_seconds=self._idle_poll_seconds,
                logger=self._logger.getChild("job"),
            )
            self._active_job = job
            job.start()
            self._logger.info("Playback started for %s", track_dir)
            return job

    def stop(self, job: Optional[PlaybackJob] = None) -> None:
        """Tear down ``job`` (default: the active job). Safe to repeat."""
        with self._lock:
            target = job or self._active_job
            if target is None:
                return
            self._stop_locked(target)

    def reconcile_orphans(self) -> int:
        """Terminate players left behind by a previous run; returns how many were found."""
        orphans = find_player_processes(self._program_names, self._signature_dirs)
        if not orphans:
            return 0

        self._logger.info("Terminating %d orphaned player process(es)", len(orphans))
        terminate_processes(
            orphans,
            grace_period_seconds=self._grace_period_seconds,
            attempts=self._grace_attempts,
            logger=self._logger,
        )
        return len(orphans)

    def shutdown(self) -> None:
        """Stop the active job and sweep every signature directory once more."""
        with self._lock:
            if self._active_job is not None:
                self._stop_locked(self._active_job)
            self._sweep(self._signature_dirs)

    def _stop_locked(self, job: PlaybackJob) -> None:
        owned = job.close()
        killed = terminate_processes(
            owned,
            grace_period_seconds=self._grace_period_seconds,
            attempts=self._grace_attempts,
            logger=self._logger,
        )
        if killed:
            self._logger.debug(
                "Force-killed %d process(es) for %s", len(killed), job.track_dir
            )

        if not job.join(timeout=max(self._grace_period_seconds, 0.1) + self._idle_poll_seconds):
            self._logger.warning("Playback thread for %s is still running", job.track_dir)

        # Catches helpers forked after the registry was last refreshed.
        self._sweep([job.track_dir])
        leftovers = [process for process in job.handles() if is_alive(process)]
        if leftovers:
            kill_processes(leftovers, logger=self._logger)

        if self._active_job is job:
            self._active_job = None

    def _sweep(self, directories: Iterable[Path]) -> int:
        strays = find_player_processes(self._program_names, directories)
        if not strays:
            return 0
        self._logger.debug("Killing %d stray player process(es)", len(strays))
        return kill_processes(strays, logger=self._logger)
