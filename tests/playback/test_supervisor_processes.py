import os
import signal
import subprocess
import sys
import tempfile
import threading
import time
import unittest
from pathlib import Path

from playback import AudioPlayer, PlaybackSupervisor
from playback.players import player_program_names
from playback.processes import find_player_processes, is_alive
from runtime import ShutdownCoordinator

# Plays a "track" by sleeping for the number of seconds written in the file.
_SLEEPING_PLAYER = (
    "import sys, time; "
    "time.sleep(float(open(sys.argv[1]).read().strip() or 0))"
)
# Forks a helper that references the same track, like a player decoding in a subprocess.
_FORKING_PLAYER = (
    "import subprocess, sys, time; "
    "subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(60)', sys.argv[1]]); "
    "time.sleep(60)"
)
_STUBBORN_PLAYER = (
    "import signal, time; "
    "signal.signal(signal.SIGTERM, signal.SIG_IGN); "
    "time.sleep(60)"
)
_FAILING_PLAYER = "import sys; sys.exit(1)"


def _python_player(script: str) -> AudioPlayer:
    return AudioPlayer(Path(sys.executable).name, (sys.executable, "-c", script))


def _wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return predicate()


def _write_track(directory: Path, name: str, seconds: float) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    track = directory / name
    track.write_text(str(seconds), encoding="utf-8")
    return track


class PlaybackSupervisorProcessTests(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self._temp_dir.name)
        self.supervisors: list[PlaybackSupervisor] = []

    def tearDown(self) -> None:
        for supervisor in self.supervisors:
            supervisor.shutdown()
        self._temp_dir.cleanup()

    def _supervisor(self, script: str = _SLEEPING_PLAYER, **kwargs) -> PlaybackSupervisor:
        kwargs.setdefault("signature_dirs", [self.root])
        kwargs.setdefault("idle_poll_seconds", 0.1)
        supervisor = PlaybackSupervisor(_python_player(script), **kwargs)
        self.supervisors.append(supervisor)
        return supervisor

    def _live_players(self, supervisor: PlaybackSupervisor, directory: Path) -> list:
        names = player_program_names(supervisor.player)
        return [
            process
            for process in find_player_processes(names, [directory])
            if is_alive(process)
        ]

    def test_stop_terminates_player(self) -> None:
        work_dir = self.root / "work"
        _write_track(work_dir, "a.mp3", 60)
        supervisor = self._supervisor()

        job = supervisor.start(work_dir)
        self.assertIsNotNone(job)
        self.assertTrue(_wait_for(lambda: len(self._live_players(supervisor, work_dir)) == 1))
        handles = job.handles()

        supervisor.stop()

        self.assertEqual([], self._live_players(supervisor, work_dir))
        self.assertFalse(any(is_alive(process) for process in handles))
        self.assertFalse(job.is_running)
        self.assertIsNone(supervisor.active_job)

    def test_stop_terminates_descendants_of_player(self) -> None:
        work_dir = self.root / "work"
        _write_track(work_dir, "a.mp3", 60)
        supervisor = self._supervisor(_FORKING_PLAYER)

        job = supervisor.start(work_dir)
        self.assertTrue(_wait_for(lambda: len(self._live_players(supervisor, work_dir)) == 2))
        self.assertTrue(_wait_for(lambda: len(job.handles()) == 2))

        supervisor.stop()

        self.assertEqual([], self._live_players(supervisor, work_dir))

    def test_stop_kills_player_that_ignores_sigterm(self) -> None:
        work_dir = self.root / "work"
        _write_track(work_dir, "a.mp3", 60)
        supervisor = self._supervisor(_STUBBORN_PLAYER, grace_period_seconds=0.3)

        job = supervisor.start(work_dir)
        self.assertTrue(_wait_for(lambda: len(job.handles()) == 1))
        # Give the player time to install its SIGTERM handler.
        time.sleep(0.5)

        started = time.monotonic()
        supervisor.stop()

        self.assertEqual([], self._live_players(supervisor, work_dir))
        self.assertLess(time.monotonic() - started, 5.0)

    def test_stop_is_idempotent(self) -> None:
        work_dir = self.root / "work"
        _write_track(work_dir, "a.mp3", 60)
        supervisor = self._supervisor()

        supervisor.stop()
        job = supervisor.start(work_dir)
        self.assertTrue(_wait_for(lambda: len(job.handles()) == 1))
        supervisor.stop()
        supervisor.stop()
        supervisor.stop(job)

        self.assertEqual([], self._live_players(supervisor, work_dir))
        self.assertTrue(job.is_closed)

    def test_start_replaces_previous_job_before_spawning(self) -> None:
        work_dir = self.root / "work"
        break_dir = self.root / "break"
        _write_track(work_dir, "a.mp3", 60)
        _write_track(break_dir, "b.mp3", 60)
        supervisor = self._supervisor()

        work_job = supervisor.start(work_dir)
        self.assertTrue(_wait_for(lambda: len(work_job.handles()) == 1))
        work_handles = work_job.handles()

        break_job = supervisor.start(break_dir)

        self.assertFalse(any(is_alive(process) for process in work_handles))
        self.assertEqual([], self._live_players(supervisor, work_dir))
        self.assertIs(break_job, supervisor.active_job)
        self.assertTrue(_wait_for(lambda: len(self._live_players(supervisor, break_dir)) == 1))

        supervisor.stop()
        self.assertEqual([], self._live_players(supervisor, break_dir))

    def test_tracks_loop_until_stopped(self) -> None:
        work_dir = self.root / "work"
        _write_track(work_dir, "a.mp3", 0.05)
        _write_track(work_dir, "b.mp3", 0.05)
        supervisor = self._supervisor()

        job = supervisor.start(work_dir)

        self.assertTrue(_wait_for(lambda: job.tracks_started >= 4, timeout=10.0))
        supervisor.stop()
        self.assertEqual([], self._live_players(supervisor, work_dir))

    def test_failing_player_is_not_respawned_in_a_tight_loop(self) -> None:
        work_dir = self.root / "work"
        _write_track(work_dir, "a.mp3", 60)
        supervisor = self._supervisor(_FAILING_PLAYER, idle_poll_seconds=0.5)

        job = supervisor.start(work_dir)
        time.sleep(2.0)
        supervisor.stop()

        self.assertGreaterEqual(job.tracks_started, 1)
        self.assertLessEqual(job.tracks_started, 8)
        self.assertFalse(job.is_running)

    def test_signal_during_stop_runs_shutdown_to_completion(self) -> None:
        work_dir = self.root / "work"
        _write_track(work_dir, "a.mp3", 60)
        supervisor = self._supervisor(_STUBBORN_PLAYER, grace_period_seconds=1.0)

        job = supervisor.start(work_dir)
        self.assertTrue(_wait_for(lambda: len(job.handles()) == 1))
        # Give the player time to install its SIGTERM handler.
        time.sleep(0.5)
        timer = threading.Timer(0.2, os.kill, (os.getpid(), signal.SIGTERM))
        self.addCleanup(timer.cancel)

        with self.assertRaises(SystemExit) as raised:
            with ShutdownCoordinator(supervisor.shutdown) as coordinator:
                timer.start()
                supervisor.stop()
                # Stop alone may finish before the timer fires.
                time.sleep(5.0)

        self.assertEqual(0, raised.exception.code)
        self.assertTrue(coordinator.has_run)
        self.assertEqual([], self._live_players(supervisor, work_dir))
        self.assertIsNone(supervisor.active_job)
        self.assertFalse(job.is_running)

    def test_missing_directory_idles_until_tracks_appear(self) -> None:
        work_dir = self.root / "later"
        supervisor = self._supervisor()

        job = supervisor.start(work_dir)
        time.sleep(0.3)
        self.assertTrue(job.is_running)
        self.assertEqual((), job.handles())
        self.assertEqual(0, job.tracks_started)

        _write_track(work_dir, "a.mp3", 60)

        self.assertTrue(_wait_for(lambda: len(job.handles()) == 1))
        supervisor.stop()
        self.assertFalse(job.is_running)

    def test_unplayable_files_are_ignored(self) -> None:
        work_dir = self.root / "work"
        _write_track(work_dir, "notes.txt", 60)
        supervisor = self._supervisor()

        job = supervisor.start(work_dir)
        time.sleep(0.3)

        self.assertEqual(0, job.tracks_started)
        supervisor.stop()

    def test_silent_start_spawns_nothing(self) -> None:
        work_dir = self.root / "work"
        _write_track(work_dir, "a.mp3", 60)
        supervisor = self._supervisor()

        job = supervisor.start(work_dir, silent=True)
        time.sleep(0.2)

        self.assertIsNone(job)
        self.assertIsNone(supervisor.active_job)
        self.assertEqual([], self._live_players(supervisor, work_dir))

    def test_reconcile_orphans_terminates_leftover_players(self) -> None:
        music_dir = self.root / "music"
        track = _write_track(music_dir / "work", "a.mp3", 60)
        player = _python_player(_SLEEPING_PLAYER)
        orphan = subprocess.Popen(
            player.argv_for(track),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        self.addCleanup(orphan.wait, 5)
        self.addCleanup(orphan.kill)
        supervisor = self._supervisor(signature_dirs=[music_dir])
        self.assertTrue(_wait_for(lambda: len(self._live_players(supervisor, music_dir)) == 1))

        found = supervisor.reconcile_orphans()

        self.assertEqual(1, found)
        self.assertEqual([], self._live_players(supervisor, music_dir))

    def test_reconcile_orphans_ignores_players_outside_signature_dirs(self) -> None:
        music_dir = self.root / "music"
        music_dir.mkdir()
        track = _write_track(self.root / "elsewhere", "a.mp3", 60)
        player = _python_player(_SLEEPING_PLAYER)
        bystander = subprocess.Popen(
            player.argv_for(track),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        self.addCleanup(bystander.wait, 5)
        self.addCleanup(bystander.kill)
        supervisor = self._supervisor(signature_dirs=[music_dir])

        self.assertEqual(0, supervisor.reconcile_orphans())
        self.assertIsNone(bystander.poll())

    def test_shutdown_sweeps_stray_players_in_signature_dirs(self) -> None:
        work_dir = self.root / "work"
        track = _write_track(work_dir, "a.mp3", 60)
        player = _python_player(_SLEEPING_PLAYER)
        stray = subprocess.Popen(
            player.argv_for(track),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        self.addCleanup(stray.wait, 5)
        self.addCleanup(stray.kill)
        supervisor = self._supervisor()
        supervisor.start(work_dir)
        self.assertTrue(_wait_for(lambda: len(self._live_players(supervisor, work_dir)) == 2))

        supervisor.shutdown()

        self.assertEqual([], self._live_players(supervisor, work_dir))


if __name__ == "__main__":
    unittest.main()
