import argparse
import datetime as dt
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from analytics import JsonSessionLog, SessionLogError, format_report
from app_config import (
    AppConfig,
    AppConfigurationError,
    load_app_config,
    resolve_track_dirs,
)
from app_config_parser import log_level_value
from app_config_schema import CHIME_OUTPUT_SOUNDDEVICE
from durations import DurationFormatError, parse_duration
from playback import (
    AudioPlayer,
    ChimePlayer,
    PlaybackSupervisor,
    PlayerNotFoundError,
    select_player,
)
from pomodoro import CountdownDisplay, PhasePlan, PhaseScheduler
from runtime import ShutdownCoordinator

PROGRAM_NAME = "pomobeats"
COMMAND_ANALYTICS = "analytics"


def setup_logging(level: int = logging.WARNING) -> logging.Logger:
    """Configure logging for the application."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger(PROGRAM_NAME)


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors with exit status 1."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _duration_arg(text: str) -> int:
    try:
        return parse_duration(text)
    except DurationFormatError as error:
        raise argparse.ArgumentTypeError(str(error)) from error


def build_arg_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=PROGRAM_NAME,
        description="Work/break timer that plays your music during each phase.",
    )
    parser.add_argument(
        "-w",
        "--work",
        type=_duration_arg,
        default=None,
        metavar="DURATION",
        help="work duration, e.g. 25m or 1h30m (default: 25m)",
    )
    parser.add_argument(
        "-b",
        "--break",
        dest="break_",
        type=_duration_arg,
        default=None,
        metavar="DURATION",
        help="break duration, e.g. 5m or 90s (default: 5m)",
    )
    parser.add_argument(
        "-s",
        "--silent",
        action="store_true",
        default=None,
        help="silent mode (no music, only the chime)",
    )
    parser.add_argument(
        "--shuffle",
        action="store_true",
        default=None,
        help="shuffle tracks on every pass through a directory",
    )
    parser.add_argument(
        "-c",
        "--collection",
        default=None,
        metavar="NAME",
        help="play <music root>/NAME/work and <music root>/NAME/break",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=[COMMAND_ANALYTICS],
        help="show pomodoro session statistics and exit",
    )
    return parser


def show_analytics(app_config: AppConfig, *, today: Optional[dt.date] = None) -> int:
    """Print the report. An unreadable log is reported on stderr; the command still exits 0."""
    log = JsonSessionLog(Path(app_config.analytics.log_file))
    try:
        sessions = log.load_sessions()
    except SessionLogError as error:
        print(f"Error: cannot read analytics: {error}", file=sys.stderr)
        return 0
    print(format_report(sessions, today=today or dt.date.today()))
    return 0


def build_chime(app_config: AppConfig, player: AudioPlayer) -> ChimePlayer:
    output = None
    if app_config.chime.output == CHIME_OUTPUT_SOUNDDEVICE:
        from playback.sound_output import SoundDeviceChimeOutput

        output = SoundDeviceChimeOutput(
            output_device_index=app_config.chime.output_device,
            logger=logging.getLogger("playback.sound_output"),
        )
    chime_file = app_config.chime.file
    return ChimePlayer(
        Path(chime_file) if chime_file else None,
        player,
        pause_seconds=app_config.chime.pause_seconds,
        timeout_seconds=app_config.chime.timeout_seconds,
        output=output,
        logger=logging.getLogger("playback.chime"),
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the pomodoro loop until interrupted, or print analytics."""
    logger = setup_logging()
    args = build_arg_parser().parse_args(argv)

    try:
        app_config = load_app_config()
        work_dir, break_dir = resolve_track_dirs(app_config.music, args.collection)
    except AppConfigurationError as error:
        logger.error(f"App configuration error: {error}")
        return 1
    logging.getLogger().setLevel(log_level_value(app_config.log_level))
    if app_config.source_file:
        logger.info("Loaded runtime config: %s", app_config.source_file)

    if args.command == COMMAND_ANALYTICS:
        return show_analytics(app_config)

    try:
        player = select_player(
            app_config.playback.player,
            app_config.playback.player_args,
        )
    except PlayerNotFoundError as error:
        print(f"Error: {error}", file=sys.stderr)
        return 1
    logger.info("Using audio player: %s", player.name)

    silent = app_config.music.silent if args.silent is None else args.silent
    shuffle = app_config.music.shuffle if args.shuffle is None else args.shuffle
    chime_dir = Path(app_config.chime.file).parent if app_config.chime.file else None
    signature_dirs = [Path(app_config.music.root), work_dir, break_dir]
    if chime_dir is not None:
        signature_dirs.append(chime_dir)

    supervisor = PlaybackSupervisor(
        player,
        signature_dirs=signature_dirs,
        extensions=app_config.music.extensions,
        shuffle=shuffle,
        grace_period_seconds=app_config.playback.grace_period_seconds,
        grace_attempts=app_config.playback.grace_attempts,
        idle_poll_seconds=app_config.playback.idle_poll_seconds,
        logger=logging.getLogger("playback"),
    )
    # Leftovers from a run that died without teardown (e.g. SIGKILL).
    supervisor.reconcile_orphans()

    display = CountdownDisplay()
    scheduler = PhaseScheduler(
        plan=PhasePlan(
            work_dir=work_dir,
            break_dir=break_dir,
            work_seconds=(
                app_config.timer.work_duration_seconds if args.work is None else args.work
            ),
            break_seconds=(
                app_config.timer.break_duration_seconds
                if args.break_ is None
                else args.break_
            ),
        ),
        playback=supervisor,
        recorder=JsonSessionLog(
            Path(app_config.analytics.log_file),
            logger=logging.getLogger("analytics"),
        ),
        chime=build_chime(app_config, player),
        display=display,
        silent=silent,
        poll_interval_seconds=app_config.timer.poll_interval_seconds,
        logger=logging.getLogger("pomodoro"),
    )

    def teardown() -> None:
        display.message("Stopping music...")
        supervisor.shutdown()
        display.message("Done.")

    with ShutdownCoordinator(teardown, logger=logging.getLogger("runtime")):
        scheduler.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
