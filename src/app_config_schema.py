"""Dataclass schema objects used by runtime configuration loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

DEFAULT_CONFIG_FILE = "~/.config/pomobeats/config.toml"
DEFAULT_HOME_DIR = "~/pomobeats"
DEFAULT_MUSIC_ROOT = f"{DEFAULT_HOME_DIR}/music"
DEFAULT_CHIME_FILE = f"{DEFAULT_HOME_DIR}/sounds/chime.mp3"
DEFAULT_ANALYTICS_FILE = "~/.pomobeats_analytics.json"
DEFAULT_WORK_DURATION = "25m"
DEFAULT_BREAK_DURATION = "5m"
DEFAULT_TRACK_EXTENSIONS: tuple[str, ...] = (
    ".mp3",
    ".wav",
    ".ogg",
    ".flac",
    ".m4a",
    ".aac",
)

CHIME_OUTPUT_PLAYER = "player"
CHIME_OUTPUT_SOUNDDEVICE = "sounddevice"


class AppConfigurationError(Exception):
    """Raised when application configuration fails."""


@dataclass(frozen=True)
class TimerSettings:
    """Phase lengths and countdown cadence from `[timer]`."""
    work_duration_seconds: int = 25 * 60
    break_duration_seconds: int = 5 * 60
    poll_interval_seconds: float = 1.0


@dataclass(frozen=True)
class MusicSettings:
    """Track directories and playback toggles from `[music]`."""
    root: str
    work_dir: str
    break_dir: str
    collection: str = ""
    shuffle: bool = False
    silent: bool = False
    extensions: tuple[str, ...] = DEFAULT_TRACK_EXTENSIONS


@dataclass(frozen=True)
class ChimeSettings:
    """Transition chime settings from `[chime]`."""
    file: str
    pause_seconds: float = 1.0
    timeout_seconds: float = 30.0
    output: str = CHIME_OUTPUT_PLAYER
    output_device: Optional[int] = None


@dataclass(frozen=True)
class PlaybackSettings:
    """Player selection and teardown tuning from `[playback]`."""
    player: str = ""
    player_args: tuple[str, ...] = field(default_factory=tuple)
    grace_period_seconds: float = 0.5
    grace_attempts: int = 5
    idle_poll_seconds: float = 1.0


@dataclass(frozen=True)
class AnalyticsSettings:
    """Session log location from `[analytics]`."""
    log_file: str


@dataclass(frozen=True)
class AppConfig:
    """Complete typed runtime configuration."""
    timer: TimerSettings
    music: MusicSettings
    chime: ChimeSettings
    playback: PlaybackSettings
    analytics: AnalyticsSettings
    log_level: str = "WARNING"
    source_file: str = ""
