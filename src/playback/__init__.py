"""Public exports for background playback and chime components."""

from .chime import ChimePlayer
from .errors import ChimeError, PlaybackError, PlayerNotFoundError
from .job import PlaybackJob
from .players import AudioPlayer, detect_player, select_player
from .supervisor import PlaybackSupervisor
from .tracks import resolve_tracks

__all__ = [
    "AudioPlayer",
    "ChimeError",
    "ChimePlayer",
    "PlaybackError",
    "PlaybackJob",
    "PlaybackSupervisor",
    "PlayerNotFoundError",
    "detect_player",
    "resolve_tracks",
    "select_player",
]
