class PlaybackError(Exception):
    """Base exception for background playback and chime output."""


class PlayerNotFoundError(PlaybackError):
    """Raised when no usable audio player is available on the host."""


class ChimeError(PlaybackError):
    """Raised when the transition chime cannot be played."""
