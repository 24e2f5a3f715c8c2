"""Audio player detection and command construction."""

from __future__ import annotations

import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from .errors import PlayerNotFoundError


@dataclass(frozen=True)
class AudioPlayer:
    """External command that plays one audio file to completion."""
    name: str
    command: tuple[str, ...]

    def argv_for(self, track: Path) -> list[str]:
        return [*self.command, str(track)]


KNOWN_PLAYERS: dict[str, AudioPlayer] = {
    "afplay": AudioPlayer("afplay", ("afplay",)),
    "ffplay": AudioPlayer("ffplay", ("ffplay", "-v", "0", "-nodisp", "-autoexit")),
    "mpg123": AudioPlayer("mpg123", ("mpg123", "-q")),
    "play": AudioPlayer("play", ("play", "-q")),
}

_DARWIN_PREFERENCE = ("afplay",)
_DEFAULT_PREFERENCE = ("ffplay", "mpg123", "play")

Which = Callable[[str], Optional[str]]


def detect_player(
    *,
    platform: str = sys.platform,
    which: Which = shutil.which,
) -> AudioPlayer:
    """Pick the first installed player for this platform."""
    preference = _DARWIN_PREFERENCE if platform == "darwin" else _DEFAULT_PREFERENCE
    for name in preference:
        if which(name):
            return KNOWN_PLAYERS[name]
    raise PlayerNotFoundError(
        "No suitable audio player found. Please install mpg123 or sox."
    )


def select_player(
    name: str = "",
    args: Sequence[str] = (),
    *,
    platform: str = sys.platform,
    which: Which = shutil.which,
) -> AudioPlayer:
    """Resolve a configured player name, falling back to auto-detection.

    Known names use their stock flags. Any other name is treated as a custom
    executable invoked with ``args`` followed by the track path.
    """
    name = (name or "").strip()
    if not name:
        return detect_player(platform=platform, which=which)

    resolved = which(name)
    if not resolved:
        raise PlayerNotFoundError(f"Configured audio player not found on PATH: {name}")

    known = KNOWN_PLAYERS.get(name)
    if known is not None and not args:
        return known
    return AudioPlayer(Path(name).name, (name, *args))


def player_program_names(player: Optional[AudioPlayer] = None) -> frozenset[str]:
    """Program names used for orphan signature matching."""
    names = set(KNOWN_PLAYERS)
    if player is not None:
        names.add(player.name)
        names.add(Path(player.command[0]).name)
    return frozenset(names)
