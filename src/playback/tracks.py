"""Track list resolution for a playback directory."""

from __future__ import annotations

import random
from pathlib import Path
from typing import Iterable, Optional


def resolve_tracks(
    directory: Path,
    *,
    extensions: Iterable[str],
    shuffle: bool = False,
    rng: Optional[random.Random] = None,
) -> list[Path]:
    """List playable files in ``directory`` in name order (or shuffled).

    A missing or unreadable directory resolves to an empty list.
    """
    allowed = {ext.lower() for ext in extensions}
    try:
        entries = list(directory.iterdir())
    except OSError:
        return []

    tracks = sorted(
        (entry for entry in entries if entry.suffix.lower() in allowed and entry.is_file()),
        key=lambda entry: entry.name,
    )
    if shuffle:
        (rng or random).shuffle(tracks)
    return tracks
