"""Duration-string parsing and clock formatting for phase lengths."""

from __future__ import annotations

import re

_DURATION_PATTERN = re.compile(r"^(?:(?P<h>\d+)h)?(?:(?P<m>\d+)m)?(?:(?P<s>\d+)s)?$")


class DurationFormatError(ValueError):
    """Raised when a duration string does not match `<int>h<int>m<int>s`."""


def parse_duration(text: str) -> int:
    """Return the number of seconds described by ``text``.

    Accepts one or more of ``<int>h``, ``<int>m`` and ``<int>s`` in that
    order, e.g. ``"1h30m"`` -> 5400, ``"90s"`` -> 90, ``"0m"`` -> 0.
    """
    compact = (text or "").strip().lower()
    match = _DURATION_PATTERN.match(compact)
    if not compact or match is None or not any(match.groups()):
        raise DurationFormatError(
            f"Invalid duration {text!r}: expected e.g. 25m, 1h30m or 90s"
        )

    hours = int(match.group("h") or 0)
    minutes = int(match.group("m") or 0)
    seconds = int(match.group("s") or 0)
    return hours * 3600 + minutes * 60 + seconds


def format_clock(seconds: int) -> str:
    """Format seconds as `MM:SS`, or `H:MM:SS` from one hour up."""
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def describe_duration(seconds: int) -> str:
    """Short human text such as `25m`, `1h 30m` or `45s`."""
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def format_hours_minutes(seconds: int) -> str:
    """Format an accumulated total as `Xh Ym`, dropping leftover seconds."""
    total = max(0, int(seconds))
    return f"{total // 3600}h {total % 3600 // 60}m"
