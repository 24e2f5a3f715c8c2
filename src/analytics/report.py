"""Aggregation of logged sessions into today / this week / total sums."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from durations import format_hours_minutes

NO_DATA_MESSAGE = "No analytics data available yet."


@dataclass(frozen=True)
class AnalyticsSummary:
    """Accumulated seconds per phase kind and window."""
    total_work: int = 0
    total_break: int = 0
    today_work: int = 0
    today_break: int = 0
    week_work: int = 0
    week_break: int = 0


def summarize(sessions: Iterable[Any], *, today: dt.date) -> AnalyticsSummary:
    """Sum session durations; entries with bad fields are skipped."""
    week_ago = today - dt.timedelta(days=7)
    totals = dict.fromkeys(
        ("total_work", "total_break", "today_work", "today_break", "week_work", "week_break"),
        0,
    )

    for session in sessions:
        parsed = _parse_session(session)
        if parsed is None:
            continue
        kind, duration, date = parsed
        totals[f"total_{kind}"] += duration
        if date == today:
            totals[f"today_{kind}"] += duration
        if date >= week_ago:
            totals[f"week_{kind}"] += duration

    return AnalyticsSummary(**totals)


def format_report(sessions: Optional[Iterable[Any]], *, today: dt.date) -> str:
    if sessions is None:
        return NO_DATA_MESSAGE

    summary = summarize(sessions, today=today)
    lines = [
        "📊 Pomodoro Analytics",
        "====================",
        f"Total Work Time: {format_hours_minutes(summary.total_work)}",
        f"Total Break Time: {format_hours_minutes(summary.total_break)}",
        f"Today Work Time: {format_hours_minutes(summary.today_work)}",
        f"Today Break Time: {format_hours_minutes(summary.today_break)}",
        f"This Week Work Time: {format_hours_minutes(summary.week_work)}",
        f"This Week Break Time: {format_hours_minutes(summary.week_break)}",
    ]
    return "\n".join(lines)


def _parse_session(session: Any) -> Optional[tuple[str, int, dt.date]]:
    if not isinstance(session, dict):
        return None
    kind = session.get("type")
    duration = session.get("duration")
    raw_date = session.get("date")
    if kind not in ("work", "break"):
        return None
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        return None
    if not isinstance(raw_date, str):
        return None
    try:
        date = dt.date.fromisoformat(raw_date)
    except ValueError:
        return None
    return kind, int(duration), date
