"""Typed parser for config.toml sections into immutable app settings."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from app_config_schema import (
    CHIME_OUTPUT_PLAYER,
    CHIME_OUTPUT_SOUNDDEVICE,
    DEFAULT_ANALYTICS_FILE,
    DEFAULT_BREAK_DURATION,
    DEFAULT_CHIME_FILE,
    DEFAULT_MUSIC_ROOT,
    DEFAULT_TRACK_EXTENSIONS,
    DEFAULT_WORK_DURATION,
    AnalyticsSettings,
    AppConfig,
    AppConfigurationError,
    ChimeSettings,
    MusicSettings,
    PlaybackSettings,
    TimerSettings,
)
from durations import DurationFormatError, parse_duration

_ALLOWED_CHIME_OUTPUTS = {CHIME_OUTPUT_PLAYER, CHIME_OUTPUT_SOUNDDEVICE}
_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

ENV_MUSIC_DIR = "POMOBEATS_MUSIC_DIR"
ENV_WORK_DIR = "POMOBEATS_WORK_DIR"
ENV_BREAK_DIR = "POMOBEATS_BREAK_DIR"
ENV_CHIME_FILE = "POMOBEATS_CHIME_FILE"
ENV_ANALYTICS_FILE = "POMOBEATS_ANALYTICS_FILE"
ENV_SILENT = "POMOBEATS_SILENT"


def parse_app_config(
    raw: Mapping[str, Any],
    *,
    base_dir: Path,
    source_file: str,
    environ: Mapping[str, str],
) -> AppConfig:
    """Parse raw TOML mappings plus environment overrides into typed settings."""
    timer = _parse_timer_settings(_section(raw, "timer"))
    music = _parse_music_settings(
        _section(raw, "music"),
        base_dir=base_dir,
        environ=environ,
    )
    chime = _parse_chime_settings(
        _section(raw, "chime"),
        base_dir=base_dir,
        environ=environ,
    )
    playback = _parse_playback_settings(_section(raw, "playback"))
    analytics = _parse_analytics_settings(
        _section(raw, "analytics"),
        base_dir=base_dir,
        environ=environ,
    )

    return AppConfig(
        timer=timer,
        music=music,
        chime=chime,
        playback=playback,
        analytics=analytics,
        log_level=_as_log_level(raw.get("log_level", "WARNING"), "log_level"),
        source_file=source_file,
    )


def _parse_timer_settings(section: Mapping[str, Any]) -> TimerSettings:
    poll_interval = _as_float(
        section.get("poll_interval_seconds", 1.0),
        "timer.poll_interval_seconds",
    )
    if poll_interval <= 0:
        raise AppConfigurationError("timer.poll_interval_seconds must be positive.")
    return TimerSettings(
        work_duration_seconds=_as_duration(
            section.get("work_duration", DEFAULT_WORK_DURATION),
            "timer.work_duration",
        ),
        break_duration_seconds=_as_duration(
            section.get("break_duration", DEFAULT_BREAK_DURATION),
            "timer.break_duration",
        ),
        poll_interval_seconds=poll_interval,
    )


def _parse_music_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
    environ: Mapping[str, str],
) -> MusicSettings:
    root = _env_or(environ, ENV_MUSIC_DIR, section.get("root"), "music.root")
    root_path = _resolve_path(base_dir, root or DEFAULT_MUSIC_ROOT)

    work_dir = _env_or(environ, ENV_WORK_DIR, section.get("work_dir"), "music.work_dir")
    break_dir = _env_or(
        environ,
        ENV_BREAK_DIR,
        section.get("break_dir"),
        "music.break_dir",
    )

    silent = _as_bool(section.get("silent", False), "music.silent")
    if environ.get(ENV_SILENT, "").strip():
        silent = _as_bool(environ[ENV_SILENT], ENV_SILENT)

    collection = _as_str(section.get("collection", ""), "music.collection")
    if collection:
        validate_collection_name(collection)

    return MusicSettings(
        root=root_path,
        work_dir=(
            _resolve_path(base_dir, work_dir) if work_dir else str(Path(root_path) / "work")
        ),
        break_dir=(
            _resolve_path(base_dir, break_dir)
            if break_dir
            else str(Path(root_path) / "break")
        ),
        collection=collection,
        shuffle=_as_bool(section.get("shuffle", False), "music.shuffle"),
        silent=silent,
        extensions=_as_extensions(
            section.get("extensions", list(DEFAULT_TRACK_EXTENSIONS)),
            "music.extensions",
        ),
    )


def _parse_chime_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
    environ: Mapping[str, str],
) -> ChimeSettings:
    chime_file = _env_or(environ, ENV_CHIME_FILE, section.get("file"), "chime.file")
    output = _as_str(section.get("output", CHIME_OUTPUT_PLAYER), "chime.output").lower()
    if output not in _ALLOWED_CHIME_OUTPUTS:
        allowed = ", ".join(sorted(_ALLOWED_CHIME_OUTPUTS))
        raise AppConfigurationError(f"chime.output must be one of: {allowed}.")

    return ChimeSettings(
        file=_resolve_path(base_dir, chime_file or DEFAULT_CHIME_FILE),
        pause_seconds=_as_non_negative_float(
            section.get("pause_seconds", 1.0),
            "chime.pause_seconds",
        ),
        timeout_seconds=_as_non_negative_float(
            section.get("timeout_seconds", 30.0),
            "chime.timeout_seconds",
        ),
        output=output,
        output_device=(
            _as_int(section.get("output_device"), "chime.output_device")
            if "output_device" in section
            else None
        ),
    )


def _parse_playback_settings(section: Mapping[str, Any]) -> PlaybackSettings:
    grace_attempts = _as_int(section.get("grace_attempts", 5), "playback.grace_attempts")
    if grace_attempts < 1:
        raise AppConfigurationError("playback.grace_attempts must be >= 1.")
    idle_poll = _as_float(
        section.get("idle_poll_seconds", 1.0),
        "playback.idle_poll_seconds",
    )
    if idle_poll <= 0:
        raise AppConfigurationError("playback.idle_poll_seconds must be positive.")

    return PlaybackSettings(
        player=_as_str(section.get("player", ""), "playback.player"),
        player_args=_as_str_tuple(section.get("player_args", []), "playback.player_args"),
        grace_period_seconds=_as_non_negative_float(
            section.get("grace_period_seconds", 0.5),
            "playback.grace_period_seconds",
        ),
        grace_attempts=grace_attempts,
        idle_poll_seconds=idle_poll,
    )


def _parse_analytics_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
    environ: Mapping[str, str],
) -> AnalyticsSettings:
    log_file = _env_or(
        environ,
        ENV_ANALYTICS_FILE,
        section.get("log_file"),
        "analytics.log_file",
    )
    return AnalyticsSettings(
        log_file=_resolve_path(base_dir, log_file or DEFAULT_ANALYTICS_FILE),
    )


def validate_collection_name(name: str) -> str:
    """Reject collection names that would escape the music root."""
    text = name.strip()
    if not text or text in (".", "..") or "/" in text or "\\" in text:
        raise AppConfigurationError(
            f"Invalid collection name {name!r}: expected a plain directory name."
        )
    return text


def _env_or(
    environ: Mapping[str, str],
    env_name: str,
    value: Any,
    field: str,
) -> str:
    override = environ.get(env_name, "").strip()
    if override:
        return override
    return _as_str(value, field)


def _section(root: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    raw = root.get(name, {})
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise AppConfigurationError(f"[{name}] must be a table.")
    return raw


def _as_str(value: Any, field: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    raise AppConfigurationError(f"{field} must be a string.")


def _as_str_tuple(value: Any, field: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)) or not all(
        isinstance(item, str) for item in value
    ):
        raise AppConfigurationError(f"{field} must be a list of strings.")
    return tuple(value)


def _as_extensions(value: Any, field: str) -> tuple[str, ...]:
    items = _as_str_tuple(value, field)
    normalized = []
    for item in items:
        text = item.strip().lower()
        if not text:
            continue
        normalized.append(text if text.startswith(".") else f".{text}")
    if not normalized:
        raise AppConfigurationError(f"{field} must list at least one extension.")
    return tuple(normalized)


def _as_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    raise AppConfigurationError(f"{field} must be a boolean.")


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be an integer.") from error
    raise AppConfigurationError(f"{field} must be an integer.")


def _as_float(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be a float.")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be a float.") from error
    raise AppConfigurationError(f"{field} must be a float.")


def _as_non_negative_float(value: Any, field: str) -> float:
    number = _as_float(value, field)
    if number < 0:
        raise AppConfigurationError(f"{field} must not be negative.")
    return number


def _as_duration(value: Any, field: str) -> int:
    text = _as_str(value, field)
    try:
        return parse_duration(text)
    except DurationFormatError as error:
        raise AppConfigurationError(f"{field}: {error}") from error


def _as_log_level(value: Any, field: str) -> str:
    level = _as_str(value, field).upper()
    if level not in _ALLOWED_LOG_LEVELS:
        allowed = ", ".join(sorted(_ALLOWED_LOG_LEVELS))
        raise AppConfigurationError(f"{field} must be one of: {allowed}.")
    return level


def log_level_value(level: str) -> int:
    return logging.getLevelName(level.upper())


def _resolve_path(base_dir: Path, raw: str) -> str:
    if not raw:
        return ""
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return str(path)
