from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Optional

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for older runtimes
    import tomli as tomllib  # type: ignore

from app_config_parser import parse_app_config, validate_collection_name
from app_config_schema import (
    DEFAULT_CONFIG_FILE,
    AppConfig,
    AppConfigurationError,
    MusicSettings,
)

CONFIG_FILE_ENV = "POMOBEATS_CONFIG_FILE"

__all__ = [
    "AppConfig",
    "AppConfigurationError",
    "load_app_config",
    "resolve_config_path",
    "resolve_track_dirs",
]


def resolve_config_path(
    config_path: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Path:
    env = environ if environ is not None else os.environ
    raw = config_path or env.get(CONFIG_FILE_ENV, "").strip() or DEFAULT_CONFIG_FILE
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (Path.cwd() / path).resolve()
    return path


def load_app_config(
    config_path: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load config.toml (when present) and apply environment overrides.

    A missing default config file yields the built-in defaults; a missing file
    that was named explicitly (argument or ``POMOBEATS_CONFIG_FILE``) is an error.
    """
    env = environ if environ is not None else os.environ
    explicit = bool(config_path or env.get(CONFIG_FILE_ENV, "").strip())
    path = resolve_config_path(config_path, environ=env)

    raw: Mapping[str, Any] = {}
    source_file = ""
    if path.exists():
        if not path.is_file():
            raise AppConfigurationError(f"Config path is not a file: {path}")
        try:
            with open(path, "rb") as fh:
                raw = tomllib.load(fh)
        except Exception as error:
            raise AppConfigurationError(f"Failed to parse config TOML: {error}") from error
        source_file = str(path)
    elif explicit:
        raise AppConfigurationError(f"Config file not found: {path}")

    if not isinstance(raw, Mapping):
        raise AppConfigurationError("Root config TOML object must be a table.")

    base_dir = path.parent if source_file else Path.cwd()
    return parse_app_config(
        raw,
        base_dir=base_dir,
        source_file=source_file,
        environ=env,
    )


def resolve_track_dirs(
    music: MusicSettings,
    collection: Optional[str] = None,
) -> tuple[Path, Path]:
    """Return the (work, break) track directories for the selected collection."""
    name = collection if collection is not None else music.collection
    if name:
        name = validate_collection_name(name)
        collection_root = Path(music.root) / name
        return collection_root / "work", collection_root / "break"
    return Path(music.work_dir), Path(music.break_dir)
