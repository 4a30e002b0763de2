"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

TAIL_LINES_ENV = "LOG_WATCH_TAIL_LINES"
MAX_ENTRIES_ENV = "LOG_WATCH_MAX_ENTRIES"
TRANSFORM_ENV = "LOG_WATCH_TRANSFORM"
TRANSFORM_TIMEOUT_ENV = "LOG_WATCH_TRANSFORM_TIMEOUT"
BASE_DIR_ENV = "LOG_WATCH_BASE_DIR"
LOG_LEVEL_ENV = "LOG_WATCH_LOG_LEVEL"

DEFAULT_TAIL_LINES = 50
DEFAULT_MAX_ENTRIES = 2000


@dataclass(frozen=True, slots=True)
class WatcherSettings:
    tail_lines: int = DEFAULT_TAIL_LINES
    max_entries: int = DEFAULT_MAX_ENTRIES
    transform: str = ""
    # Per-call limit for user transforms, in seconds. None: no limit.
    transform_timeout: float | None = None
    base_dir: Path | None = None


def _env_int(name: str, default: int, *, minimum: int) -> int:
    env = os.getenv(name)
    if env is None or env == "":
        return default
    try:
        value = int(env)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _env_timeout(name: str) -> float | None:
    env = os.getenv(name)
    if env is None or env == "":
        return None
    try:
        value = float(env)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number of seconds") from exc
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


def resolve_settings() -> WatcherSettings:
    """Read settings from the environment, validating each value."""
    base = os.getenv(BASE_DIR_ENV)
    return WatcherSettings(
        tail_lines=_env_int(TAIL_LINES_ENV, DEFAULT_TAIL_LINES, minimum=0),
        max_entries=_env_int(MAX_ENTRIES_ENV, DEFAULT_MAX_ENTRIES, minimum=1),
        transform=os.getenv(TRANSFORM_ENV, ""),
        transform_timeout=_env_timeout(TRANSFORM_TIMEOUT_ENV),
        base_dir=Path(base).resolve() if base else None,
    )


def base_dir(settings: WatcherSettings | None = None) -> Path:
    """Directory that watched paths must live under (defaults to the cwd)."""
    if settings is not None and settings.base_dir is not None:
        return settings.base_dir
    raw = os.getenv(BASE_DIR_ENV, os.getcwd())
    return Path(raw).resolve()


def safe_resolve(path: str, settings: WatcherSettings | None = None) -> Path:
    """Resolve a path under the configured base directory."""
    base = base_dir(settings)
    p = Path(path).expanduser()
    if not p.is_absolute():
        p = base / p
    p = p.resolve()
    if base not in p.parents and p != base:
        raise ValueError("Path escapes base dir")
    return p
