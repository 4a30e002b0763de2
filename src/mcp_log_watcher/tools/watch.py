"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into calls on the shared
:class:`LogState`, and return JSON-serializable data structures.
"""

from __future__ import annotations

from typing import Any

from mcp_log_watcher.core.config import resolve_settings, safe_resolve
from mcp_log_watcher.core.state import LogState

DEFAULT_LIMIT = 200
HARD_LIMIT = 2000

_STATE: LogState | None = None


def get_state() -> LogState:
    """Return the process-wide log state, creating it from the environment."""
    global _STATE
    if _STATE is None:
        _STATE = LogState(resolve_settings())
    return _STATE


def set_state(state: LogState | None) -> None:
    """Replace the process-wide state (used by tests and embedding hosts)."""
    global _STATE
    _STATE = state


def _effective_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    if limit <= 0:
        raise ValueError("limit must be > 0")
    return min(limit, HARD_LIMIT)


def _transform_dict(state: LogState) -> dict[str, Any]:
    compiled = state.transform
    return {
        "source": compiled.source,
        "active": compiled.active,
        "error": compiled.error,
    }


async def watch_log_impl(*, log_path: str, state: LogState | None = None) -> dict[str, Any]:
    """Start watching ``log_path`` (restricted to the base directory)."""
    state = state or get_state()
    path = safe_resolve(log_path, state.settings)
    if not path.is_file():
        raise FileNotFoundError(f"Log file not found: {path}")
    try:
        await state.watch_file(path)
    except OSError as e:
        raise ValueError(f"Unable to read log file: {e}") from e
    return {
        "file": str(state.selected_file),
        "entries": len(state.entries),
        "message": state.control_message(),
    }


async def stop_watching_impl(*, state: LogState | None = None) -> dict[str, Any]:
    state = state or get_state()
    previous = state.selected_file
    await state.clear_file()
    return {"stopped": str(previous) if previous else None}


def get_log_view_impl(*, limit: int | None = None, state: LogState | None = None) -> dict[str, Any]:
    """Return the filtered, transformed and highlighted entries."""
    state = state or get_state()
    entries = state.view(limit=_effective_limit(limit))
    return {
        "file": str(state.selected_file) if state.selected_file else None,
        "message": state.control_message(),
        "count": len(entries),
        "entries": [e.model_dump(mode="json") for e in entries],
        "transform": _transform_dict(state),
        "last_error": state.last_error,
    }


def set_filters_impl(
    *,
    level: str | None = None,
    keywords: str | None = None,
    highlight: str | None = None,
    state: LogState | None = None,
) -> dict[str, Any]:
    """Update filters; parameters left as None keep their current value."""
    state = state or get_state()
    if level is not None:
        state.set_level_filter(level)
    if keywords is not None:
        state.set_keyword_filter(keywords)
    if highlight is not None:
        state.set_highlight_keyword(highlight)
    return {
        "level": state.level_filter.value,
        "keywords": state.keyword_filter,
        "highlight": state.highlight_keyword,
        "matching": len(state.filtered_entries()),
        "message": state.control_message(),
    }


def set_content_transform_impl(*, snippet: str, state: LogState | None = None) -> dict[str, Any]:
    """Compile and install a transform; compile errors are reported, not raised."""
    state = state or get_state()
    state.set_transform(snippet)
    return _transform_dict(state)


def pause_impl(*, state: LogState | None = None) -> dict[str, Any]:
    state = state or get_state()
    state.pause()
    return {"paused": True}


def resume_impl(*, state: LogState | None = None) -> dict[str, Any]:
    state = state or get_state()
    state.resume()
    return {"paused": False, "entries": len(state.entries)}
