"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import aiofiles
from mcp.server.fastmcp import FastMCP

from mcp_log_watcher.core.config import BASE_DIR_ENV, base_dir, resolve_settings, safe_resolve
from mcp_log_watcher.core.state import LogEntryView
from mcp_log_watcher.core.tail import read_tail
from mcp_log_watcher.core.transform import describe_presets
from mcp_log_watcher.tools.watch import get_state

ALLOWED_FILE_SUFFIXES = {".log", ".txt", ".json", ".jsonl", ".ndjson", ".fls"}


def _ensure_allowed_suffix(path: Path) -> None:
    """Validate the file suffix against the allowlist."""
    suffix = path.suffix.lower()
    if suffix not in ALLOWED_FILE_SUFFIXES:
        allowed = ", ".join(sorted(ALLOWED_FILE_SUFFIXES))
        raise ValueError(f"File type not allowed. Allowed: {allowed}.")


def _resolve_resource_path(path: str) -> Path:
    """Resolve and validate a resource file path."""
    resolved = safe_resolve(path, resolve_settings())
    if not resolved.is_file():
        raise FileNotFoundError(f"File not found: {resolved}")
    _ensure_allowed_suffix(resolved)
    return resolved


async def read_log_tail(path: Path, max_lines: int) -> str:
    """Return the last lines of ``path`` prefixed with their line numbers."""
    async with aiofiles.open(path, "rb") as f:
        lines = await read_tail(f, max_lines)
    return "".join(f"{line.line_number}: {line.text}\n" for line in lines)


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://log-watch/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        allowed = ", ".join(sorted(ALLOWED_FILE_SUFFIXES))
        return (
            "Resources:\n"
            "- app://log-watch/help\n"
            "- app://log-watch/status\n"
            "- app://log-watch/presets\n"
            "- app://log-watch/schemas/log-view\n"
            f"- log://{{path}} (tail of a file under {BASE_DIR_ENV}; allowed: {allowed})\n"
            f"\nBase directory: {base_dir(resolve_settings())}\n"
        )

    @mcp.resource("app://log-watch/status")
    def status_resource() -> dict[str, Any]:
        """Return the current watch status and filters."""
        return get_state().status()

    @mcp.resource("app://log-watch/presets")
    def presets_resource() -> dict[str, str]:
        """Return the built-in content transform presets."""
        return describe_presets()

    @mcp.resource("app://log-watch/schemas/log-view")
    def log_view_schema() -> dict[str, Any]:
        """Return the JSON schema for entries returned by get_log_view."""
        return LogEntryView.model_json_schema()

    @mcp.resource("log://{path}")
    async def tail_log(path: str) -> str:
        """Return the tail of a log file with line numbers."""
        p = _resolve_resource_path(path)
        return await read_log_tail(p, resolve_settings().tail_lines)
