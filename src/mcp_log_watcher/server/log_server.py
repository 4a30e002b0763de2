"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: callable actions (e.g., start watching a log file, read the current view)
- Resources: addressable data blobs (e.g., log tail via URI, watch status)
- Prompts: reusable conversation templates that clients can invoke

Run locally (stdio):
    python -m mcp_log_watcher.server.log_server
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_log_watcher.core.config import LOG_LEVEL_ENV
from mcp_log_watcher.prompts.registry import register_prompts
from mcp_log_watcher.resources.registry import register_resources
from mcp_log_watcher.tools.watch import (
    get_log_view_impl,
    pause_impl,
    resume_impl,
    set_content_transform_impl,
    set_filters_impl,
    stop_watching_impl,
    watch_log_impl,
)

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; keeping logs concise makes them easier to consume.
    """
    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


mcp = FastMCP("log-watch", json_response=True)

register_resources(mcp)
register_prompts(mcp)


@mcp.tool()
async def watch_log(log_path: str) -> dict[str, Any]:
    """Start following a log file, replacing any previous watch.

    Parameters
    ----------
    log_path:
        Path to a local log file, absolute or relative to LOG_WATCH_BASE_DIR.
        The last lines are loaded immediately; new lines are picked up as the
        file grows, and rotation or truncation reloads the tail.

    Returns
    -------
    dict:
        {"file": str, "entries": int, "message": str}
    """
    return await watch_log_impl(log_path=log_path)


@mcp.tool()
async def stop_watching() -> dict[str, Any]:
    """Stop following the current log file and clear its entries."""
    return await stop_watching_impl()


@mcp.tool()
def get_log_view(limit: int | None = None) -> dict[str, Any]:
    """Return the most recent entries after level/keyword filtering.

    Each entry carries the original text, the display text produced by the
    content transform, and highlight ranges ([start, end) offsets into the
    display text) for the highlight keywords.
    """
    return get_log_view_impl(limit=limit)


@mcp.tool()
def set_filters(
    level: str | None = None,
    keywords: str | None = None,
    highlight: str | None = None,
) -> dict[str, Any]:
    """Update the view filters.

    Parameters
    ----------
    level:
        One of all, error, warning, info.
    keywords:
        Whitespace/comma separated; a line must contain every keyword (case-insensitive).
        Use an empty string to clear.
    highlight:
        Whitespace/comma separated keywords to highlight. Use an empty string to clear.
    """
    return set_filters_impl(level=level, keywords=keywords, highlight=highlight)


@mcp.tool()
def set_content_transform(snippet: str) -> dict[str, Any]:
    """Install a per-line display transform.

    The snippet is a preset name, a Python expression returning a one-argument
    callable (lambda line: ...), or a function body using `line`. An empty
    snippet removes the transform. Compile errors are returned in "error".
    """
    return set_content_transform_impl(snippet=snippet)


@mcp.tool()
def pause_watching() -> dict[str, Any]:
    """Pause the view; updates are buffered until resume_watching."""
    return pause_impl()


@mcp.tool()
def resume_watching() -> dict[str, Any]:
    """Resume the view and apply buffered updates in order."""
    return resume_impl()


def main() -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
