"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_log_watcher.core.transform import describe_presets


def _format_presets() -> str:
    """Return presets as a bullet list for prompt display."""
    items = describe_presets()
    if not items:
        return "- (none)"
    return "\n".join(f"- {name}: {doc}" for name, doc in sorted(items.items()))


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def explain_recent_errors(log_path: str, keywords: str = "") -> list[dict[str, Any]]:
        """Build a prompt that explains recent errors in a watched log."""
        filter_lines = ["- level: error"]
        if keywords:
            filter_lines.append(f"- keywords: {keywords}")
        filter_block = "\n".join(filter_lines)
        return [
            {
                "role": "system",
                "content": (
                    "You are a senior on-call engineer for backend services. "
                    "Provide concise, evidence-based summaries from log data. "
                    "Do not invent details; if the evidence is insufficient, say so."
                ),
            },
            {
                "role": "user",
                "content": (
                    "Explain the recent errors of a live log file. Follow this workflow:\n"
                    "- Call watch_log with:\n"
                    f"- log_path: {log_path}\n"
                    "- Call set_filters with:\n"
                    f"{filter_block}\n"
                    "- Call get_log_view and quote evidence using line_number and text.\n"
                    "- If no entries are returned, say so and suggest set_filters(level='all').\n\n"
                    "Return this structure:\n"
                    "1) What happened (1-3 bullets)\n"
                    "2) Evidence (2-5 quoted lines, e.g., [#123] ... error ...)\n"
                    "3) Suspected root cause (1-2 sentences; say 'Unknown' if unclear)\n"
                    "4) Next actions (2-4 bullets)\n"
                ),
            },
            {
                "role": "user",
                "content": [
                    {
                        "type": "text",
                        "text": "Optional: if you need raw context, you can read the log tail via:",
                    },
                    {"type": "resource", "uri": f"log://{log_path}"},
                ],
            },
        ]

    @mcp.prompt()
    def write_content_transform(description: str, sample_line: str = "") -> list[dict[str, Any]]:
        """Build a prompt that writes a content transform snippet."""
        sample = f"Sample line:\n{sample_line}\n\n" if sample_line else ""
        return [
            {
                "role": "system",
                "content": (
                    "You write short Python snippets that rewrite one log line for display. "
                    "Answer with the snippet only."
                ),
            },
            {
                "role": "user",
                "content": (
                    f"Goal: {description}\n\n"
                    f"{sample}"
                    "Rules:\n"
                    "- Either a single expression returning a one-argument callable "
                    "(e.g., lambda line: line.strip().upper()) or a function body using "
                    "the parameter `line` (e.g., return line[:3]).\n"
                    "- Only basic builtins plus json.loads/json.dumps and re.search/sub/... are available.\n"
                    "- No imports, no names or attributes starting with an underscore.\n"
                    "- Return a string; returning None keeps the original line.\n"
                    "- Or use one of the presets by name:\n"
                    f"{_format_presets()}\n\n"
                    "Install the result with set_content_transform and check its error field."
                ),
            },
        ]
