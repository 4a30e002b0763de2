"""Follow a log file in the terminal.

    python -m mcp_log_watcher.cli app.log --level error --highlight timeout
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from mcp_log_watcher.core.config import WatcherSettings, resolve_settings
from mcp_log_watcher.core.state import LevelFilter, LogEntryView, LogState, parse_level_filter

HIGHLIGHT_OPEN = ">>"
HIGHLIGHT_CLOSE = "<<"
POLL_INTERVAL = 0.25


def _parse_level(s: str) -> LevelFilter:
    try:
        return parse_level_filter(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def render_entry(entry: LogEntryView) -> str:
    """Format one entry with highlight markers around matched ranges."""
    text = entry.display_text
    out: list[str] = []
    pos = 0
    for start, end in entry.highlights:
        out.append(text[pos:start])
        out.append(f"{HIGHLIGHT_OPEN}{text[start:end]}{HIGHLIGHT_CLOSE}")
        pos = end
    out.append(text[pos:])
    return f"{entry.line_number:>6} [{entry.level.value:<7}] {''.join(out)}"


def _print_new(state: LogState, seen: set[str]) -> None:
    entries = state.view()
    visible = {e.id for e in entries}
    for entry in entries:
        if entry.id not in seen:
            print(render_entry(entry), flush=True)
    seen.clear()
    seen.update(visible)


async def follow(
    path: Path,
    *,
    settings: WatcherSettings,
    level: LevelFilter,
    keywords: str,
    highlight: str,
    transform: str | None,
    once: bool,
) -> int:
    state = LogState(settings)
    state.set_level_filter(level)
    state.set_keyword_filter(keywords)
    state.set_highlight_keyword(highlight)
    if transform is not None:
        compiled = state.set_transform(transform)
        if compiled.error:
            print(f"Transform error: {compiled.error}", file=sys.stderr)

    await state.watch_file(path)
    seen: set[str] = set()
    try:
        _print_new(state, seen)
        while not once:
            await asyncio.sleep(POLL_INTERVAL)
            _print_new(state, seen)
    finally:
        await state.close()
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entrypoint for following a log file locally (not MCP)."""
    p = argparse.ArgumentParser(description="Follow a log file with filtering and highlighting.")
    p.add_argument("log_path")
    p.add_argument("--lines", type=int, default=None, help="Lines loaded initially (default: LOG_WATCH_TAIL_LINES or 50)")
    p.add_argument("--level", type=_parse_level, default=LevelFilter.ALL, help="all, error, warning or info")
    p.add_argument("--filter", dest="keywords", default="", help="Keywords every line must contain")
    p.add_argument("--highlight", default="", help="Keywords to highlight")
    p.add_argument("--transform", default=None, help="Preset name or Python snippet for display text")
    p.add_argument("--once", action="store_true", help="Print the current tail and exit")
    p.add_argument("-v", "--verbose", action="store_true")

    args = p.parse_args(argv)
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = resolve_settings()
        if args.lines is not None:
            if args.lines < 0:
                raise ValueError("--lines must be >= 0")
            settings = replace(settings, tail_lines=args.lines)
        code = asyncio.run(
            follow(
                Path(args.log_path),
                settings=settings,
                level=args.level,
                keywords=args.keywords,
                highlight=args.highlight,
                transform=args.transform,
                once=args.once,
            )
        )
    except KeyboardInterrupt:
        code = 0
    except OSError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    raise SystemExit(code)


if __name__ == "__main__":
    main()
