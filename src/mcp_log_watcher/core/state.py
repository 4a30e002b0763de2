"""Presentation-side log state.

Consumes watcher updates, keeps the most recent entries and derives the
filtered, transformed and highlighted view shown to clients.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from .channel import Subscription
from .config import WatcherSettings
from .keywords import highlight_ranges, matches_keywords, tokenize
from .levels import classify
from .models import CompiledTransform, LogEntry, LogLevel, LogUpdate, UpdateKind
from .transform import TransformRunner, compile_content_transform
from .watcher import LogWatcher

logger = logging.getLogger(__name__)


class LevelFilter(str, Enum):
    ALL = "all"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


def parse_level_filter(value: str | LevelFilter | None) -> LevelFilter:
    """Parse a user-supplied level filter (case-insensitive)."""
    if value is None:
        return LevelFilter.ALL
    if isinstance(value, LevelFilter):
        return value
    name = value.strip().lower() or LevelFilter.ALL.value
    try:
        return LevelFilter(name)
    except ValueError as e:
        valid = ", ".join(f.value for f in LevelFilter)
        raise ValueError(f"Unknown level filter '{value}'. Valid values: {valid}.") from e


class LogEntryView(BaseModel):
    """One displayed log line."""

    id: str
    line_number: int = Field(ge=1, description="Absolute line number in the watched file.")
    level: LogLevel
    text: str = Field(description="Original line text.")
    display_text: str = Field(description="Line text after the content transform.")
    highlights: list[tuple[int, int]] = Field(
        default_factory=list,
        description="Merged [start, end) ranges of highlight keywords in display_text.",
    )
    timestamp: float = Field(description="Arrival time (epoch seconds).")


class LogState:
    """Entries for the watched file plus the filters applied to them."""

    def __init__(
        self,
        settings: WatcherSettings | None = None,
        *,
        watcher_factory: Callable[[], LogWatcher] | None = None,
    ) -> None:
        self.settings = settings or WatcherSettings()
        self._watcher_factory = watcher_factory or (
            lambda: LogWatcher(tail_lines=self.settings.tail_lines)
        )
        self.selected_file: Path | None = None
        self.level_filter = LevelFilter.ALL
        self.keyword_filter = ""
        self.highlight_keyword = ""

        self._entries: deque[LogEntry] = deque(maxlen=self.settings.max_entries)
        self._counter = 0
        self._paused = False
        self._pending: list[LogUpdate] = []
        self._watcher: LogWatcher | None = None
        self._subscription: Subscription | None = None
        self._transform = compile_content_transform(self.settings.transform)
        self._runner = TransformRunner(self.settings.transform_timeout)

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def transform(self) -> CompiledTransform:
        return self._transform

    @property
    def watcher(self) -> LogWatcher | None:
        return self._watcher

    @property
    def last_error(self) -> str | None:
        return self._watcher.last_error if self._watcher is not None else None

    # -- watching -----------------------------------------------------------

    async def watch_file(self, path: str | Path) -> None:
        """Replace the current watch with ``path``; re-raises open failures."""
        await self._dispose_watcher()
        self._reset_entries()
        self._pending.clear()

        watcher = self._watcher_factory()
        self._watcher = watcher
        self._subscription = watcher.updates.subscribe(self.handle_update)
        try:
            await watcher.watch_file(path)
        except Exception:
            await self._dispose_watcher()
            self.selected_file = None
            raise
        self.selected_file = watcher.path
        logger.info("Watching log file %s", self.selected_file)

    async def clear_file(self) -> None:
        await self._dispose_watcher()
        self.selected_file = None
        self._pending.clear()
        self._reset_entries()

    async def close(self) -> None:
        await self.clear_file()
        self._runner.close()

    async def _dispose_watcher(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.cancel()
        watcher, self._watcher = self._watcher, None
        if watcher is not None:
            await watcher.dispose()

    # -- updates ------------------------------------------------------------

    def handle_update(self, update: LogUpdate) -> None:
        """Apply a watcher update, or buffer it while paused."""
        if self._paused:
            if update.kind == UpdateKind.RESET:
                # A reset supersedes everything buffered before it.
                self._pending.clear()
            self._pending.append(update)
            return
        self._apply(update)

    def _apply(self, update: LogUpdate) -> None:
        if update.kind == UpdateKind.RESET:
            self._reset_entries()
        now = time.time()
        for line in update.lines:
            self._entries.append(
                LogEntry(
                    id=f"{int(now * 1000)}-{self._counter}",
                    text=line.text,
                    level=classify(line.text),
                    timestamp=now,
                    line_number=line.line_number,
                )
            )
            self._counter += 1

    def _reset_entries(self) -> None:
        self._entries.clear()
        self._counter = 0

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        if not self._paused:
            return
        self._paused = False
        pending, self._pending = self._pending, []
        for update in pending:
            self._apply(update)

    # -- filters ------------------------------------------------------------

    def set_level_filter(self, value: str | LevelFilter | None) -> None:
        self.level_filter = parse_level_filter(value)

    def set_keyword_filter(self, value: str | None) -> None:
        self.keyword_filter = (value or "").strip()

    def set_highlight_keyword(self, value: str | None) -> None:
        self.highlight_keyword = (value or "").strip()

    def set_transform(self, source: str | None) -> CompiledTransform:
        """Compile and install a content transform; returns the compile result."""
        self._transform = compile_content_transform(source)
        return self._transform

    def filtered_entries(self) -> list[LogEntry]:
        tokens = tokenize(self.keyword_filter)
        level = self.level_filter
        if not tokens and level == LevelFilter.ALL:
            return list(self._entries)

        out: list[LogEntry] = []
        for entry in self._entries:
            if level != LevelFilter.ALL and entry.level.value != level.value:
                continue
            if tokens and not matches_keywords(entry.text, tokens):
                continue
            out.append(entry)
        return out

    def view(self, limit: int | None = None) -> list[LogEntryView]:
        """Filtered entries (most recent ``limit``) rendered for display."""
        entries = self.filtered_entries()
        if limit is not None:
            if limit <= 0:
                raise ValueError("limit must be > 0")
            entries = entries[-limit:]

        keywords = tokenize(self.highlight_keyword)
        out: list[LogEntryView] = []
        for entry in entries:
            display = self._runner.apply(entry.text, self._transform)
            out.append(
                LogEntryView(
                    id=entry.id,
                    line_number=entry.line_number,
                    level=entry.level,
                    text=entry.text,
                    display_text=display,
                    highlights=highlight_ranges(display, keywords),
                    timestamp=entry.timestamp,
                )
            )
        return out

    def control_message(self) -> str:
        """One-line summary of the current file and filters."""
        parts = [
            f"File: {self.selected_file if self.selected_file else '(no log file selected)'}",
            f"[Level: {self.level_filter.value}]",
            f"[Filter: {self.keyword_filter or '(none)'}]",
            f"[Highlight: {self.highlight_keyword or '(none)'}]",
        ]
        if self._paused:
            parts.append("[Paused]")
        return "  |  ".join(parts)

    def status(self) -> dict[str, Any]:
        watcher = self._watcher
        return {
            "file": str(self.selected_file) if self.selected_file else None,
            "watcher": watcher.status.value if watcher is not None else None,
            "paused": self._paused,
            "pending_updates": len(self._pending),
            "entries": len(self._entries),
            "max_entries": self.settings.max_entries,
            "level_filter": self.level_filter.value,
            "keyword_filter": self.keyword_filter,
            "highlight_keyword": self.highlight_keyword,
            "transform": self._transform.source or None,
            "transform_error": self._transform.error,
            "last_error": self.last_error,
        }
