from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from mcp_log_watcher.core.config import WatcherSettings
from mcp_log_watcher.core.state import LogState
from mcp_log_watcher.core.watcher import LogWatcher


@pytest.fixture
def write_lines() -> Callable[[Path, list[str]], None]:
    def _write(path: Path, lines: list[str]) -> None:
        path.write_bytes("".join(line + "\n" for line in lines).encode("utf-8"))

    return _write


@pytest.fixture
def append_bytes() -> Callable[[Path, bytes], None]:
    def _append(path: Path, data: bytes) -> None:
        with path.open("ab") as f:
            f.write(data)

    return _append


@pytest.fixture
def write_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text(
            "\n".join(
                [
                    "2025-12-30T08:12:01Z [INFO] service started",
                    "2025-12-30T08:12:03Z [WARNING] retrying request id=abc123",
                    "2025-12-30T08:12:04Z [ERROR] upstream timeout route=/api/v1/items",
                    "2025-12-30T08:12:05Z [DEBUG] cache warmed",
                ]
            )
            + "\n",
            encoding="utf-8",
        )

    return _write


@pytest.fixture
def make_state(tmp_path: Path) -> Callable[..., LogState]:
    """LogState whose watchers do not start OS observers."""

    def _make(**overrides) -> LogState:
        settings = WatcherSettings(base_dir=tmp_path.resolve(), **overrides)
        return LogState(
            settings,
            watcher_factory=lambda: LogWatcher(tail_lines=settings.tail_lines, observer_factory=None),
        )

    return _make
