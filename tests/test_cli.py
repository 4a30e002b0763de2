from __future__ import annotations

from pathlib import Path

import pytest

from mcp_log_watcher.cli import main, render_entry
from mcp_log_watcher.core.models import LogLevel
from mcp_log_watcher.core.state import LogEntryView


def test_render_entry_marks_highlights() -> None:
    entry = LogEntryView(
        id="1-0",
        line_number=12,
        level=LogLevel.ERROR,
        text="upstream timeout route=/api",
        display_text="upstream timeout route=/api",
        highlights=[(9, 16)],
        timestamp=0.0,
    )
    assert render_entry(entry) == "    12 [error  ] upstream >>timeout<< route=/api"


def test_main_once_prints_filtered_tail(
    tmp_path: Path,
    write_log,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.delenv("LOG_WATCH_TRANSFORM", raising=False)
    log = tmp_path / "app.log"
    write_log(log)

    with pytest.raises(SystemExit) as exc:
        main([str(log), "--once", "--level", "warning", "--highlight", "retrying"])

    assert exc.value.code == 0
    out = capsys.readouterr().out.splitlines()
    assert out == ["     2 [warning] 2025-12-30T08:12:03Z [WARNING] >>retrying<< request id=abc123"]


def test_main_missing_file_exits_2(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        main([str(tmp_path / "missing.log"), "--once"])
    assert exc.value.code == 2
