from __future__ import annotations

from pathlib import Path

import pytest

from mcp_log_watcher.core.config import WatcherSettings, resolve_settings, safe_resolve


def test_resolve_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "LOG_WATCH_TAIL_LINES",
        "LOG_WATCH_MAX_ENTRIES",
        "LOG_WATCH_TRANSFORM",
        "LOG_WATCH_TRANSFORM_TIMEOUT",
        "LOG_WATCH_BASE_DIR",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = resolve_settings()

    assert settings.tail_lines == 50
    assert settings.max_entries == 2000
    assert settings.transform == ""
    assert settings.transform_timeout is None
    assert settings.base_dir is None


def test_resolve_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LOG_WATCH_TAIL_LINES", "10")
    monkeypatch.setenv("LOG_WATCH_MAX_ENTRIES", "500")
    monkeypatch.setenv("LOG_WATCH_TRANSFORM", "fls")
    monkeypatch.setenv("LOG_WATCH_TRANSFORM_TIMEOUT", "0.25")
    monkeypatch.setenv("LOG_WATCH_BASE_DIR", str(tmp_path))

    settings = resolve_settings()

    assert settings.tail_lines == 10
    assert settings.max_entries == 500
    assert settings.transform == "fls"
    assert settings.transform_timeout == 0.25
    assert settings.base_dir == tmp_path.resolve()


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("LOG_WATCH_TAIL_LINES", "many"),
        ("LOG_WATCH_TAIL_LINES", "-1"),
        ("LOG_WATCH_MAX_ENTRIES", "0"),
        ("LOG_WATCH_TRANSFORM_TIMEOUT", "soon"),
        ("LOG_WATCH_TRANSFORM_TIMEOUT", "0"),
    ],
)
def test_resolve_settings_invalid(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        resolve_settings()


def test_safe_resolve_rejects_escape(tmp_path: Path) -> None:
    settings = WatcherSettings(base_dir=tmp_path.resolve())
    assert safe_resolve("logs/app.log", settings) == tmp_path.resolve() / "logs" / "app.log"
    with pytest.raises(ValueError, match="escapes"):
        safe_resolve("../outside.log", settings)
