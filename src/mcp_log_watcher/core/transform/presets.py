"""Built-in content transforms selectable by name."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import datetime
from types import MappingProxyType

from ..models import TransformFn

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

JSON_TIME_KEYS: Sequence[str] = ("timestamp", "time", "ts", "_datetime_")
JSON_LEVEL_KEYS: Sequence[str] = ("level", "severity", "lvl", "log_level", "_level_")
JSON_MSG_KEYS: Sequence[str] = ("message", "msg", "error", "detail", "_msg_")


def _format_time(value: object) -> str:
    """Render an ISO-8601 timestamp as ``YYYY-MM-DD HH:MM:SS`` in its own offset."""
    raw = str(value)
    try:
        ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        try:
            ts = datetime.strptime(raw, "%Y-%m-%dT%H:%M:%S.%f%z")
        except ValueError:
            return raw
    return ts.strftime(_TIME_FORMAT)


def _first(obj: dict, keys: Sequence[str]) -> object | None:
    for k in keys:
        if k in obj:
            return obj[k]
    return None


def fls(text: str) -> str:
    """``{"_datetime_", "_level_", "_msg_"}`` JSON records -> ``time LEVEL msg``."""
    obj = json.loads(text)
    when = _format_time(obj["_datetime_"])
    return f"{when} {str(obj['_level_']).upper()} {obj['_msg_']}"


def jsonl(text: str) -> str | None:
    """Generic JSON-lines record -> ``time LEVEL msg`` (missing parts omitted)."""
    s = text.strip()
    if not (s.startswith("{") and s.endswith("}")):
        return None
    obj = json.loads(s)
    if not isinstance(obj, dict):
        return None

    parts: list[str] = []
    ts_val = _first(obj, JSON_TIME_KEYS)
    if ts_val is not None:
        parts.append(_format_time(ts_val))
    lvl_val = _first(obj, JSON_LEVEL_KEYS)
    if lvl_val is not None:
        parts.append(str(lvl_val).upper())
    msg_val = _first(obj, JSON_MSG_KEYS)
    if msg_val is not None:
        parts.append(str(msg_val))

    return " ".join(parts) if parts else None


PRESETS: MappingProxyType[str, TransformFn] = MappingProxyType(
    {
        "fls": fls,
        "jsonl": jsonl,
    }
)


def describe_presets() -> dict[str, str]:
    """Preset name -> first docstring line."""
    return {name: (fn.__doc__ or "").strip().splitlines()[0] for name, fn in PRESETS.items()}
