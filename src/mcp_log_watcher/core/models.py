"""Core data models for log watching."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class LogLevel(str, Enum):
    """Severity classes assigned to watched lines."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    OTHER = "other"


class UpdateKind(str, Enum):
    """Kind of a watcher update."""

    RESET = "reset"
    APPEND = "append"


@dataclass(frozen=True, slots=True)
class LogLine:
    """One complete line read from the watched file."""

    text: str
    line_number: int  # absolute within the current file generation, starts at 1


@dataclass(frozen=True, slots=True)
class ResetUpdate:
    """Full replacement of the visible history (watch start, rotation, truncation)."""

    lines: tuple[LogLine, ...]
    kind: UpdateKind = field(default=UpdateKind.RESET, init=False)


@dataclass(frozen=True, slots=True)
class AppendUpdate:
    """Lines appended since the previous update."""

    lines: tuple[LogLine, ...]
    kind: UpdateKind = field(default=UpdateKind.APPEND, init=False)


LogUpdate = ResetUpdate | AppendUpdate


@dataclass(frozen=True, slots=True)
class LogEntry:
    """Consumer-side record for one watched line."""

    id: str
    text: str
    level: LogLevel
    timestamp: float  # arrival time (epoch seconds)
    line_number: int


TransformFn = Callable[[str], Any]


@dataclass(frozen=True, slots=True)
class CompiledTransform:
    """Result of compiling a content transform snippet.

    At most one of ``fn``/``error`` is set; both are None only for an empty source.
    """

    source: str
    fn: TransformFn | None = None
    error: str | None = None

    @property
    def active(self) -> bool:
        return self.fn is not None
