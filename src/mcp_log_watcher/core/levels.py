"""Severity classification by keyword."""

from __future__ import annotations

import re

from .models import LogLevel

# Checked in order; first match wins.
_LEVEL_PATTERNS: tuple[tuple[LogLevel, re.Pattern[str]], ...] = (
    (LogLevel.ERROR, re.compile(r"\berror\b", re.IGNORECASE)),
    (LogLevel.WARNING, re.compile(r"\bwarn(?:ing)?\b", re.IGNORECASE)),
    (LogLevel.INFO, re.compile(r"\binfo\b", re.IGNORECASE)),
)


def classify(text: str) -> LogLevel:
    """Return the severity class of a line (``OTHER`` when nothing matches)."""
    for level, pattern in _LEVEL_PATTERNS:
        if pattern.search(text):
            return level
    return LogLevel.OTHER
