"""Keyword filtering and highlight ranges."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

_SPLIT_RE = re.compile(r"[\s,]+")


def tokenize(raw: str | None) -> list[str]:
    """Split a filter string on whitespace/commas into unique lowercase tokens."""
    if not raw:
        return []
    out: list[str] = []
    for part in _SPLIT_RE.split(raw):
        token = part.strip().lower()
        if token and token not in out:
            out.append(token)
    return out


def matches_keywords(text: str, tokens: Iterable[str]) -> bool:
    """True when every token occurs in ``text`` (case-insensitive)."""
    lower = text.lower()
    return all(token in lower for token in tokens)


def merge_ranges(ranges: Iterable[tuple[int, int]]) -> list[tuple[int, int]]:
    """Sort ranges and merge those that touch or overlap."""
    merged: list[list[int]] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])
    return [(start, end) for start, end in merged]


def highlight_ranges(text: str, keywords: Sequence[str]) -> list[tuple[int, int]]:
    """Return merged ``[start, end)`` ranges of every keyword occurrence in ``text``."""
    if not keywords:
        return []

    # Offsets must index the original text; lower() can change its length.
    ranges: list[tuple[int, int]] = []
    for keyword in keywords:
        if not keyword:
            continue
        for match in re.finditer(re.escape(keyword), text, re.IGNORECASE):
            ranges.append(match.span())

    return merge_ranges(ranges)
