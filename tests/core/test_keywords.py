from __future__ import annotations

import random

import pytest

from mcp_log_watcher.core.keywords import highlight_ranges, matches_keywords, merge_ranges, tokenize


def test_tokenize_splits_on_whitespace_and_commas() -> None:
    assert tokenize("  Foo, bar,,BAZ\tfoo ") == ["foo", "bar", "baz"]


def test_tokenize_empty() -> None:
    assert tokenize("") == []
    assert tokenize(" , ") == []
    assert tokenize(None) == []


def test_matches_keywords_requires_every_token() -> None:
    line = "GET /api/items failed with Timeout"
    assert matches_keywords(line, ["timeout", "api"])
    assert not matches_keywords(line, ["timeout", "db"])
    assert matches_keywords(line, [])


def test_highlight_ranges_case_insensitive() -> None:
    assert highlight_ranges("Error: error", ["error"]) == [(0, 5), (7, 12)]


def test_highlight_ranges_non_overlapping_scan() -> None:
    # Scanning resumes after each match, so "aaa" matches "aa" once.
    assert highlight_ranges("aaa", ["aa"]) == [(0, 2)]


def test_highlight_ranges_merges_overlapping_and_adjacent() -> None:
    text = "timeout retrying"
    assert highlight_ranges(text, ["time", "meout", "retry"]) == [(0, 7), (8, 13)]
    assert highlight_ranges("abcd", ["ab", "cd"]) == [(0, 4)]


@pytest.mark.parametrize("prefix", ["İ ", "ẞ ", "İİ ẞ "])
def test_highlight_ranges_index_original_text(prefix: str) -> None:
    text = prefix + "ERROR then error"
    ranges = highlight_ranges(text, ["error"])
    assert [text[start:end] for start, end in ranges] == ["ERROR", "error"]


def test_highlight_ranges_no_keywords() -> None:
    assert highlight_ranges("anything", []) == []


def test_merge_ranges_covers_union() -> None:
    rng = random.Random(1234)
    for _ in range(200):
        ranges = []
        for _ in range(rng.randint(0, 8)):
            start = rng.randint(0, 40)
            ranges.append((start, start + rng.randint(1, 6)))

        merged = merge_ranges(ranges)

        assert merged == sorted(merged)
        for (_, end), (next_start, _) in zip(merged, merged[1:]):
            assert end < next_start
        covered = {i for start, end in merged for i in range(start, end)}
        expected = {i for start, end in ranges for i in range(start, end)}
        assert covered == expected
