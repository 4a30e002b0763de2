from __future__ import annotations

import pytest

from mcp_log_watcher.core.lines import reassemble


def _feed(chunks: list[str]) -> tuple[list[str], str]:
    lines: list[str] = []
    remainder = ""
    for chunk in chunks:
        out, remainder = reassemble(chunk, remainder)
        lines.extend(out)
    return lines, remainder


def test_reassemble_complete_lines() -> None:
    assert reassemble("a\nb\n", "") == (["a", "b"], "")


def test_reassemble_keeps_unterminated_tail() -> None:
    assert reassemble("a\nbc", "") == (["a"], "bc")


def test_reassemble_joins_remainder() -> None:
    assert reassemble("def\nxy", "abc") == (["abcdef"], "xy")


def test_reassemble_normalizes_crlf() -> None:
    assert reassemble("a\r\nb\r\n", "") == (["a", "b"], "")


def test_reassemble_crlf_split_across_chunks() -> None:
    lines, remainder = _feed(["one\r", "\ntwo\r\n"])
    assert lines == ["one", "two"]
    assert remainder == ""


def test_reassemble_empty_input() -> None:
    assert reassemble("", "") == ([], "")


def test_reassemble_blank_lines_are_kept() -> None:
    assert reassemble("\n\nx\n", "") == (["", "", "x"], "")


@pytest.mark.parametrize("text", ["alpha\nbeta\r\ngamma\n\ndelta", "x\n", "no newline at all"])
def test_reassemble_chunking_does_not_change_lines(text: str) -> None:
    expected_all = text.replace("\r\n", "\n").split("\n")
    expected_lines, expected_rest = expected_all[:-1], expected_all[-1]

    for cut in range(len(text) + 1):
        lines, remainder = _feed([text[:cut], text[cut:]])
        assert lines == expected_lines
        assert remainder == expected_rest
        assert all("\n" not in line for line in lines)
