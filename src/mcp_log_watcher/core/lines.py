"""Line reassembly across chunk boundaries."""

from __future__ import annotations


def normalize_newlines(text: str) -> str:
    """Collapse CRLF terminators into LF."""
    return text.replace("\r\n", "\n")


def reassemble(chunk: str, remainder: str) -> tuple[list[str], str]:
    """Split ``remainder + chunk`` into complete lines and a new remainder.

    The trailing fragment is held back until a terminator arrives for it.
    """
    normalized = normalize_newlines(remainder + chunk)
    parts = normalized.split("\n")

    if not normalized.endswith("\n"):
        return parts[:-1], parts[-1]

    # Text ended exactly on a terminator: split leaves one empty tail segment.
    parts.pop()
    return parts, ""
