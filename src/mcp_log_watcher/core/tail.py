"""Bounded tail reading for the initial view of a log file.

Two passes: count the terminators of the whole file in bounded blocks, then
decode only the last ``TAIL_READ_SIZE`` bytes. The count gives absolute line
numbers for the tail without holding the file in memory.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any

from .lines import normalize_newlines
from .models import LogLine

TAIL_READ_SIZE = 64 * 1024
COUNT_BLOCK_SIZE = 1024 * 1024
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "replace"


async def file_size(handle: Any) -> int:
    """Return the size of the file behind an open aiofiles handle."""
    st = await asyncio.to_thread(os.fstat, handle.fileno())
    return st.st_size


async def read_at(handle: Any, position: int, length: int) -> bytes:
    """Read up to ``length`` bytes starting at ``position``."""
    await handle.seek(position)
    return await handle.read(length)


async def count_total_lines(handle: Any, size: int | None = None) -> int:
    """Count lines in the first ``size`` bytes; unterminated trailing content counts as one."""
    if size is None:
        size = await file_size(handle)
    if size == 0:
        return 0

    block = min(size, COUNT_BLOCK_SIZE)
    total = 0
    position = 0
    while position < size:
        data = await read_at(handle, position, min(block, size - position))
        if not data:
            break
        total += data.count(b"\n")
        position += len(data)

    last = await read_at(handle, size - 1, 1)
    if last and last not in (b"\n", b"\r"):
        total += 1
    return total


async def read_tail(
    handle: Any,
    max_lines: int,
    *,
    size: int | None = None,
    encoding: str = TEXT_ENCODING,
    decode_errors: str = TEXT_ERRORS,
) -> list[LogLine]:
    """Return the last ``max_lines`` lines with absolute line numbers.

    ``size`` pins the end of the read; by default the current file size is used.
    """
    if max_lines <= 0:
        return []

    if size is None:
        size = await file_size(handle)
    if size == 0:
        return []

    total = await count_total_lines(handle, size)
    if total == 0:
        return []

    length = min(size, TAIL_READ_SIZE)
    position = size - length
    data = await read_at(handle, position, length)
    text = normalize_newlines(data.decode(encoding, errors=decode_errors))
    lines = text.split("\n")

    # The first fragment is a partial line when the window starts mid-file.
    if position > 0 and lines:
        lines.pop(0)
    if text.endswith("\n") and lines:
        lines.pop()

    tail = lines[-max_lines:]
    start = max(1, total - len(tail) + 1)
    return [LogLine(text=line, line_number=start + i) for i, line in enumerate(tail)]
