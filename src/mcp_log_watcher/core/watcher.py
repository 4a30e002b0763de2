"""File tail watcher.

Follows one file: emits a reset with the current tail when watching starts,
then appends as the file grows. Rotation (rename-class notifications) and
truncation (size below the tracked offset) restart numbering with a new reset.

Filesystem notifications arrive on the watchdog observer thread. They are
handed to the event loop and processed one at a time, in arrival order, by a
single worker task per watcher.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

import aiofiles
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .channel import UpdateChannel
from .lines import reassemble
from .models import AppendUpdate, LogLine, LogUpdate, ResetUpdate
from .tail import TEXT_ENCODING, TEXT_ERRORS, count_total_lines, file_size, read_at, read_tail

LOGGER = logging.getLogger(__name__)

TAIL_READ_COUNT = 50
OBSERVER_JOIN_TIMEOUT = 5.0


class ChangeKind(str, Enum):
    """Filesystem notification classes."""

    CHANGE = "change"  # content modified in place
    RENAME = "rename"  # replaced, rotated, deleted or recreated


class WatcherStatus(str, Enum):
    IDLE = "idle"
    WATCHING = "watching"
    READING = "reading"
    REOPENING = "reopening"
    DISPOSED = "disposed"


def _norm(p: str | bytes) -> str:
    return os.path.normcase(os.path.abspath(os.fsdecode(p)))


class _PathEventHandler(FileSystemEventHandler):
    """Translate watchdog events on one path into change notifications."""

    def __init__(self, path: Path, notify: Callable[[ChangeKind], None]) -> None:
        super().__init__()
        self._target = _norm(str(path))
        self._notify = notify

    def _matches(self, p: str | bytes) -> bool:
        return _norm(p) == self._target

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self._notify(ChangeKind.CHANGE)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self._notify(ChangeKind.RENAME)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self._notify(ChangeKind.RENAME)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if self._matches(event.src_path) or self._matches(event.dest_path):
            self._notify(ChangeKind.RENAME)


class LogWatcher:
    """Incrementally follow a single log file.

    Consumers subscribe to :attr:`updates` and receive ``ResetUpdate`` /
    ``AppendUpdate`` values strictly in order. ``observer_factory=None``
    disables OS notifications; :meth:`notify` can then be called directly.
    """

    def __init__(
        self,
        *,
        tail_lines: int = TAIL_READ_COUNT,
        observer_factory: Callable[[], Any] | None = Observer,
        encoding: str = TEXT_ENCODING,
        decode_errors: str = TEXT_ERRORS,
    ) -> None:
        if tail_lines < 0:
            raise ValueError("tail_lines must be >= 0")
        self.updates: UpdateChannel[LogUpdate] = UpdateChannel()
        self.last_error: str | None = None

        self._tail_lines = tail_lines
        self._observer_factory = observer_factory
        self._encoding = encoding
        self._decode_errors = decode_errors

        self._path: Path | None = None
        self._handle: Any = None
        self._offset = 0
        self._remainder = ""
        self._decoder = self._new_decoder()
        self._line_number = 0

        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[ChangeKind] | None = None
        self._worker: asyncio.Task[None] | None = None
        self._observer: Any = None
        self._disposed = False
        self._status = WatcherStatus.IDLE

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def status(self) -> WatcherStatus:
        return self._status

    @property
    def disposed(self) -> bool:
        return self._disposed

    async def __aenter__(self) -> LogWatcher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.dispose()

    async def watch_file(self, path: str | Path) -> None:
        """Start following ``path``; raises ``OSError`` if it cannot be opened."""
        if self._disposed:
            raise RuntimeError("watcher is disposed")

        await self._reset()
        target = Path(path).expanduser().absolute()
        try:
            self._handle = await aiofiles.open(target, "rb")
            self._path = target
            await self._emit_initial_lines()
        except Exception:
            await self._reset()
            raise

        self.last_error = None
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._worker = asyncio.create_task(self._run_worker(), name=f"log-watcher:{target.name}")
        self._start_observer(target)
        self._status = WatcherStatus.WATCHING
        LOGGER.debug("Watching %s (offset=%s, line=%s)", target, self._offset, self._line_number)

    def notify(self, kind: ChangeKind) -> None:
        """Queue a filesystem notification. Safe to call from any thread."""
        loop = self._loop
        if self._disposed or loop is None or loop.is_closed():
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._enqueue(kind)
        else:
            loop.call_soon_threadsafe(self._enqueue, kind)

    async def drain(self) -> None:
        """Wait until every queued notification has been processed."""
        if self._queue is not None and not self._on_worker():
            await self._queue.join()

    async def dispose(self) -> None:
        """Stop watching and release resources after in-flight work finishes."""
        if self._disposed:
            return
        self._disposed = True
        await self._stop_observer()
        await self.drain()
        await self._stop_worker()
        await self._close_handle()
        self.updates.close()
        self._status = WatcherStatus.DISPOSED

    def _enqueue(self, kind: ChangeKind) -> None:
        if self._disposed or self._queue is None:
            return
        self._queue.put_nowait(kind)

    def _on_worker(self) -> bool:
        return self._worker is not None and asyncio.current_task() is self._worker

    async def _run_worker(self) -> None:
        queue = self._queue
        assert queue is not None
        while True:
            kind = await queue.get()
            taken = 1
            if kind == ChangeKind.RENAME:
                taken += self._collapse_renames(queue)
            try:
                if not self._disposed:
                    await self._process(kind)
            except Exception:
                LOGGER.exception("Failed to process %s notification for %s", kind.value, self._path)
            finally:
                if not self._disposed:
                    self._status = WatcherStatus.WATCHING
                for _ in range(taken):
                    queue.task_done()

    @staticmethod
    def _collapse_renames(queue: asyncio.Queue[ChangeKind]) -> int:
        """Consume notifications queued behind a rename; returns how many.

        They report changes already on disk, which the reopen (or read) for
        the rename picks up. A create-mode rotation reports a move and then a
        create; both collapse into one reopen.
        """
        taken = 0
        while True:
            try:
                queue.get_nowait()
            except asyncio.QueueEmpty:
                return taken
            taken += 1

    async def _process(self, kind: ChangeKind) -> None:
        if kind == ChangeKind.RENAME:
            if await self._handle_is_current():
                # The open handle already refers to the file at the path.
                await self._read_new_content()
                return
            await self._reopen()
            if self._handle is not None:
                await self._emit_initial_lines()
            return

        # Change notifications are ignored while no handle is open.
        if self._handle is not None:
            await self._read_new_content()

    async def _emit_initial_lines(self) -> None:
        handle = self._handle
        if handle is None:
            return
        size = await file_size(handle)
        lines = await read_tail(
            handle,
            self._tail_lines,
            size=size,
            encoding=self._encoding,
            decode_errors=self._decode_errors,
        )
        self._offset = size
        self._remainder = ""
        self._decoder = self._new_decoder()
        if lines:
            self._line_number = lines[-1].line_number
        else:
            self._line_number = await count_total_lines(handle, size) if size else 0
        self.updates.emit(ResetUpdate(lines=tuple(lines)))

    async def _read_new_content(self) -> None:
        handle = self._handle
        self._status = WatcherStatus.READING
        try:
            size = await file_size(handle)
        except OSError:
            LOGGER.exception("stat failed for %s", self._path)
            return

        if size < self._offset:
            LOGGER.info("Truncation detected for %s (%s < %s)", self._path, size, self._offset)
            self._offset = 0
            self._remainder = ""
            await self._emit_initial_lines()
            return

        length = size - self._offset
        if length <= 0:
            return

        data = await read_at(handle, self._offset, length)
        if not data:
            return

        self._offset += len(data)
        chunk = self._decoder.decode(data)
        lines, self._remainder = reassemble(chunk, self._remainder)
        if not lines:
            return

        numbered: list[LogLine] = []
        for text in lines:
            self._line_number += 1
            numbered.append(LogLine(text=text, line_number=self._line_number))
        self.updates.emit(AppendUpdate(lines=tuple(numbered)))

    async def _handle_is_current(self) -> bool:
        handle, path = self._handle, self._path
        if handle is None or path is None:
            return False
        try:
            opened = await asyncio.to_thread(os.fstat, handle.fileno())
            current = await asyncio.to_thread(os.stat, path)
        except OSError:
            return False
        return os.path.samestat(opened, current)

    async def _reopen(self) -> None:
        self._status = WatcherStatus.REOPENING
        await self._close_handle()
        self._offset = 0
        self._remainder = ""
        self._decoder = self._new_decoder()
        self._line_number = 0
        if self._path is None:
            return
        try:
            self._handle = await aiofiles.open(self._path, "rb")
        except OSError as exc:
            self.last_error = f"Failed to reopen {self._path}: {exc}"
            LOGGER.error(self.last_error)
            return
        self.last_error = None
        LOGGER.info("Reopened %s after rotation", self._path)

    async def _reset(self) -> None:
        await self._stop_observer()
        await self._stop_worker()
        await self._close_handle()
        self._path = None
        self._offset = 0
        self._remainder = ""
        self._decoder = self._new_decoder()
        self._line_number = 0
        self._status = WatcherStatus.IDLE

    def _start_observer(self, path: Path) -> None:
        if self._observer_factory is None:
            return
        observer = self._observer_factory()
        observer.schedule(_PathEventHandler(path, self.notify), str(path.parent), recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer

    async def _stop_observer(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        await asyncio.to_thread(observer.join, OBSERVER_JOIN_TIMEOUT)

    async def _stop_worker(self) -> None:
        worker, self._worker = self._worker, None
        self._queue = None
        if worker is None or worker is asyncio.current_task():
            return
        worker.cancel()
        await asyncio.gather(worker, return_exceptions=True)

    async def _close_handle(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            await handle.close()
        except OSError:
            LOGGER.debug("Ignoring close failure for %s", self._path, exc_info=True)

    def _new_decoder(self) -> codecs.IncrementalDecoder:
        return codecs.getincrementaldecoder(self._encoding)(errors=self._decode_errors)
