"""Time-bounded application of content transforms."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from ..models import CompiledTransform
from .compiler import apply_content_transform, coerce_result

logger = logging.getLogger(__name__)

DEFAULT_RUNNER_WORKERS = 2


class TransformRunner:
    """Apply transforms, optionally with a per-call time limit.

    With ``timeout=None`` calls run inline. Otherwise each call runs on a small
    thread pool; a call that exceeds the limit yields the original line. The
    late call keeps running in its worker thread (threads cannot be interrupted),
    so a snippet that never returns permanently occupies one worker.
    """

    def __init__(self, timeout: float | None = None, *, max_workers: int = DEFAULT_RUNNER_WORKERS) -> None:
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be > 0")
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.timeout = timeout
        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None

    def apply(self, line: str, compiled: CompiledTransform) -> str:
        fn = compiled.fn
        if fn is None or self.timeout is None:
            return apply_content_transform(line, compiled)

        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="content-transform"
            )
        future = self._executor.submit(fn, line)
        try:
            result = future.result(timeout=self.timeout)
        except FutureTimeoutError:
            logger.warning("Content transform exceeded %.3fs; showing original line", self.timeout)
            return line
        except Exception:
            return line
        return coerce_result(result, line)

    def close(self) -> None:
        executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)
