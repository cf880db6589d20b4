from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
import queue
import threading
from typing import Callable

from .classify import DEFAULT_EXTENSIONS, is_eligible


logger = logging.getLogger(__name__)

_STOP = object()


@dataclass(frozen=True)
class ScanError:
    path: str
    message: str


@dataclass
class ScanResult:
    files_seen: int = 0
    files_processed: int = 0
    errors: list[ScanError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def default_worker_count() -> int:
    return max(1, (os.cpu_count() or 1) * 2)


class Scanner:
    """One full-tree walk per call, fanned out to a fixed worker pool.

    The walk feeds a bounded queue so a slow pool blocks the producer instead
    of buffering the whole tree. ``accept(path, mtime)`` decides whether the
    file is new or changed and returns True when it was taken.
    """

    def __init__(
        self,
        accept: Callable[[str, float], bool],
        include_extensions: tuple[str, ...] = DEFAULT_EXTENSIONS,
        batch_size: int = 100,
        workers: int | None = None,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        self.accept = accept
        self.include_extensions = include_extensions
        self.batch_size = batch_size
        self.workers = workers if workers and workers > 0 else default_worker_count()

    def scan_once(self, root: Path | str) -> ScanResult:
        root_str = os.fspath(root)
        work: queue.Queue[object] = queue.Queue(maxsize=self.batch_size)
        result = ScanResult()
        result_lock = threading.Lock()

        def _record_error(path: str, exc: BaseException) -> None:
            logger.warning("scan error at %s: %s", path, exc)
            with result_lock:
                result.errors.append(ScanError(path=path, message=str(exc)))

        def _worker() -> None:
            while True:
                item = work.get()
                if item is _STOP:
                    return
                path = str(item)
                try:
                    mtime = os.stat(path).st_mtime
                except OSError as exc:
                    _record_error(path, exc)
                    continue
                try:
                    taken = self.accept(path, mtime)
                except Exception as exc:
                    logger.exception("failed to process %s", path)
                    _record_error(path, exc)
                    continue
                if taken:
                    with result_lock:
                        result.files_processed += 1

        threads = [
            threading.Thread(target=_worker, name=f"scan-worker-{idx + 1}", daemon=True)
            for idx in range(self.workers)
        ]
        for thread in threads:
            thread.start()

        try:
            if not os.path.isdir(root_str):
                _record_error(root_str, FileNotFoundError(f"scan root is not a directory: {root_str}"))
            else:
                for dirpath, _dirnames, filenames in os.walk(
                    root_str, onerror=lambda exc: _record_error(exc.filename or root_str, exc)
                ):
                    for name in filenames:
                        if not is_eligible(name, self.include_extensions):
                            continue
                        result.files_seen += 1
                        work.put(os.path.join(dirpath, name))
        finally:
            for _ in threads:
                work.put(_STOP)
            for thread in threads:
                thread.join()

        logger.debug(
            "scan of %s: seen=%s processed=%s errors=%s",
            root_str,
            result.files_seen,
            result.files_processed,
            len(result.errors),
        )
        return result
