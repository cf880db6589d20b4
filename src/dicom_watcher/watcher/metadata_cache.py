from __future__ import annotations


class MetadataCache:
    """Last-seen modification time per path.

    Not thread-safe on its own; callers hold the watcher lock.
    """

    def __init__(self) -> None:
        self._mtimes: dict[str, float] = {}

    def should_process(self, path: str, mtime: float) -> bool:
        prev = self._mtimes.get(path)
        return prev is None or mtime > prev

    def record(self, path: str, mtime: float) -> None:
        self._mtimes[path] = mtime

    def __len__(self) -> int:
        return len(self._mtimes)
