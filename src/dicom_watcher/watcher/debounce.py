from __future__ import annotations

import logging
from typing import Callable

from dicom_watcher.models import StudyKey

from .scheduler import ScheduledCall, Scheduler


logger = logging.getLogger(__name__)


class DebounceManager:
    """One rearm-able timer per open study.

    ``touch`` creates or pushes back the deadline for a key. When a timer
    expires, ``on_expire(key, handle)`` is called on the scheduler's thread;
    the receiver must ``claim`` the handle under the shared lock before acting,
    which discards fires that lost a race against a later ``touch``.

    Not thread-safe on its own; callers hold the watcher lock.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        timeout_seconds: float,
        on_expire: Callable[[StudyKey, ScheduledCall], None],
    ) -> None:
        self.scheduler = scheduler
        self.timeout_seconds = float(timeout_seconds)
        self.on_expire = on_expire
        self._timers: dict[StudyKey, ScheduledCall] = {}

    def touch(self, key: StudyKey) -> bool:
        """Start or reset the timer for ``key``; returns True when newly created."""
        prev = self._timers.get(key)
        if prev is not None:
            prev.cancel()

        def _fire(call: ScheduledCall) -> None:
            self.on_expire(key, call)

        handle = self.scheduler.call_later(self.timeout_seconds, _fire)
        self._timers[key] = handle
        return prev is None

    def claim(self, key: StudyKey, handle: ScheduledCall) -> bool:
        current = self._timers.get(key)
        if current is not handle:
            logger.debug("ignoring superseded timer fire for %s/%s", key.tenant_id, key.study_id)
            return False
        del self._timers[key]
        return True

    def cancel_all(self) -> int:
        count = len(self._timers)
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        return count

    def deadline(self, key: StudyKey) -> float | None:
        handle = self._timers.get(key)
        return None if handle is None else handle.deadline

    def pending_keys(self) -> list[StudyKey]:
        return sorted(self._timers)

    def __contains__(self, key: object) -> bool:
        return key in self._timers
