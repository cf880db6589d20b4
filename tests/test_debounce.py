from __future__ import annotations

from dicom_watcher.models import StudyKey
from dicom_watcher.watcher.debounce import DebounceManager
from dicom_watcher.watcher.scheduler import ManualScheduler, ScheduledCall


KEY = StudyKey("tenantA", "study1")


def _manager(timeout: float = 10.0) -> tuple[ManualScheduler, DebounceManager, list[StudyKey]]:
    sched = ManualScheduler()
    expired: list[StudyKey] = []
    manager: DebounceManager

    def on_expire(key: StudyKey, handle: ScheduledCall) -> None:
        if manager.claim(key, handle):
            expired.append(key)

    manager = DebounceManager(sched, timeout, on_expire)
    return sched, manager, expired


def test_touch_creates_then_resets() -> None:
    sched, manager, expired = _manager()

    assert manager.touch(KEY) is True
    assert manager.deadline(KEY) == 10.0

    sched.advance(6.0)
    assert manager.touch(KEY) is False
    assert manager.deadline(KEY) == 16.0

    sched.advance(9.0)
    assert expired == []

    sched.advance(1.0)
    assert expired == [KEY]
    assert KEY not in manager
    assert manager.pending_keys() == []


def test_superseded_handle_cannot_be_claimed() -> None:
    sched, manager, expired = _manager()
    manager.touch(KEY)
    stale = manager._timers[KEY]
    manager.touch(KEY)

    assert manager.claim(KEY, stale) is False
    assert KEY in manager


def test_cancel_all_drops_pending_timers() -> None:
    sched, manager, expired = _manager()
    manager.touch(KEY)
    manager.touch(StudyKey("tenantA", "study2"))

    assert manager.pending_keys() == [StudyKey("tenantA", "study1"), StudyKey("tenantA", "study2")]
    assert manager.cancel_all() == 2
    sched.advance(100.0)
    assert expired == []
    assert manager.pending_keys() == []
