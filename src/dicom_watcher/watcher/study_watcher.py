from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor
import logging
from pathlib import Path
import threading
from typing import Any

from dicom_watcher.models import Study, StudyKey
from dicom_watcher.notify import NotificationSink

from .classify import DEFAULT_EXTENSIONS, classify_path, is_eligible
from .debounce import DebounceManager
from .hierarchy import Hierarchy
from .metadata_cache import MetadataCache
from .scanner import ScanResult, Scanner
from .scheduler import ScheduledCall, Scheduler, ThreadingScheduler


logger = logging.getLogger(__name__)


def _notify_pool() -> ThreadPoolExecutor:
    return ThreadPoolExecutor(max_workers=4, thread_name_prefix="notify")


class StudyWatcher:
    """Polls a directory tree and reports each study once it stops growing.

    The metadata cache, the study tree and the per-study timers are all
    guarded by ``_lock``. Accepting a file (cache check, tree upsert, timer
    reset) and expiring a timer (claim, mark ready, drop timer) each happen
    entirely inside that lock; notifications are submitted after it is
    released.
    """

    def __init__(
        self,
        source_dir: Path,
        notifier: NotificationSink,
        timeout_seconds: float,
        poll_interval_seconds: float,
        batch_size: int = 100,
        include_extensions: tuple[str, ...] = DEFAULT_EXTENSIONS,
        workers: int | None = None,
        scheduler: Scheduler | None = None,
        notify_executor: Executor | None = None,
    ) -> None:
        self.source_dir = Path(source_dir)
        self.notifier = notifier
        self.poll_interval_seconds = poll_interval_seconds
        self.include_extensions = include_extensions
        self._owns_scheduler = scheduler is None
        self.scheduler: Scheduler = scheduler or ThreadingScheduler()

        self._lock = threading.Lock()
        self._cache = MetadataCache()
        self._hierarchy = Hierarchy()
        self._debounce = DebounceManager(self.scheduler, timeout_seconds, self._on_timer_expired)
        self._scanner = Scanner(
            accept=self.observe,
            include_extensions=include_extensions,
            batch_size=batch_size,
            workers=workers,
        )

        self._owns_executor = notify_executor is None
        self._executor = notify_executor or _notify_pool()
        self._executor_closed = False
        self._pending_notifications: list[Future[Any]] = []
        self._scan_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("StudyWatcher is already running")
        if self._executor_closed:
            self._executor = _notify_pool()
            self._executor_closed = False
        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run_forever, name="study-watcher", daemon=True)
        self._thread.start()

    def stop(self, wait_for_notifications: bool = True) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None

        with self._lock:
            dropped = self._debounce.cancel_all()
        if dropped:
            logger.info("dropped %s pending study timers on shutdown", dropped)
        if self._owns_scheduler and isinstance(self.scheduler, ThreadingScheduler):
            self.scheduler.close()

        if self._owns_executor:
            self._executor.shutdown(wait=wait_for_notifications)
            self._executor_closed = True

    def run_forever(self, external_stop_event: threading.Event | None = None) -> None:
        logger.info("watching directory: %s", self.source_dir)
        while not self._stop_event.is_set():
            if self._stop_event.wait(self.poll_interval_seconds):
                break
            if external_stop_event is not None and external_stop_event.is_set():
                break
            self.poll_once()

    def poll_once(self) -> ScanResult:
        logger.info("checking directory %s", self.source_dir)
        with self._scan_lock:
            result = self._scanner.scan_once(self.source_dir)
        for err in result.errors:
            logger.error("error: %s: %s", err.path, err.message)
        if result.files_processed:
            logger.info("accepted %s new or changed files", result.files_processed)
        return result

    # -- file acceptance ---------------------------------------------------

    def observe(self, path: str, mtime: float) -> bool:
        """Fold one observed file into the tree; returns False if unchanged or ineligible."""
        if not is_eligible(path, self.include_extensions):
            return False

        ids = classify_path(path)
        with self._lock:
            if not self._cache.should_process(path, mtime):
                return False
            self._cache.record(path, mtime)

            now = self.scheduler.now()
            upsert = self._hierarchy.upsert(ids, file_path=path, last_modified=mtime, now=now)
            study = upsert.study
            if upsert.study_created:
                logger.info("new study tenant: %s - study: %s", study.tenant_id, study.id)

            if study.ready:
                logger.debug(
                    "file %s arrived for already-ready study %s/%s; not reopening",
                    ids.file_id,
                    study.tenant_id,
                    study.id,
                )
            else:
                self._debounce.touch(study.key)
        return True

    # -- stabilization -----------------------------------------------------

    def _on_timer_expired(self, key: StudyKey, handle: ScheduledCall) -> None:
        with self._lock:
            if not self._debounce.claim(key, handle):
                return
            study = self._hierarchy.get_study(key)
            if study is None or not study.mark_ready(self.scheduler.now()):
                return
            logger.info("tenant: %s - study: %s stabilized", key.tenant_id, key.study_id)

        self._dispatch_notification(key)

    def _dispatch_notification(self, key: StudyKey) -> None:
        try:
            future = self._executor.submit(self._notify, key)
        except RuntimeError:
            logger.warning(
                "notification executor is shut down; dropping notification for %s/%s",
                key.tenant_id,
                key.study_id,
            )
            return
        with self._lock:
            self._pending_notifications = [f for f in self._pending_notifications if not f.done()]
            self._pending_notifications.append(future)

    def _notify(self, key: StudyKey) -> bool:
        try:
            return bool(self.notifier.notify_study_ready(key.tenant_id, key.study_id))
        except Exception:
            logger.exception("notification for tenant: %s - study: %s raised", key.tenant_id, key.study_id)
            return False

    def wait_for_notifications(self, timeout: float | None = None) -> None:
        with self._lock:
            pending = list(self._pending_notifications)
        for future in pending:
            future.result(timeout=timeout)

    # -- introspection -----------------------------------------------------

    def get_study(self, tenant_id: str, study_id: str) -> Study | None:
        with self._lock:
            return self._hierarchy.get_study(StudyKey(tenant_id, study_id))

    def has_timer(self, tenant_id: str, study_id: str) -> bool:
        with self._lock:
            return StudyKey(tenant_id, study_id) in self._debounce

    def timer_deadline(self, tenant_id: str, study_id: str) -> float | None:
        with self._lock:
            return self._debounce.deadline(StudyKey(tenant_id, study_id))

    def pending_studies(self) -> list[StudyKey]:
        with self._lock:
            return self._debounce.pending_keys()

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            payload = self._hierarchy.to_json_dict()
            payload["pending"] = [
                {"tenant": key.tenant_id, "study": key.study_id, "deadline": self._debounce.deadline(key)}
                for key in self._debounce.pending_keys()
            ]
            payload["cached_paths"] = len(self._cache)
        return payload
