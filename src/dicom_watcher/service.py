from __future__ import annotations

import logging
import signal
import threading
from typing import Any

from dicom_watcher.config import WatchConfig
from dicom_watcher.notify import HttpNotifier, NotificationSink
from dicom_watcher.watcher import ManualScheduler, ScanResult, StudyWatcher


logger = logging.getLogger(__name__)


def build_watcher(config: WatchConfig, notifier: NotificationSink | None = None, **kwargs: Any) -> StudyWatcher:
    if notifier is None:
        notifier = HttpNotifier(
            api_url=config.api_url,
            model=config.model,
            timeout_seconds=config.notify_timeout,
        )
    return StudyWatcher(
        source_dir=config.directory_path,
        notifier=notifier,
        timeout_seconds=config.timeout,
        poll_interval_seconds=config.poll_interval,
        batch_size=config.batch_size,
        include_extensions=config.extensions,
        workers=config.workers or None,
        **kwargs,
    )


def _install_signal_handlers(shutdown_event: threading.Event) -> None:
    if threading.current_thread() is not threading.main_thread():
        return

    def _handler(signum: int, _frame: object) -> None:
        logger.info("received signal %s, shutting down", signum)
        shutdown_event.set()

    signal.signal(signal.SIGTERM, _handler)
    signal.signal(signal.SIGINT, _handler)


def run_watch_service(
    config: WatchConfig,
    shutdown_event: threading.Event | None = None,
    notifier: NotificationSink | None = None,
) -> None:
    stop = shutdown_event or threading.Event()
    _install_signal_handlers(stop)

    logger.info("initializing the watcher for %s", config.directory_path)
    watcher = build_watcher(config, notifier=notifier)

    logger.info(
        "starting the watcher: timeout=%ss poll_interval=%ss batch_size=%s",
        config.timeout,
        config.poll_interval,
        config.batch_size,
    )
    watcher.start()
    try:
        while not stop.wait(timeout=1.0):
            pass
    except KeyboardInterrupt:
        logger.info("interrupt received, shutting down")
    finally:
        watcher.stop()
        logger.info("watcher stopped")


def scan_once(config: WatchConfig) -> tuple[ScanResult, dict[str, Any]]:
    """Run a single poll cycle without arming real timers or notifying."""

    class _NullNotifier:
        def notify_study_ready(self, tenant_id: str, study_id: str) -> bool:
            return False

    watcher = build_watcher(config, notifier=_NullNotifier(), scheduler=ManualScheduler())
    try:
        result = watcher.poll_once()
        return result, watcher.snapshot()
    finally:
        watcher.stop()
