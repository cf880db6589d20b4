from .classify import DEFAULT_EXTENSIONS, UNKNOWN_ID, FileIds, classify_path, is_eligible
from .debounce import DebounceManager
from .hierarchy import Hierarchy
from .metadata_cache import MetadataCache
from .scanner import ScanError, ScanResult, Scanner
from .scheduler import ManualScheduler, ScheduledCall, Scheduler, ThreadingScheduler
from .study_watcher import StudyWatcher

__all__ = [
    "DEFAULT_EXTENSIONS",
    "UNKNOWN_ID",
    "FileIds",
    "classify_path",
    "is_eligible",
    "DebounceManager",
    "Hierarchy",
    "MetadataCache",
    "ScanError",
    "ScanResult",
    "Scanner",
    "ManualScheduler",
    "ScheduledCall",
    "Scheduler",
    "ThreadingScheduler",
    "StudyWatcher",
]
