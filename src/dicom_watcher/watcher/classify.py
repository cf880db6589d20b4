from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, NamedTuple


UNKNOWN_ID = "unknown"
DEFAULT_EXTENSIONS: tuple[str, ...] = (".dcm", ".dcm.gz")


class FileIds(NamedTuple):
    tenant_id: str
    study_id: str
    series_id: str
    file_id: str


def _segments(path: str | os.PathLike[str]) -> list[str]:
    normalized = os.fspath(path).replace("\\", "/")
    return [part for part in normalized.split("/") if part]


def classify_path(path: str | os.PathLike[str]) -> FileIds:
    """Map ``.../<tenant>/<study>/<series>/<file>`` onto its grouping ids.

    Paths with fewer than four segments are filed under the ``unknown`` group
    rather than rejected.
    """
    parts = _segments(path)
    if len(parts) < 4:
        base = parts[-1] if parts else os.path.basename(os.fspath(path))
        return FileIds(UNKNOWN_ID, UNKNOWN_ID, UNKNOWN_ID, base)

    tenant_id, study_id, series_id, file_id = parts[-4:]
    return FileIds(tenant_id, study_id, series_id, file_id)


def normalize_extensions(extensions: Iterable[str]) -> tuple[str, ...]:
    out: list[str] = []
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = "." + ext
        out.append(ext)
    return tuple(out)


def is_eligible(path: str | Path, extensions: tuple[str, ...] = DEFAULT_EXTENSIONS) -> bool:
    name = os.path.basename(os.fspath(path)).lower()
    return any(name.endswith(ext) for ext in extensions)
