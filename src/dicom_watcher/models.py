from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, NamedTuple


class StudyState(str, enum.Enum):
    OPEN = "open"
    READY = "ready"


class StudyKey(NamedTuple):
    tenant_id: str
    study_id: str


@dataclass
class DicomFile:
    id: str
    file_path: str
    last_modified: float


@dataclass
class Series:
    id: str
    dicom_files: dict[str, DicomFile] = field(default_factory=dict)

    def upsert(self, record: DicomFile) -> bool:
        """Insert or overwrite a file record; returns True when the id was new."""
        created = record.id not in self.dicom_files
        self.dicom_files[record.id] = record
        return created

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "files": {
                file_id: {"path": rec.file_path, "last_modified": rec.last_modified}
                for file_id, rec in sorted(self.dicom_files.items())
            },
        }


@dataclass
class Study:
    id: str
    tenant_id: str
    series: dict[str, Series] = field(default_factory=dict)
    ready: bool = False
    created_at: float = 0.0
    last_activity_at: float = 0.0
    ready_at: float | None = None

    @property
    def key(self) -> StudyKey:
        return StudyKey(self.tenant_id, self.id)

    @property
    def state(self) -> StudyState:
        return StudyState.READY if self.ready else StudyState.OPEN

    @property
    def file_count(self) -> int:
        return sum(len(s.dicom_files) for s in self.series.values())

    def get_series(self, series_id: str) -> Series:
        series = self.series.get(series_id)
        if series is None:
            series = Series(id=series_id)
            self.series[series_id] = series
        return series

    def mark_ready(self, now: float) -> bool:
        if self.ready:
            return False
        self.ready = True
        self.ready_at = now
        return True

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tenant": self.tenant_id,
            "state": self.state.value,
            "file_count": self.file_count,
            "created_at": self.created_at,
            "last_activity_at": self.last_activity_at,
            "ready_at": self.ready_at,
            "series": [s.to_json_dict() for _, s in sorted(self.series.items())],
        }


@dataclass
class Tenant:
    id: str
    studies: dict[str, Study] = field(default_factory=dict)

    def get_study(self, study_id: str, now: float) -> tuple[Study, bool]:
        study = self.studies.get(study_id)
        if study is not None:
            return study, False
        study = Study(id=study_id, tenant_id=self.id, created_at=now, last_activity_at=now)
        self.studies[study_id] = study
        return study, True
