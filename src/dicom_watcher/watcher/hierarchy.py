from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from dicom_watcher.models import DicomFile, Study, StudyKey, Tenant

from .classify import FileIds


@dataclass(frozen=True)
class UpsertResult:
    study: Study
    study_created: bool
    file_created: bool


class Hierarchy:
    """Tenant -> Study -> Series -> File tree.

    Every level is create-if-absent; re-inserting a file id overwrites the
    record in place. Callers serialize access through the watcher lock.
    """

    def __init__(self) -> None:
        self._tenants: dict[str, Tenant] = {}

    def upsert(self, ids: FileIds, file_path: str, last_modified: float, now: float) -> UpsertResult:
        tenant = self._tenants.get(ids.tenant_id)
        if tenant is None:
            tenant = Tenant(id=ids.tenant_id)
            self._tenants[ids.tenant_id] = tenant

        study, study_created = tenant.get_study(ids.study_id, now)
        series = study.get_series(ids.series_id)
        file_created = series.upsert(
            DicomFile(id=ids.file_id, file_path=file_path, last_modified=last_modified)
        )
        study.last_activity_at = now
        return UpsertResult(study=study, study_created=study_created, file_created=file_created)

    def get_study(self, key: StudyKey) -> Study | None:
        tenant = self._tenants.get(key.tenant_id)
        if tenant is None:
            return None
        return tenant.studies.get(key.study_id)

    def studies(self) -> Iterator[Study]:
        for tenant_id in sorted(self._tenants):
            tenant = self._tenants[tenant_id]
            for study_id in sorted(tenant.studies):
                yield tenant.studies[study_id]

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "tenants": {
                tenant_id: [s.to_json_dict() for s in self.studies() if s.tenant_id == tenant_id]
                for tenant_id in sorted(self._tenants)
            }
        }
