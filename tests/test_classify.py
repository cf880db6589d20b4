from __future__ import annotations

from pathlib import Path

from dicom_watcher.watcher.classify import (
    UNKNOWN_ID,
    FileIds,
    classify_path,
    is_eligible,
    normalize_extensions,
)


def test_classify_uses_last_four_segments() -> None:
    ids = classify_path("/data/incoming/tenantA/study1/series1/img1.dcm")
    assert ids == FileIds("tenantA", "study1", "series1", "img1.dcm")


def test_classify_accepts_path_objects_and_backslashes() -> None:
    assert classify_path(Path("tenantA/study1/series1/img1.dcm")).study_id == "study1"
    ids = classify_path("C:\\drop\\tenantB\\study9\\s2\\x.dcm.gz")
    assert ids == FileIds("tenantB", "study9", "s2", "x.dcm.gz")


def test_classify_ignores_empty_segments() -> None:
    ids = classify_path("//tenantA//study1/series1//img1.dcm")
    assert ids == FileIds("tenantA", "study1", "series1", "img1.dcm")


def test_classify_shallow_path_falls_back_to_unknown() -> None:
    ids = classify_path("study1/img1.dcm")
    assert ids == FileIds(UNKNOWN_ID, UNKNOWN_ID, UNKNOWN_ID, "img1.dcm")

    assert classify_path("img1.dcm").file_id == "img1.dcm"
    assert classify_path("").study_id == UNKNOWN_ID


def test_is_eligible_matches_dicom_and_compressed_variant() -> None:
    assert is_eligible("a/b/c/img.dcm")
    assert is_eligible("a/b/c/img.DCM")
    assert is_eligible("a/b/c/img.dcm.gz")
    assert not is_eligible("a/b/c/notes.txt")
    assert not is_eligible("a/b/c/img.gz")
    assert not is_eligible("a/b/c/img.dcm.bak")


def test_normalize_extensions_adds_dot_and_lowercases() -> None:
    assert normalize_extensions(["DCM", ".Dcm.GZ", " ", ""]) == (".dcm", ".dcm.gz")
