from __future__ import annotations

from dicom_watcher.watcher.metadata_cache import MetadataCache


def test_unseen_path_is_processed() -> None:
    cache = MetadataCache()
    assert cache.should_process("/a/b.dcm", 10.0)
    assert len(cache) == 0


def test_only_strictly_newer_mtime_is_processed() -> None:
    cache = MetadataCache()
    cache.record("/a/b.dcm", 10.0)

    assert not cache.should_process("/a/b.dcm", 10.0)
    assert not cache.should_process("/a/b.dcm", 9.0)
    assert cache.should_process("/a/b.dcm", 10.5)

    cache.record("/a/b.dcm", 10.5)
    assert not cache.should_process("/a/b.dcm", 10.5)
    assert len(cache) == 1
