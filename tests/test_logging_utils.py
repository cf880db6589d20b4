from __future__ import annotations

import logging
from pathlib import Path

import pytest

from dicom_watcher.utils.logging_utils import configure_logging, resolve_level


def test_resolve_level_accepts_names_in_any_case() -> None:
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(" Warning ") == logging.WARNING


def test_resolve_level_rejects_unknown_names() -> None:
    with pytest.raises(ValueError, match="unknown log level"):
        resolve_level("loud")


def test_configure_logging_writes_file_and_quiets_http_loggers(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "watcher.log"
    root = logging.getLogger()
    saved = (root.level, list(root.handlers))

    try:
        configure_logging("debug", log_file)
        logging.getLogger("dicom_watcher.test").debug("study stabilized")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert logging.getLogger("urllib3").level == logging.WARNING
        assert "study stabilized" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in logging.getLogger().handlers:
            handler.close()
        root.handlers[:] = saved[1]
        root.setLevel(saved[0])
