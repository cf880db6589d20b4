from __future__ import annotations

import json
import os
from pathlib import Path

from dicom_watcher import cli, notify


def _write_config(tmp_path: Path) -> Path:
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        """
directory_path: ./incoming
api_url: http://api.local/ready
timeout: 5
poll_interval: 1
batch_size: 10
""",
        encoding="utf-8",
    )
    return cfg


def _write(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"DICM")
    os.utime(path, (1.0, 1.0))


def test_scan_json_reports_tree(tmp_path: Path, capsys, monkeypatch) -> None:
    cfg = _write_config(tmp_path)
    _write(tmp_path / "incoming" / "tenantA" / "study1" / "series1" / "img1.dcm")
    _write(tmp_path / "incoming" / "tenantA" / "study1" / "series1" / "img2.dcm")
    _write(tmp_path / "incoming" / "tenantA" / "study1" / "series1" / "notes.txt")

    def fail_post(*args, **kwargs):
        raise AssertionError("scan must not notify")

    monkeypatch.setattr(notify.requests, "post", fail_post)

    assert cli.main(["scan", "--config", str(cfg), "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["files_seen"] == 2
    assert payload["files_processed"] == 2
    assert payload["errors"] == []
    studies = payload["tenants"]["tenantA"]
    assert [s["id"] for s in studies] == ["study1"]
    assert studies[0]["file_count"] == 2
    assert studies[0]["state"] == "open"


def test_notify_command_reports_failure(tmp_path: Path, capsys, monkeypatch) -> None:
    cfg = _write_config(tmp_path)

    class _Resp:
        status_code = 500

    monkeypatch.setattr(notify.requests, "post", lambda *a, **k: _Resp())

    assert cli.main(["notify", "tenantA", "study1", "--config", str(cfg)]) == 1
    assert "failed" in capsys.readouterr().err


def test_missing_config_key_exits_nonzero(tmp_path: Path, capsys) -> None:
    cfg = tmp_path / "config.yaml"
    cfg.write_text("api_url: http://api.local/ready\n", encoding="utf-8")

    assert cli.main(["scan", "--config", str(cfg)]) == 1
    assert "directory_path" in capsys.readouterr().err
