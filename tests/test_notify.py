from __future__ import annotations

from typing import Any

import pytest
import requests

from dicom_watcher import notify
from dicom_watcher.notify import HttpNotifier, NotificationError


class _FakeResponse:
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code


def test_notify_posts_json_payload(monkeypatch) -> None:
    seen: dict[str, Any] = {}

    def fake_post(url: str, json: dict[str, str], timeout: float) -> _FakeResponse:
        seen.update(url=url, json=json, timeout=timeout)
        return _FakeResponse(200)

    monkeypatch.setattr(notify.requests, "post", fake_post)

    notifier = HttpNotifier("http://api.local/ready", model="medclip", timeout_seconds=3.0)
    assert notifier.notify_study_ready("tenantA", "study1") is True
    assert seen == {
        "url": "http://api.local/ready",
        "json": {"tenant": "tenantA", "study": "study1", "model": "medclip"},
        "timeout": 3.0,
    }


def test_any_2xx_counts_as_success(monkeypatch) -> None:
    monkeypatch.setattr(notify.requests, "post", lambda *a, **k: _FakeResponse(204))
    assert HttpNotifier("http://api.local/ready").notify_study_ready("t", "s") is True


def test_non_2xx_is_logged_not_raised(monkeypatch, caplog) -> None:
    monkeypatch.setattr(notify.requests, "post", lambda *a, **k: _FakeResponse(503))

    assert HttpNotifier("http://api.local/ready").notify_study_ready("t", "s") is False
    assert "503" in caplog.text


def test_transport_error_is_logged_not_raised(monkeypatch, caplog) -> None:
    def boom(*args: Any, **kwargs: Any) -> None:
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(notify.requests, "post", boom)

    assert HttpNotifier("http://api.local/ready").notify_study_ready("t", "s") is False
    assert "refused" in caplog.text


def test_notifier_requires_url() -> None:
    with pytest.raises(NotificationError):
        HttpNotifier("")
