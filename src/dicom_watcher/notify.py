from __future__ import annotations

import logging
from typing import Protocol

import requests


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "medclip"


class NotificationError(RuntimeError):
    pass


class NotificationSink(Protocol):
    def notify_study_ready(self, tenant_id: str, study_id: str) -> bool:
        ...


class HttpNotifier:
    """POSTs ``{"tenant", "study", "model"}`` as JSON to the configured URL.

    Failures are logged and reported through the return value; nothing is
    retried here.
    """

    def __init__(
        self,
        api_url: str,
        model: str = DEFAULT_MODEL,
        timeout_seconds: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not api_url:
            raise NotificationError("api_url is required")
        self.api_url = api_url
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._session = session

    def payload(self, tenant_id: str, study_id: str) -> dict[str, str]:
        return {"tenant": tenant_id, "study": study_id, "model": self.model}

    def notify_study_ready(self, tenant_id: str, study_id: str) -> bool:
        post = self._session.post if self._session is not None else requests.post
        try:
            resp = post(
                self.api_url,
                json=self.payload(tenant_id, study_id),
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.RequestException as exc:
            logger.error("notification for tenant: %s - study: %s failed: %s", tenant_id, study_id, exc)
            return False

        if not 200 <= resp.status_code < 300:
            logger.error(
                "notification for tenant: %s - study: %s rejected with status code: %s",
                tenant_id,
                study_id,
                resp.status_code,
            )
            return False

        logger.info("notification for tenant: %s - study: %s sent", tenant_id, study_id)
        return True
