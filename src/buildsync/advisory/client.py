"""Advisory and session-summary service boundary.

The marketplace only consumes these services. :class:`AdvisoryService` is
the interface the project commands depend on; :class:`HttpAdvisoryClient`
is the httpx-backed implementation used by the CLI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from buildsync.marketplace.models import GroundingSource

logger = logging.getLogger(__name__)

# Status codes that mean the key/session is no longer valid.
_AUTH_FAILURE_STATUSES = frozenset({401, 403, 404})


class ServiceUnavailable(Exception):
    """Raised on transport or authentication failures.

    ``auth_failure`` is True when the caller should prompt the user to
    re-authenticate instead of simply retrying.
    """

    def __init__(self, message: str, *, auth_failure: bool = False) -> None:
        super().__init__(message)
        self.auth_failure = auth_failure


@dataclass(frozen=True)
class AdviceResponse:
    text: str
    images: list[str] = field(default_factory=list)
    sources: list[GroundingSource] = field(default_factory=list)


class AdvisoryService(Protocol):
    def get_advice(
        self,
        prompt: str,
        context_summary: str | None = None,
        image: str | None = None,
    ) -> AdviceResponse: ...

    def summarize(self, transcript: str) -> str: ...


class HttpAdvisoryClient:
    """httpx client for a remote advisory service."""

    def __init__(
        self,
        server_url: str,
        api_key: str | None,
        *,
        timeout: float = 30.0,
    ) -> None:
        self.server_url = server_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._http_client: httpx.Client | None = None

    def _get_http_client(self) -> httpx.Client:
        if self._http_client is None:
            self._http_client = httpx.Client(timeout=self.timeout)
        return self._http_client

    def close(self) -> None:
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        if not self.api_key or not self.api_key.strip():
            raise ServiceUnavailable("No advisory API key configured", auth_failure=True)

        client = self._get_http_client()
        url = f"{self.server_url}{path}"
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            response = client.post(url, json=payload, headers=headers)
        except httpx.RequestError as exc:
            raise ServiceUnavailable(f"Cannot reach advisory service: {exc}") from exc

        if response.status_code in _AUTH_FAILURE_STATUSES:
            raise ServiceUnavailable(
                f"Advisory service rejected credentials ({response.status_code})",
                auth_failure=True,
            )
        if not response.is_success:
            raise ServiceUnavailable(f"Advisory service error: {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise ServiceUnavailable("Invalid advisory service response") from exc
        if not isinstance(data, dict):
            raise ServiceUnavailable("Invalid advisory service response")
        return data

    def get_advice(
        self,
        prompt: str,
        context_summary: str | None = None,
        image: str | None = None,
    ) -> AdviceResponse:
        payload: dict[str, Any] = {"prompt": prompt}
        if context_summary:
            payload["context"] = context_summary
        if image:
            payload["image"] = image

        data = self._post("/v1/advice", payload)
        try:
            return AdviceResponse(
                text=str(data["text"]),
                images=[str(i) for i in data.get("images") or []],
                sources=[GroundingSource.from_dict(s) for s in data.get("sources") or []],
            )
        except (KeyError, TypeError) as exc:
            raise ServiceUnavailable("Invalid advisory service response") from exc

    def summarize(self, transcript: str) -> str:
        data = self._post("/v1/summaries", {"transcript": transcript})
        text = data.get("text")
        if not isinstance(text, str):
            raise ServiceUnavailable("Invalid summary response")
        return text
