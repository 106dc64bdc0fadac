"""
Async HTTP client for the RACEN answer API.

Wraps the four endpoints the bridge consumes:

- POST /answer                     grounded answer with citations
- POST /ingest/url                 enqueue an ingestion job
- GET  /ingest/status/{job_id}     poll an ingestion job
- POST /admin/sync/iphone-specs    synchronous catalog sync

Every failure is raised as a `BackendError` subclass so call sites can turn
it into user-facing text.

Usage:
    async with AnswerAPIClient("http://127.0.0.1:8011") as client:
        result = await client.answer(AnswerRequest(question="warranty?"))
"""

from __future__ import annotations

from typing import Any, TypeVar
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from answer_bridge.backend.errors import (
    BackendError,
    BackendUnavailableError,
    InvalidResponseError,
    NotAuthorizedError,
)
from answer_bridge.backend.models import (
    AnswerRequest,
    AnswerResult,
    IngestJob,
    IngestStatus,
    SpecsSyncResult,
)

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class AnswerAPIClient:
    """Client for the answer API backed by a shared `httpx.AsyncClient`."""

    def __init__(
        self,
        base_url: str,
        admin_token: str = "",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Answer API base URL; a trailing slash is ignored
            admin_token: Shared admin token forwarded on admin calls
            timeout: Per-request timeout in seconds
            transport: Optional transport override (tests use MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self._admin_token = admin_token
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"content-type": "application/json"},
            transport=transport,
        )
        self._logger = logger.bind(base_url=self.base_url)

    async def __aenter__(self) -> AnswerAPIClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _with_token(self, payload: dict[str, Any]) -> dict[str, Any]:
        if self._admin_token:
            payload["token"] = self._admin_token
        return payload

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise BackendUnavailableError(f"Timed out calling {path}") from e
        except httpx.HTTPError as e:
            raise BackendUnavailableError(f"Request to {path} failed: {e}") from e

    @staticmethod
    def _parse(response: httpx.Response, model: type[ModelT]) -> ModelT:
        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponseError(
                "Response body is not JSON", status_code=response.status_code
            ) from e
        if not isinstance(data, dict):
            raise InvalidResponseError(
                "Response body is not a JSON object", status_code=response.status_code
            )
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise InvalidResponseError(
                f"Unexpected response shape: {e.error_count()} errors",
                status_code=response.status_code,
            ) from e

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        """Extract `detail` or `reason` from an error body, if any."""
        try:
            data = response.json()
        except ValueError:
            return ""
        if not isinstance(data, dict):
            return ""
        detail = data.get("detail") or data.get("reason") or ""
        return detail if isinstance(detail, str) else str(detail)

    async def answer(self, request: AnswerRequest) -> AnswerResult:
        """
        Ask the answer API a question.

        Args:
            request: Question, allowlist and thread context

        Returns:
            Parsed answer with citations and settings ribbon

        Raises:
            BackendError: Non-2xx status, transport failure or bad body
        """
        response = await self._request("POST", "/answer", json=request.model_dump())
        if not response.is_success:
            self._logger.warning("Answer API returned error", status_code=response.status_code)
            raise BackendError(f"HTTP {response.status_code}", status_code=response.status_code)
        return self._parse(response, AnswerResult)

    async def ingest_url(self, url: str, requested_by: str) -> IngestJob:
        """
        Enqueue ingestion of a single URL.

        Raises:
            NotAuthorizedError: The requester or token is not allowed (403)
            BackendError: Any other failure
        """
        payload = self._with_token({"url": url, "requested_by": requested_by})
        response = await self._request("POST", "/ingest/url", json=payload)
        if response.status_code == 403:
            raise NotAuthorizedError(
                "Not authorized to ingest URLs",
                status_code=403,
                detail=self._error_detail(response),
            )
        if not response.is_success:
            raise BackendError(f"HTTP {response.status_code}", status_code=response.status_code)
        return self._parse(response, IngestJob)

    async def ingest_status(self, job_id: str) -> IngestStatus:
        """Fetch the current status of an ingestion job."""
        response = await self._request("GET", f"/ingest/status/{quote(job_id, safe='')}")
        if not response.is_success:
            raise BackendError(f"status {response.status_code}", status_code=response.status_code)
        return self._parse(response, IngestStatus)

    async def sync_iphone_specs(self) -> SpecsSyncResult:
        """
        Trigger the iPhone specs sheet sync.

        Raises:
            BackendError: Non-2xx status; `detail` carries the body's
                `detail` or `reason` when present
        """
        response = await self._request("POST", "/admin/sync/iphone-specs", json=self._with_token({}))
        if not response.is_success:
            raise BackendError(
                f"HTTP {response.status_code}",
                status_code=response.status_code,
                detail=self._error_detail(response),
            )
        return self._parse(response, SpecsSyncResult)
