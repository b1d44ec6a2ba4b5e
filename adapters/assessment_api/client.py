"""
HTTP adapter for the remote patient assessment API.

Implements both collaborator protocols used by the core: page requests for the
fetch engine and the one-shot submission sink. Built on `httpx.AsyncClient` so
tests can swap in `httpx.MockTransport`.
"""

from types import TracebackType
from typing import Any

import httpx
import structlog

from core.config import AssessmentAPIConfig
from core.domain.errors import SubmissionError
from core.services.patient_fetcher import PageResponse

logger = structlog.get_logger(__name__)

PATIENTS_PATH = "/patients"
SUBMIT_PATH = "/submit-assessment"


class AssessmentAPIClient:
    """Async client for `GET /patients` and `POST /submit-assessment`."""

    def __init__(
        self,
        config: AssessmentAPIConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.logger = logger.bind(component="assessment_api_client", base_url=config.base_url)
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers={config.api_key_header: config.api_key},
            timeout=config.request_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "AssessmentAPIClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request_page(self, page: int, limit: int) -> PageResponse:
        """
        Request one page of patients.

        Network errors and undecodable 2xx bodies raise; the fetch engine
        treats both as retryable failures.
        """
        response = await self._client.get(PATIENTS_PATH, params={"page": page, "limit": limit})
        self.logger.debug("page_response", page=page, status_code=response.status_code)

        if not response.is_success:
            return PageResponse(status_code=response.status_code)
        return PageResponse(status_code=response.status_code, body=response.json())

    async def submit(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST the classification payload once and return the acknowledgement."""
        try:
            response = await self._client.post(SUBMIT_PATH, json=payload)
        except httpx.HTTPError as e:
            raise SubmissionError(f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise SubmissionError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            acknowledgement = response.json()
        except ValueError as e:
            raise SubmissionError(
                "acknowledgement is not valid JSON", status_code=response.status_code
            ) from e

        if not isinstance(acknowledgement, dict):
            acknowledgement = {"response": acknowledgement}

        self.logger.info("assessment_submitted", status_code=response.status_code)
        return acknowledgement
