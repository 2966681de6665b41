"""HTTP implementation of ExtractionClient."""

from typing import Any, Dict

import httpx
import structlog

from helix.core.config import settings
from helix.core.metrics import track_stage_latency
from helix.domain.entities import FinancialDocument
from helix.domain.exceptions import ExtractionFailureException
from helix.domain.interfaces import ExtractionClient

logger = structlog.get_logger(__name__)

# Statuses that will not change on retry: unknown document, unreadable source
_PERMANENT_STATUSES = {404, 422}


class HttpExtractionClient(ExtractionClient):
    """
    HTTP client for the extraction service.

    Calls ``GET {base_url}/documents/{id}/fields`` and expects a JSON body
    of the form ``{"fields": {...}}``. Failures are classified as
    retryable or permanent; retrying is left to the caller.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = (base_url or settings.extraction_api_url).rstrip("/")
        self._timeout = timeout or settings.extraction_timeout
        self._transport = transport

    async def extract(self, document: FinancialDocument) -> Dict[str, Any]:
        """Fetch the extracted fields for a document."""
        url = f"{self._base_url}/documents/{document.id}/fields"

        try:
            with track_stage_latency("extraction"):
                async with httpx.AsyncClient(
                    timeout=self._timeout,
                    transport=self._transport,
                ) as client:
                    response = await client.get(url, params={"kind": document.kind.value})
        except httpx.TimeoutException:
            logger.warning("extraction_timeout", document_id=document.id)
            raise ExtractionFailureException(document.id, "extraction timed out", retryable=True)
        except httpx.TransportError as exc:
            logger.warning("extraction_transport_error", document_id=document.id, error=str(exc))
            raise ExtractionFailureException(
                document.id, f"transport error: {exc}", retryable=True
            ) from exc

        if response.status_code in _PERMANENT_STATUSES:
            raise ExtractionFailureException(
                document.id,
                f"extraction service returned {response.status_code}",
                retryable=False,
            )

        if response.status_code >= 400:
            logger.warning(
                "extraction_api_error",
                document_id=document.id,
                status_code=response.status_code,
            )
            raise ExtractionFailureException(
                document.id,
                f"extraction service returned {response.status_code}",
                retryable=response.status_code >= 500,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ExtractionFailureException(document.id, "response is not JSON") from exc

        fields = data.get("fields") if isinstance(data, dict) else None
        if not isinstance(fields, dict):
            raise ExtractionFailureException(document.id, "response has no fields")
        return fields
