"""
Integration tests for the HTTP extraction client.

Uses httpx.MockTransport in place of the extraction service to verify
request shape and failure classification.
"""

import httpx
import pytest

from helix.domain.entities import DocumentKind, FinancialDocument
from helix.domain.exceptions import ExtractionFailureException
from helix.infrastructure.clients import HttpExtractionClient


@pytest.fixture
def document() -> FinancialDocument:
    return FinancialDocument(subject_id="subject-1", kind=DocumentKind.PAY_STUB, id="doc-1")


def client_for(handler) -> HttpExtractionClient:
    """Build a client whose requests are answered by ``handler``."""
    return HttpExtractionClient(
        base_url="http://extraction.test/",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


class TestHttpExtractionClient:
    """Tests for HttpExtractionClient."""

    @pytest.mark.asyncio
    async def test_returns_fields(self, document: FinancialDocument):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"fields": {"gross_pay": 4000}})

        fields = await client_for(handler).extract(document)

        assert fields == {"gross_pay": 4000}
        assert requests[0].url.path == "/documents/doc-1/fields"
        assert requests[0].url.params["kind"] == "pay_stub"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 404, 422])
    async def test_client_errors_are_permanent(
        self,
        document: FinancialDocument,
        status_code: int,
    ):
        client = client_for(lambda request: httpx.Response(status_code))

        with pytest.raises(ExtractionFailureException) as exc_info:
            await client.extract(document)

        assert exc_info.value.retryable is False
        assert str(status_code) in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_server_errors_are_retryable(self, document: FinancialDocument):
        client = client_for(lambda request: httpx.Response(503))

        with pytest.raises(ExtractionFailureException) as exc_info:
            await client.extract(document)

        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_timeouts_are_retryable(self, document: FinancialDocument):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ExtractionFailureException) as exc_info:
            await client_for(handler).extract(document)

        assert exc_info.value.retryable is True
        assert exc_info.value.reason == "extraction timed out"

    @pytest.mark.asyncio
    async def test_connection_errors_are_retryable(self, document: FinancialDocument):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExtractionFailureException) as exc_info:
            await client_for(handler).extract(document)

        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_non_json_body_is_permanent(self, document: FinancialDocument):
        client = client_for(lambda request: httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(ExtractionFailureException) as exc_info:
            await client.extract(document)

        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_missing_fields_key_is_permanent(self, document: FinancialDocument):
        client = client_for(lambda request: httpx.Response(200, json={"status": "done"}))

        with pytest.raises(ExtractionFailureException) as exc_info:
            await client.extract(document)

        assert exc_info.value.retryable is False
        assert exc_info.value.document_id == "doc-1"
