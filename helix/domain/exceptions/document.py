"""Document-related domain exceptions."""

from .base import DomainException, NotFoundException


class DocumentNotFoundException(NotFoundException):
    """Raised when a document cannot be found."""

    def __init__(self, document_id: str):
        super().__init__(
            message=f"Document not found: {document_id}",
            code="DOCUMENT_NOT_FOUND",
        )
        self.document_id = document_id


class UnsupportedDocumentKindException(DomainException):
    """Raised when a document kind has no normalizer."""

    def __init__(self, kind: str):
        super().__init__(
            message=f"Unsupported document kind: {kind}",
            code="UNSUPPORTED_DOCUMENT_KIND",
        )
        self.kind = kind


class ExtractionFailureException(DomainException):
    """
    Raised when the extraction boundary cannot produce usable fields.

    Retryable failures (timeouts, upstream 5xx) may succeed on a later
    attempt; non-retryable ones (unreadable source, unparseable values)
    never will.
    """

    def __init__(
        self,
        document_id: str | None,
        reason: str,
        retryable: bool = False,
    ):
        super().__init__(
            message=f"Extraction failed for document {document_id}: {reason}",
            code="EXTRACTION_FAILED",
        )
        self.document_id = document_id
        self.reason = reason
        self.retryable = retryable
