"""External API client implementations."""

from .extraction_client import HttpExtractionClient

__all__ = [
    "HttpExtractionClient",
]
