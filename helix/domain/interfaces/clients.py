"""External client interfaces."""

from abc import ABC, abstractmethod
from typing import Any, Dict

from helix.domain.entities import FinancialDocument


class ExtractionClient(ABC):
    """
    Abstract client for the document extraction boundary.

    The boundary runs OCR and field extraction upstream; the core only
    ever receives the resulting field dictionary.
    """

    @abstractmethod
    async def extract(self, document: FinancialDocument) -> Dict[str, Any]:
        """
        Fetch the extracted fields for a document.

        Args:
            document: The document whose fields are wanted

        Returns:
            Field dictionary keyed by field name

        Raises:
            ExtractionFailureException: If no fields could be produced.
                ``retryable`` is True for transient upstream failures.
        """
        ...
