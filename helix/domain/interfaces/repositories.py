"""Repository interfaces for data persistence."""

from abc import ABC, abstractmethod
from typing import List, Optional

from helix.domain.entities import (
    DocumentMetrics,
    FinancialDocument,
    RiskAlert,
    RiskProfile,
    RiskProfileHistoryEntry,
)


class DocumentRepository(ABC):
    """
    Abstract repository for financial documents and their metrics.

    Implementations may use PostgreSQL, in-memory storage, etc.
    """

    @abstractmethod
    async def add(self, document: FinancialDocument) -> FinancialDocument:
        """
        Register a new document.

        Args:
            document: The document to store

        Returns:
            The stored document
        """
        ...

    @abstractmethod
    async def get_by_id(self, document_id: str) -> Optional[FinancialDocument]:
        """
        Retrieve a document by ID.

        Args:
            document_id: The document's unique identifier

        Returns:
            The document if found, None otherwise
        """
        ...

    @abstractmethod
    async def set_normalized_metrics(
        self,
        document_id: str,
        metrics: Optional[DocumentMetrics],
        failure_reason: Optional[str] = None,
    ) -> FinancialDocument:
        """
        Write the result of a normalization run.

        Passing metrics marks the document ``ok`` and replaces any earlier
        metrics; passing None with a failure reason marks it ``failed``.
        Only the named document is touched.

        Args:
            document_id: The document's unique identifier
            metrics: Normalized metrics, or None on failure
            failure_reason: Why normalization failed

        Returns:
            The updated document

        Raises:
            DocumentNotFoundException: If the document doesn't exist
            PersistenceException: If the write fails
        """
        ...

    @abstractmethod
    async def list_by_subject(self, subject_id: str) -> List[FinancialDocument]:
        """
        Retrieve every document a subject has submitted.

        Returns:
            Documents ordered by created_at descending
        """
        ...

    @abstractmethod
    async def list_unnormalized(self, subject_id: str) -> List[FinancialDocument]:
        """
        Retrieve a subject's documents that have not been normalized yet.

        Returns:
            Documents still in ``pending`` status
        """
        ...


class ProfileRepository(ABC):
    """
    Abstract repository for append-only risk profile snapshots.

    Writes are upserts keyed by id so a retried write never duplicates
    a snapshot.
    """

    @abstractmethod
    async def append_profile(self, profile: RiskProfile) -> RiskProfile:
        """Persist a new profile snapshot."""
        ...

    @abstractmethod
    async def append_history(
        self,
        entry: RiskProfileHistoryEntry,
    ) -> RiskProfileHistoryEntry:
        """Persist the history row for a snapshot."""
        ...

    @abstractmethod
    async def get_latest(self, subject_id: str) -> Optional[RiskProfile]:
        """
        Retrieve a subject's most recent profile.

        Args:
            subject_id: The subject's identifier

        Returns:
            The newest profile if one exists, None otherwise
        """
        ...

    @abstractmethod
    async def get_prior(
        self,
        subject_id: str,
        excluding_id: str,
    ) -> Optional[RiskProfile]:
        """
        Retrieve the profile immediately preceding a given one.

        Args:
            subject_id: The subject's identifier
            excluding_id: The profile whose predecessor is wanted

        Returns:
            The newest profile created before ``excluding_id``, None if
            there is none
        """
        ...

    @abstractmethod
    async def list_history(
        self,
        subject_id: str,
        limit: int = 50,
    ) -> List[RiskProfileHistoryEntry]:
        """
        Retrieve a subject's score history.

        Returns:
            History entries ordered by created_at descending
        """
        ...


class AlertRepository(ABC):
    """Abstract repository for monitoring alerts."""

    @abstractmethod
    async def append_alert(self, alert: RiskAlert) -> RiskAlert:
        """Persist an alert. Idempotent by alert id."""
        ...

    @abstractmethod
    async def list_unresolved(self, subject_id: str) -> List[RiskAlert]:
        """
        Retrieve a subject's unresolved alerts.

        Returns:
            Alerts ordered by created_at descending
        """
        ...
