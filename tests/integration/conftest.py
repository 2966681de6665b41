"""
Fixtures for integration tests.

Provides:
- File-backed SQLite database behind a DatabaseSessionManager
- SQL repositories bound to that database
- Mock extraction client serving canned field dictionaries
- Profile repository wrapper that fails writes on demand
- Fully wired pipeline and monitoring services
"""

from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from helix.application.services import MonitoringService, RiskPipelineService
from helix.domain.entities import (
    DocumentKind,
    FinancialDocument,
    RiskProfile,
    RiskProfileHistoryEntry,
)
from helix.domain.exceptions import ExtractionFailureException, PersistenceException
from helix.domain.interfaces import ExtractionClient, ProfileRepository
from helix.infrastructure.database import DatabaseSessionManager
from helix.infrastructure.repositories import (
    SqlAlertRepository,
    SqlDocumentRepository,
    SqlProfileRepository,
)


# =============================================================================
# Test Data
# =============================================================================

def pay_stub_fields(gross_pay: float, employer: str = "Acme Corp") -> Dict[str, Any]:
    """Pay stub with an explicit monthly period."""
    return {
        "gross_pay": gross_pay,
        "pay_period_start": "2024-01-01",
        "pay_period_end": "2024-01-31",
        "employer": employer,
    }


def bank_statement_fields() -> Dict[str, Any]:
    """Statement with steady income and regular bill payments."""
    return {
        "transactions": [
            {"date": "2024-01-01", "amount": 4000, "description": "Payroll"},
            {"date": "2024-01-05", "amount": -120, "description": "Utility bill"},
            {"date": "2024-01-15", "amount": -300, "description": "Auto loan payment"},
            {"date": "2024-02-01", "amount": 4000, "description": "Payroll"},
            {"date": "2024-02-04", "amount": -120, "description": "Utility bill"},
            {"date": "2024-02-15", "amount": -300, "description": "Auto loan payment"},
        ]
    }


def erratic_bank_statement_fields() -> Dict[str, Any]:
    """Statement whose bill payments are badly irregular."""
    return {
        "transactions": [
            {"date": "2024-01-01", "amount": 1500, "description": "Payroll"},
            {"date": "2024-01-02", "amount": -80, "description": "Phone bill"},
            {"date": "2024-01-04", "amount": -90, "description": "Electric bill"},
            {"date": "2024-03-01", "amount": -85, "description": "Phone bill"},
        ]
    }


# =============================================================================
# Mock Clients
# =============================================================================

class MockExtractionClient(ExtractionClient):
    """Extraction client that serves canned fields per document id."""

    def __init__(self):
        self.fields: Dict[str, Any] = {}
        self.errors: Dict[str, ExtractionFailureException] = {}
        self.transient_failures: Dict[str, int] = {}
        self.calls: List[str] = []

    def register(self, document_id: str, fields: Any):
        self.fields[document_id] = fields

    def fail(self, document_id: str, reason: str = "source unreadable"):
        """Make extraction fail permanently for a document."""
        self.errors[document_id] = ExtractionFailureException(document_id, reason, retryable=False)

    def fail_transiently(self, document_id: str, times: int):
        """Make extraction time out ``times`` times before succeeding."""
        self.transient_failures[document_id] = times

    async def extract(self, document: FinancialDocument) -> Dict[str, Any]:
        self.calls.append(document.id)

        if document.id in self.errors:
            raise self.errors[document.id]

        remaining = self.transient_failures.get(document.id, 0)
        if remaining > 0:
            self.transient_failures[document.id] = remaining - 1
            raise ExtractionFailureException(document.id, "extraction timed out", retryable=True)

        return self.fields.get(document.id, {})


class FlakyProfileRepository(ProfileRepository):
    """Delegates to a real repository, failing history writes on demand."""

    def __init__(self, inner: ProfileRepository):
        self._inner = inner
        self.history_failures = 0
        self.history_attempts = 0

    async def append_profile(self, profile: RiskProfile) -> RiskProfile:
        return await self._inner.append_profile(profile)

    async def append_history(self, entry: RiskProfileHistoryEntry) -> RiskProfileHistoryEntry:
        self.history_attempts += 1
        if self.history_failures > 0:
            self.history_failures -= 1
            raise PersistenceException("append_history", "database is locked")
        return await self._inner.append_history(entry)

    async def get_latest(self, subject_id: str) -> Optional[RiskProfile]:
        return await self._inner.get_latest(subject_id)

    async def get_prior(self, subject_id: str, excluding_id: str) -> Optional[RiskProfile]:
        return await self._inner.get_prior(subject_id, excluding_id)

    async def list_history(self, subject_id: str, limit: int = 50) -> List[RiskProfileHistoryEntry]:
        return await self._inner.list_history(subject_id, limit=limit)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def db(tmp_path) -> AsyncGenerator[DatabaseSessionManager, None]:
    """Create a file-backed SQLite database for testing."""
    manager = DatabaseSessionManager()
    manager.init(f"sqlite+aiosqlite:///{tmp_path / 'helix.db'}")
    await manager.create_all()

    yield manager

    await manager.close()


async def count_rows(db: DatabaseSessionManager, model) -> int:
    """Count the rows of a table."""
    async with db.session() as session:
        return await session.scalar(select(func.count()).select_from(model))


# =============================================================================
# Repository and Client Fixtures
# =============================================================================

@pytest.fixture
def document_repository(db: DatabaseSessionManager) -> SqlDocumentRepository:
    return SqlDocumentRepository(db)


@pytest.fixture
def profile_repository(db: DatabaseSessionManager) -> FlakyProfileRepository:
    return FlakyProfileRepository(SqlProfileRepository(db))


@pytest.fixture
def alert_repository(db: DatabaseSessionManager) -> SqlAlertRepository:
    return SqlAlertRepository(db)


@pytest.fixture
def extraction_client() -> MockExtractionClient:
    return MockExtractionClient()


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def pipeline(
    document_repository: SqlDocumentRepository,
    profile_repository: FlakyProfileRepository,
    alert_repository: SqlAlertRepository,
    extraction_client: MockExtractionClient,
) -> RiskPipelineService:
    """Pipeline wired to the test database with no retry delay."""
    return RiskPipelineService(
        document_repository=document_repository,
        profile_repository=profile_repository,
        alert_repository=alert_repository,
        extraction_client=extraction_client,
        retry_base_delay=0,
    )


@pytest.fixture
def monitoring_service(
    profile_repository: FlakyProfileRepository,
    alert_repository: SqlAlertRepository,
) -> MonitoringService:
    return MonitoringService(
        profile_repository=profile_repository,
        alert_repository=alert_repository,
    )


@pytest.fixture
def submit(document_repository: SqlDocumentRepository, extraction_client: MockExtractionClient):
    """Store a pending document and register its extracted fields."""

    async def _submit(
        subject_id: str,
        kind: DocumentKind,
        fields: Any = None,
        document_id: Optional[str] = None,
    ) -> FinancialDocument:
        document = FinancialDocument(subject_id=subject_id, kind=kind)
        if document_id is not None:
            document.id = document_id
        await document_repository.add(document)
        extraction_client.register(document.id, fields if fields is not None else {})
        return document

    return _submit
