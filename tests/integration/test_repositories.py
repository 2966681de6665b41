"""
Integration tests for the SQL repositories.

These tests verify:
1. Documents round-trip with their metrics and transactions
2. Profiles are append-only and idempotent by id
3. Latest, prior and history queries are ordered by creation time
4. Alerts upsert by id
"""

from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest

from helix.domain.entities import (
    AlertSeverity,
    AlertType,
    DocumentKind,
    DocumentMetrics,
    DocumentStatus,
    FeatureVector,
    FinancialDocument,
    RiskAlert,
    RiskProfile,
    RiskProfileHistoryEntry,
    Transaction,
)
from helix.domain.exceptions import DocumentNotFoundException
from helix.infrastructure.database import RiskProfileModel
from helix.infrastructure.repositories import (
    SqlAlertRepository,
    SqlDocumentRepository,
    SqlProfileRepository,
)
from helix.service.scoring import RiskScorer
from tests.integration.conftest import count_rows


BASE_TIME = datetime(2024, 3, 1, 12, 0, 0)


def make_profile(subject_id: str, monthly_income: float, minutes: int = 0) -> RiskProfile:
    """Score a small feature vector into a profile created at a fixed time."""
    features = FeatureVector(monthly_income=monthly_income, payment_timeliness=80.0)
    profile = RiskProfile.from_assessment(subject_id, RiskScorer().score(features), features)
    return replace(profile, created_at=BASE_TIME + timedelta(minutes=minutes))


@pytest.fixture
def sql_profile_repository(db) -> SqlProfileRepository:
    return SqlProfileRepository(db)


# =============================================================================
# Document Repository Tests
# =============================================================================

class TestDocumentRepository:
    """Tests for SqlDocumentRepository."""

    @pytest.mark.asyncio
    async def test_metrics_round_trip(self, document_repository: SqlDocumentRepository):
        document = FinancialDocument(subject_id="subject-1", kind=DocumentKind.BANK_STATEMENT)
        await document_repository.add(document)

        metrics = DocumentMetrics(
            average_monthly_balance=1250.5,
            overdraft_frequency=2,
            payment_timeliness=75.0,
            transactions=(
                Transaction(date=date(2024, 1, 1), description="Payroll", amount=3000.0),
                Transaction(date=date(2024, 1, 3), description="Rent", amount=-1200.0),
            ),
        )
        updated = await document_repository.set_normalized_metrics(document.id, metrics)
        stored = await document_repository.get_by_id(document.id)

        assert updated.status == DocumentStatus.OK
        assert stored.status == DocumentStatus.OK
        assert stored.metrics == metrics
        assert stored.metrics.transactions[1].date == date(2024, 1, 3)
        assert stored.normalized_at is not None
        assert stored.failure_reason is None

    @pytest.mark.asyncio
    async def test_failure_clears_metrics(self, document_repository: SqlDocumentRepository):
        document = FinancialDocument(subject_id="subject-1", kind=DocumentKind.PAY_STUB)
        await document_repository.add(document)
        await document_repository.set_normalized_metrics(
            document.id, DocumentMetrics(monthly_income=4000.0)
        )

        failed = await document_repository.set_normalized_metrics(
            document.id, None, failure_reason="unreadable scan"
        )

        assert failed.status == DocumentStatus.FAILED
        assert failed.metrics is None
        assert failed.failure_reason == "unreadable scan"

    @pytest.mark.asyncio
    async def test_unknown_document(self, document_repository: SqlDocumentRepository):
        assert await document_repository.get_by_id("missing") is None

        with pytest.raises(DocumentNotFoundException):
            await document_repository.set_normalized_metrics("missing", DocumentMetrics())

    @pytest.mark.asyncio
    async def test_list_unnormalized_only_returns_pending(
        self,
        document_repository: SqlDocumentRepository,
    ):
        pending = FinancialDocument(subject_id="subject-1", kind=DocumentKind.BILL)
        done = FinancialDocument(subject_id="subject-1", kind=DocumentKind.PAY_STUB)
        other = FinancialDocument(subject_id="subject-2", kind=DocumentKind.BILL)
        for document in (pending, done, other):
            await document_repository.add(document)
        await document_repository.set_normalized_metrics(
            done.id, DocumentMetrics(monthly_income=100.0)
        )

        unnormalized = await document_repository.list_unnormalized("subject-1")
        all_documents = await document_repository.list_by_subject("subject-1")

        assert [d.id for d in unnormalized] == [pending.id]
        assert {d.id for d in all_documents} == {pending.id, done.id}


# =============================================================================
# Profile Repository Tests
# =============================================================================

class TestProfileRepository:
    """Tests for SqlProfileRepository."""

    @pytest.mark.asyncio
    async def test_profile_round_trip(self, sql_profile_repository: SqlProfileRepository):
        profile = make_profile("subject-1", 4000.0)

        await sql_profile_repository.append_profile(profile)
        stored = await sql_profile_repository.get_latest("subject-1")

        assert stored.id == profile.id
        assert stored.helix_score == profile.helix_score
        assert stored.category == profile.category
        assert stored.grade == profile.grade
        assert dict(stored.dimension_scores) == dict(profile.dimension_scores)
        assert stored.flags == profile.flags
        assert stored.explanation == profile.explanation
        assert stored.features == profile.features
        assert stored.created_at == profile.created_at

    @pytest.mark.asyncio
    async def test_append_profile_is_idempotent(
        self,
        sql_profile_repository: SqlProfileRepository,
        db,
    ):
        profile = make_profile("subject-1", 4000.0)

        await sql_profile_repository.append_profile(profile)
        await sql_profile_repository.append_profile(profile)

        assert await count_rows(db, RiskProfileModel) == 1

    @pytest.mark.asyncio
    async def test_latest_and_prior(self, sql_profile_repository: SqlProfileRepository):
        first = make_profile("subject-1", 3000.0, minutes=0)
        second = make_profile("subject-1", 3500.0, minutes=5)
        third = make_profile("subject-1", 4000.0, minutes=10)
        for profile in (second, third, first):
            await sql_profile_repository.append_profile(profile)

        latest = await sql_profile_repository.get_latest("subject-1")
        prior = await sql_profile_repository.get_prior("subject-1", third.id)
        oldest_prior = await sql_profile_repository.get_prior("subject-1", first.id)

        assert latest.id == third.id
        assert prior.id == second.id
        assert oldest_prior is None

    @pytest.mark.asyncio
    async def test_latest_for_unknown_subject(self, sql_profile_repository: SqlProfileRepository):
        assert await sql_profile_repository.get_latest("nobody") is None

    @pytest.mark.asyncio
    async def test_history_is_newest_first_and_limited(
        self,
        sql_profile_repository: SqlProfileRepository,
    ):
        for minutes in (0, 10, 5):
            profile = make_profile("subject-1", 3000.0 + minutes, minutes=minutes)
            entry = RiskProfileHistoryEntry.for_profile(profile, f"history-{minutes}")
            await sql_profile_repository.append_history(entry)

        history = await sql_profile_repository.list_history("subject-1")
        limited = await sql_profile_repository.list_history("subject-1", limit=2)

        assert [entry.id for entry in history] == ["history-10", "history-5", "history-0"]
        assert [entry.id for entry in limited] == ["history-10", "history-5"]

    @pytest.mark.asyncio
    async def test_history_upserts_by_id(self, sql_profile_repository: SqlProfileRepository):
        profile = make_profile("subject-1", 3000.0)
        entry = RiskProfileHistoryEntry.for_profile(profile, "history-1")

        await sql_profile_repository.append_history(entry)
        await sql_profile_repository.append_history(entry)

        assert len(await sql_profile_repository.list_history("subject-1")) == 1


# =============================================================================
# Alert Repository Tests
# =============================================================================

class TestAlertRepository:
    """Tests for SqlAlertRepository."""

    @pytest.mark.asyncio
    async def test_alerts_upsert_by_id(self, alert_repository: SqlAlertRepository):
        alert = RiskAlert(
            subject_id="subject-1",
            profile_id="profile-1",
            alert_type=AlertType.PAYMENT_ISSUES,
            severity=AlertSeverity.CRITICAL,
            message="Payment timeliness critical",
            current_score=72.5,
            id="alert-1",
        )

        await alert_repository.append_alert(alert)
        await alert_repository.append_alert(alert)
        alerts = await alert_repository.list_unresolved("subject-1")

        assert len(alerts) == 1
        assert alerts[0].alert_type == AlertType.PAYMENT_ISSUES
        assert alerts[0].severity == AlertSeverity.CRITICAL
        assert alerts[0].previous_score is None

    @pytest.mark.asyncio
    async def test_resolved_alerts_are_not_listed(self, alert_repository: SqlAlertRepository):
        alert = RiskAlert(
            subject_id="subject-1",
            profile_id="profile-1",
            alert_type=AlertType.SCORE_INCREASE,
            severity=AlertSeverity.HIGH,
            message="Score increased",
            current_score=80.0,
            previous_score=60.0,
            delta=20.0,
            resolved=True,
        )

        await alert_repository.append_alert(alert)

        assert await alert_repository.list_unresolved("subject-1") == []
