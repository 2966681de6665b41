"""Pipeline service - orchestrates normalization, scoring and persistence."""

import asyncio
from typing import Awaitable, Callable, List, Optional, Set, Tuple, TypeVar
from uuid import NAMESPACE_URL, uuid5

import structlog

from helix.application.dto import BatchResult, DocumentPipelineResult, PipelineStage
from helix.core.metrics import (
    record_alert,
    record_normalization,
    record_pipeline_failure,
    record_profile,
    track_stage_latency,
)
from helix.core.retry import retry_async
from helix.domain.entities import (
    FinancialDocument,
    MonitoringResult,
    RiskAlert,
    RiskProfile,
    RiskProfileHistoryEntry,
)
from helix.domain.exceptions import (
    DocumentNotFoundException,
    DomainException,
    ExtractionFailureException,
    PersistenceException,
    PipelineException,
    ProfilePersistenceException,
    UnsupportedDocumentKindException,
)
from helix.domain.interfaces import (
    AlertRepository,
    DocumentRepository,
    ExtractionClient,
    ProfileRepository,
)
from helix.service.aggregation import FeatureAggregator
from helix.service.monitoring import RiskMonitor
from helix.service.normalization import DocumentNormalizer
from helix.service.scoring import RiskScorer

from .subject_locks import SubjectLockRegistry

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_ID_NAMESPACE = uuid5(NAMESPACE_URL, "helix-risk-core")


def history_id_for(profile_id: str) -> str:
    """Deterministic history row id for a profile."""
    return str(uuid5(_ID_NAMESPACE, f"{profile_id}:history"))


def alert_id_for(profile_id: str, alert_type: str) -> str:
    """Deterministic alert id; one alert of each type per profile."""
    return str(uuid5(_ID_NAMESPACE, f"{profile_id}:{alert_type}"))


class RiskPipelineService:
    """
    Application service for the document-to-profile pipeline.

    A document trigger moves through
    received -> normalizing -> (normalized | failed) -> aggregating ->
    scoring -> persisted. Normalization runs concurrently; aggregation,
    scoring and persistence for a subject run under that subject's lock.
    """

    def __init__(
        self,
        document_repository: DocumentRepository,
        profile_repository: ProfileRepository,
        alert_repository: AlertRepository,
        extraction_client: ExtractionClient,
        normalizer: Optional[DocumentNormalizer] = None,
        aggregator: Optional[FeatureAggregator] = None,
        scorer: Optional[RiskScorer] = None,
        monitor: Optional[RiskMonitor] = None,
        locks: Optional[SubjectLockRegistry] = None,
        extraction_max_retries: int = 3,
        persistence_max_retries: int = 3,
        retry_base_delay: float = 0.1,
    ):
        self._document_repo = document_repository
        self._profile_repo = profile_repository
        self._alert_repo = alert_repository
        self._extraction_client = extraction_client
        self._normalizer = normalizer or DocumentNormalizer()
        self._aggregator = aggregator or FeatureAggregator()
        self._scorer = scorer or RiskScorer()
        self._monitor = monitor or RiskMonitor()
        self._locks = locks or SubjectLockRegistry()
        self._extraction_max_retries = extraction_max_retries
        self._persistence_max_retries = persistence_max_retries
        self._retry_base_delay = retry_base_delay
        self._background: Set[asyncio.Task] = set()

    # =========================================================================
    # Normalization
    # =========================================================================

    async def normalize_document(self, document_id: str) -> FinancialDocument:
        """
        Extract and normalize one document, recording the outcome on it.

        Args:
            document_id: The document to normalize

        Returns:
            The updated document, ``ok`` with metrics or ``failed`` with a reason

        Raises:
            DocumentNotFoundException: If the document doesn't exist
            PersistenceException: If the outcome cannot be written
        """
        document = await self._store(
            "get_document",
            lambda: self._document_repo.get_by_id(document_id),
        )
        if document is None:
            raise DocumentNotFoundException(document_id)

        log = logger.bind(
            document_id=document.id,
            subject_id=document.subject_id,
            kind=document.kind.value,
        )
        log.info("normalization_started")

        try:
            with track_stage_latency("normalization"):
                fields = await retry_async(
                    lambda: self._extraction_client.extract(document),
                    name="extract_document",
                    retry_on=(ExtractionFailureException,),
                    max_attempts=self._extraction_max_retries,
                    base_delay=self._retry_base_delay,
                )
                try:
                    metrics = self._normalizer.normalize(document.kind, fields, document.id)
                except (ValueError, OverflowError) as exc:
                    raise ExtractionFailureException(
                        document.id, f"fields could not be normalized: {exc}"
                    ) from exc
        except (ExtractionFailureException, UnsupportedDocumentKindException) as exc:
            log.warning("normalization_failed", error=exc.message, code=exc.code)
            record_normalization(document.kind.value, succeeded=False)
            return await self._store(
                "set_normalized_metrics",
                lambda: self._document_repo.set_normalized_metrics(
                    document.id, None, failure_reason=exc.message
                ),
            )

        updated = await self._store(
            "set_normalized_metrics",
            lambda: self._document_repo.set_normalized_metrics(document.id, metrics),
        )
        record_normalization(document.kind.value, succeeded=True)
        log.info("normalization_completed")
        return updated

    # =========================================================================
    # Document triggers
    # =========================================================================

    async def process_document(self, document_id: str) -> DocumentPipelineResult:
        """
        Run the full pipeline for one document trigger.

        A successful normalization always re-aggregates the subject's whole
        document set and appends a new profile. Failures never raise; the
        returned result ends in FAILED or carries the exception that
        stopped it.

        Args:
            document_id: The document that arrived or changed

        Returns:
            DocumentPipelineResult with every stage transition
        """
        result = DocumentPipelineResult(document_id=document_id)
        log = logger.bind(document_id=document_id)
        log.info("pipeline_stage", stage=result.stage.value)

        self._advance(result, PipelineStage.NORMALIZING, log)
        try:
            document = await self.normalize_document(document_id)
        except DomainException as exc:
            log.error("pipeline_failed", stage="normalizing", error=exc.message)
            record_pipeline_failure("normalization")
            result.failure = exc
            self._advance(result, PipelineStage.FAILED, log)
            return result

        result.document = document
        result.subject_id = document.subject_id
        log = log.bind(subject_id=document.subject_id)

        if not document.is_normalized:
            result.failure = PipelineException(
                document.subject_id,
                document.failure_reason or "normalization failed",
                code="NORMALIZATION_FAILED",
            )
            self._advance(result, PipelineStage.FAILED, log)
            return result

        self._advance(result, PipelineStage.NORMALIZED, log)
        try:
            profile, monitoring = await self._recompute(document.subject_id, result, log)
        except DomainException as exc:
            log.error("pipeline_failed", stage=result.stage.value, error=exc.message)
            if not isinstance(exc, ProfilePersistenceException):
                record_pipeline_failure(result.stage.value)
            result.failure = exc
            return result

        result.profile = profile
        result.monitoring = monitoring
        return result

    async def process_pending(self, subject_id: str) -> BatchResult:
        """
        Process every document of a subject that is still pending.

        Documents run concurrently; each one's failure is recorded on its
        own result and does not affect the others.
        """
        pending = await self._store(
            "list_unnormalized",
            lambda: self._document_repo.list_unnormalized(subject_id),
        )
        logger.info("batch_started", subject_id=subject_id, pending=len(pending))

        results = await asyncio.gather(
            *(self.process_document(document.id) for document in pending)
        )
        batch = BatchResult(subject_id=subject_id, results=list(results))

        logger.info(
            "batch_completed",
            subject_id=subject_id,
            succeeded=len(batch.succeeded),
            failed=len(batch.failed),
        )
        return batch

    def submit_document(self, document_id: str) -> "asyncio.Task[DocumentPipelineResult]":
        """
        Schedule a document for background processing.

        Must be called from within a running event loop. The returned task
        resolves to the pipeline result; awaiting it is optional.
        """
        task = asyncio.create_task(self.process_document(document_id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        logger.info("document_submitted", document_id=document_id)
        return task

    # =========================================================================
    # Profiles
    # =========================================================================

    async def recompute_profile(self, subject_id: str) -> RiskProfile:
        """
        Aggregate, score and persist a fresh profile for a subject.

        Args:
            subject_id: The subject to rescore

        Returns:
            The newly appended RiskProfile

        Raises:
            ProfilePersistenceException: If the profile was computed but
                could not be persisted; pass it to resume_persistence
            PersistenceException: If the subject's documents cannot be read
        """
        log = logger.bind(subject_id=subject_id)
        profile, _ = await self._recompute(subject_id, None, log)
        return profile

    async def resume_persistence(self, exc: ProfilePersistenceException) -> RiskProfile:
        """
        Retry the writes of a run that failed to persist, without rescoring.

        Writes are upserts keyed by deterministic ids, so rows that were
        already written are left as they are.
        """
        profile = exc.profile
        log = logger.bind(subject_id=profile.subject_id, profile_id=profile.id)
        log.info("persistence_resumed", alerts=len(exc.alerts))

        async with self._locks.hold(profile.subject_id):
            await self._persist(profile, exc.history_entry, exc.alerts, log)
        return profile

    async def _recompute(
        self,
        subject_id: str,
        result: Optional[DocumentPipelineResult],
        log,
    ) -> Tuple[RiskProfile, MonitoringResult]:
        async with self._locks.hold(subject_id):
            documents = await self._store(
                "list_documents",
                lambda: self._document_repo.list_by_subject(subject_id),
            )

            self._advance(result, PipelineStage.AGGREGATING, log)
            with track_stage_latency("aggregation"):
                features = self._aggregator.aggregate(documents)

            self._advance(result, PipelineStage.SCORING, log)
            with track_stage_latency("scoring"):
                assessment = self._scorer.score(features)

            profile = RiskProfile.from_assessment(subject_id, assessment, features)
            previous = await self._store(
                "get_latest_profile",
                lambda: self._profile_repo.get_latest(subject_id),
            )
            monitoring = self._monitor.evaluate(
                profile.helix_score,
                previous.helix_score if previous else None,
                features,
                subject_id=subject_id,
            )

            history_entry = RiskProfileHistoryEntry.for_profile(
                profile, history_id_for(profile.id)
            )
            alerts = [
                RiskAlert(
                    subject_id=subject_id,
                    profile_id=profile.id,
                    alert_type=alert.alert_type,
                    severity=alert.severity,
                    message=alert.message,
                    current_score=monitoring.current_score,
                    previous_score=monitoring.previous_score,
                    delta=monitoring.delta,
                    id=alert_id_for(profile.id, alert.alert_type.value),
                    created_at=profile.created_at,
                )
                for alert in monitoring.alerts
            ]

            await self._persist(profile, history_entry, alerts, log)

        self._advance(result, PipelineStage.PERSISTED, log)
        log.info(
            "profile_computed",
            profile_id=profile.id,
            helix_score=profile.helix_score,
            category=profile.category.value,
            alerts=len(alerts),
            intervention_required=monitoring.intervention_required,
        )
        return profile, monitoring

    async def _persist(
        self,
        profile: RiskProfile,
        history_entry: RiskProfileHistoryEntry,
        alerts: List[RiskAlert],
        log,
    ) -> None:
        try:
            with track_stage_latency("persistence"):
                await self._store(
                    "append_profile",
                    lambda: self._profile_repo.append_profile(profile),
                )
                await self._store(
                    "append_history",
                    lambda: self._profile_repo.append_history(history_entry),
                )
                for alert in alerts:
                    await self._store(
                        "append_alert",
                        lambda alert=alert: self._alert_repo.append_alert(alert),
                    )
        except PersistenceException as exc:
            log.error("profile_persistence_failed", profile_id=profile.id, error=exc.message)
            record_pipeline_failure("persistence")
            raise ProfilePersistenceException(profile, history_entry, alerts, exc) from exc

        record_profile(profile.category.value)
        for alert in alerts:
            record_alert(alert.alert_type.value, alert.severity.value)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _store(self, name: str, operation: Callable[[], Awaitable[T]]) -> T:
        return await retry_async(
            operation,
            name=name,
            retry_on=(PersistenceException,),
            max_attempts=self._persistence_max_retries,
            base_delay=self._retry_base_delay,
        )

    @staticmethod
    def _advance(
        result: Optional[DocumentPipelineResult],
        stage: PipelineStage,
        log,
    ) -> None:
        log.info("pipeline_stage", stage=stage.value)
        if result is not None:
            result.advance(stage)
