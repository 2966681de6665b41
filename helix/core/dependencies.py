"""Service wiring from settings."""

from typing import Optional

from helix.application.services import (
    MonitoringService,
    RiskPipelineService,
    SubjectLockRegistry,
)
from helix.core.config import Settings, settings as app_settings
from helix.domain.interfaces import ExtractionClient
from helix.infrastructure.clients import HttpExtractionClient
from helix.infrastructure.database import DatabaseSessionManager, db_manager
from helix.infrastructure.repositories import (
    SqlAlertRepository,
    SqlDocumentRepository,
    SqlProfileRepository,
)
from helix.service.aggregation import FeatureAggregator
from helix.service.monitoring import RiskMonitor
from helix.service.normalization import DocumentNormalizer
from helix.service.scoring import RiskScorer


# Repository dependencies
def get_document_repository(db: Optional[DatabaseSessionManager] = None) -> SqlDocumentRepository:
    """Get a DocumentRepository instance."""
    return SqlDocumentRepository(db or db_manager)


def get_profile_repository(db: Optional[DatabaseSessionManager] = None) -> SqlProfileRepository:
    """Get a ProfileRepository instance."""
    return SqlProfileRepository(db or db_manager)


def get_alert_repository(db: Optional[DatabaseSessionManager] = None) -> SqlAlertRepository:
    """Get an AlertRepository instance."""
    return SqlAlertRepository(db or db_manager)


# External client dependencies
def get_extraction_client(config: Settings = app_settings) -> HttpExtractionClient:
    """Get an ExtractionClient instance."""
    return HttpExtractionClient(
        base_url=config.extraction_api_url,
        timeout=config.extraction_timeout,
    )


# Service dependencies
def build_pipeline_service(
    db: Optional[DatabaseSessionManager] = None,
    extraction_client: Optional[ExtractionClient] = None,
    locks: Optional[SubjectLockRegistry] = None,
    config: Settings = app_settings,
) -> RiskPipelineService:
    """
    Get a RiskPipelineService with all dependencies.

    Services that share a process should share ``locks`` so profile
    computation for a subject stays serialized across them.
    """
    return RiskPipelineService(
        document_repository=get_document_repository(db),
        profile_repository=get_profile_repository(db),
        alert_repository=get_alert_repository(db),
        extraction_client=extraction_client or get_extraction_client(config),
        normalizer=DocumentNormalizer(),
        aggregator=FeatureAggregator(),
        scorer=RiskScorer(),
        monitor=RiskMonitor(),
        locks=locks,
        extraction_max_retries=config.extraction_max_retries,
        persistence_max_retries=config.persistence_max_retries,
        retry_base_delay=config.retry_base_delay,
    )


def build_monitoring_service(db: Optional[DatabaseSessionManager] = None) -> MonitoringService:
    """Get a MonitoringService instance."""
    return MonitoringService(
        profile_repository=get_profile_repository(db),
        alert_repository=get_alert_repository(db),
        monitor=RiskMonitor(),
    )
