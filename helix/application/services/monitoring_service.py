"""Monitoring service - read-side risk profile use cases."""

from typing import List, Optional

import structlog

from helix.domain.entities import MonitoringResult, RiskAlert, RiskProfile, RiskProfileHistoryEntry
from helix.domain.exceptions import ProfileNotFoundException
from helix.domain.interfaces import AlertRepository, ProfileRepository
from helix.service.monitoring import RiskMonitor

logger = structlog.get_logger(__name__)


class MonitoringService:
    """
    Application service for monitoring and profile history.

    Every operation is read-only; alerts are persisted by the pipeline
    when a profile is appended.
    """

    def __init__(
        self,
        profile_repository: ProfileRepository,
        alert_repository: AlertRepository,
        monitor: Optional[RiskMonitor] = None,
    ):
        self._profile_repo = profile_repository
        self._alert_repo = alert_repository
        self._monitor = monitor or RiskMonitor()

    async def get_current_profile(self, subject_id: str) -> RiskProfile:
        """
        Retrieve a subject's most recent profile.

        Raises:
            ProfileNotFoundException: If the subject has never been scored
        """
        profile = await self._profile_repo.get_latest(subject_id)

        if profile is None:
            logger.warning("profile_not_found", subject_id=subject_id)
            raise ProfileNotFoundException(subject_id)

        return profile

    async def evaluate_monitoring(self, subject_id: str) -> MonitoringResult:
        """
        Compare a subject's latest profile with the one before it.

        Args:
            subject_id: The subject's identifier

        Returns:
            MonitoringResult for the latest snapshot and its feature vector

        Raises:
            ProfileNotFoundException: If the subject has never been scored
        """
        latest = await self.get_current_profile(subject_id)
        prior = await self._profile_repo.get_prior(subject_id, latest.id)

        result = self._monitor.evaluate(
            latest.helix_score,
            prior.helix_score if prior else None,
            latest.features,
            subject_id=subject_id,
        )

        logger.info(
            "monitoring_evaluated",
            subject_id=subject_id,
            profile_id=latest.id,
            trend=result.trend.value,
            alerts=len(result.alerts),
            intervention_required=result.intervention_required,
        )
        return result

    async def get_active_alerts(self, subject_id: str) -> List[RiskAlert]:
        """Retrieve a subject's unresolved alerts, newest first."""
        return await self._alert_repo.list_unresolved(subject_id)

    async def get_history(
        self,
        subject_id: str,
        limit: int = 50,
    ) -> List[RiskProfileHistoryEntry]:
        """Retrieve a subject's score history, newest first."""
        history = await self._profile_repo.list_history(subject_id, limit=limit)
        logger.info("history_retrieved", subject_id=subject_id, count=len(history))
        return history
