"""SQLAlchemy implementation of AlertRepository."""

from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from helix.domain.entities import AlertSeverity, AlertType, RiskAlert
from helix.domain.exceptions import PersistenceException
from helix.domain.interfaces import AlertRepository
from helix.infrastructure.database import DatabaseSessionManager, RiskAlertModel


class SqlAlertRepository(AlertRepository):
    """SQLAlchemy implementation of the alert repository."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def append_alert(self, alert: RiskAlert) -> RiskAlert:
        """Persist an alert (upsert by id)."""
        model = RiskAlertModel(
            id=alert.id,
            subject_id=alert.subject_id,
            profile_id=alert.profile_id,
            alert_type=alert.alert_type.value,
            severity=alert.severity.value,
            message=alert.message,
            previous_score=alert.previous_score,
            current_score=alert.current_score,
            delta=alert.delta,
            resolved=alert.resolved,
            created_at=alert.created_at,
        )
        try:
            async with self._db.session() as session:
                await session.merge(model)
        except SQLAlchemyError as exc:
            raise PersistenceException("append_alert", str(exc)) from exc
        return alert

    async def list_unresolved(self, subject_id: str) -> List[RiskAlert]:
        """Retrieve a subject's unresolved alerts, newest first."""
        stmt = (
            select(RiskAlertModel)
            .where(
                RiskAlertModel.subject_id == subject_id,
                RiskAlertModel.resolved.is_(False),
            )
            .order_by(RiskAlertModel.created_at.desc(), RiskAlertModel.id)
        )
        try:
            async with self._db.session() as session:
                result = await session.execute(stmt)
                return [self._to_entity(model) for model in result.scalars().all()]
        except SQLAlchemyError as exc:
            raise PersistenceException("list_unresolved_alerts", str(exc)) from exc

    def _to_entity(self, model: RiskAlertModel) -> RiskAlert:
        """Convert database model to domain entity."""
        return RiskAlert(
            id=model.id,
            subject_id=model.subject_id,
            profile_id=model.profile_id,
            alert_type=AlertType(model.alert_type),
            severity=AlertSeverity(model.severity),
            message=model.message,
            previous_score=model.previous_score,
            current_score=model.current_score,
            delta=model.delta,
            resolved=model.resolved,
            created_at=model.created_at,
        )
