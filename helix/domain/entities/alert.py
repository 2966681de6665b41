"""Monitoring alert entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple
from uuid import uuid4

from helix.utils.dates import utcnow


class AlertType(str, Enum):
    SCORE_INCREASE = "score_increase"
    INCOME_DROP = "income_drop"
    PAYMENT_ISSUES = "payment_issues"


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def is_urgent(self) -> bool:
        """High and critical alerts always require intervention."""
        return self in (AlertSeverity.HIGH, AlertSeverity.CRITICAL)


class ScoreTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DETERIORATING = "deteriorating"


@dataclass(frozen=True)
class MonitoringAlert:
    """An alert raised by a monitoring rule, before it is attached to a profile."""

    alert_type: AlertType
    severity: AlertSeverity
    message: str

    def to_dict(self) -> dict:
        return {
            "alert_type": self.alert_type.value,
            "severity": self.severity.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class MonitoringResult:
    """Outcome of comparing a subject's current score against the prior one."""

    subject_id: str
    current_score: float
    previous_score: Optional[float]
    delta: float
    trend: ScoreTrend
    alerts: Tuple[MonitoringAlert, ...] = ()
    intervention_required: bool = False

    def to_dict(self) -> dict:
        return {
            "subject_id": self.subject_id,
            "current_score": self.current_score,
            "previous_score": self.previous_score,
            "delta": round(self.delta, 2),
            "trend": self.trend.value,
            "alerts": [a.to_dict() for a in self.alerts],
            "intervention_required": self.intervention_required,
        }


@dataclass
class RiskAlert:
    """
    Persisted monitoring alert.

    Alerts are append-only; resolving one is the concern of the caller
    that owns the review workflow.
    """

    subject_id: str
    profile_id: str
    alert_type: AlertType
    severity: AlertSeverity
    message: str
    current_score: float
    previous_score: Optional[float] = None
    delta: float = 0.0
    id: str = field(default_factory=lambda: str(uuid4()))
    resolved: bool = False
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "alert_id": self.id,
            "subject_id": self.subject_id,
            "profile_id": self.profile_id,
            "alert_type": self.alert_type.value,
            "severity": self.severity.value,
            "message": self.message,
            "previous_score": self.previous_score,
            "current_score": self.current_score,
            "delta": round(self.delta, 2),
            "resolved": self.resolved,
            "created_at": self.created_at.isoformat() + "Z",
        }
