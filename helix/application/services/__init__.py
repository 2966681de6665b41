"""Application services (use cases)."""

from .monitoring_service import MonitoringService
from .pipeline_service import RiskPipelineService, alert_id_for, history_id_for
from .subject_locks import SubjectLockRegistry

__all__ = [
    "MonitoringService",
    "RiskPipelineService",
    "SubjectLockRegistry",
    "alert_id_for",
    "history_id_for",
]
