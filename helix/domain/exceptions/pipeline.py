"""Persistence and pipeline domain exceptions."""

from typing import List, TYPE_CHECKING

from .base import DomainException

if TYPE_CHECKING:
    from helix.domain.entities import RiskAlert, RiskProfile, RiskProfileHistoryEntry


class PersistenceException(DomainException):
    """Raised when a store write or read fails. Always retryable."""

    def __init__(self, operation: str, message: str):
        super().__init__(
            message=f"Persistence failure during {operation}: {message}",
            code="PERSISTENCE_ERROR",
        )
        self.operation = operation
        self.retryable = True


class PipelineException(DomainException):
    """Raised when aggregation, scoring or persistence fails for a subject."""

    def __init__(
        self,
        subject_id: str,
        message: str,
        code: str = "PIPELINE_ERROR",
    ):
        super().__init__(message=message, code=code)
        self.subject_id = subject_id


class ProfilePersistenceException(PipelineException):
    """
    Raised when a computed profile could not be fully persisted.

    Carries the computed snapshot and every write that belongs to it so the
    caller can retry the writes alone without recomputing the score.
    """

    def __init__(
        self,
        profile: "RiskProfile",
        history_entry: "RiskProfileHistoryEntry",
        alerts: List["RiskAlert"],
        cause: PersistenceException,
    ):
        super().__init__(
            subject_id=profile.subject_id,
            message=(
                f"Risk profile {profile.id} computed but not persisted: "
                f"{cause.message}"
            ),
            code="PROFILE_PERSISTENCE_FAILED",
        )
        self.profile = profile
        self.history_entry = history_entry
        self.alerts = alerts
        self.cause = cause
