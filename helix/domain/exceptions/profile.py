"""Risk profile and feature vector domain exceptions."""

from .base import DomainException, NotFoundException


class ProfileNotFoundException(NotFoundException):
    """Raised when a subject has no risk profile."""

    def __init__(self, subject_id: str):
        super().__init__(
            message=f"Risk profile not found for subject: {subject_id}",
            code="PROFILE_NOT_FOUND",
        )
        self.subject_id = subject_id


class InvalidFeatureVectorException(DomainException):
    """Raised when a feature vector is structurally invalid."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            message=f"Invalid feature '{field}': {reason}",
            code="INVALID_FEATURE_VECTOR",
        )
        self.field = field
        self.reason = reason
