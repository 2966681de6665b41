"""Data transfer objects for pipeline operations."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from helix.domain.entities import FinancialDocument, MonitoringResult, RiskProfile
from helix.domain.exceptions import DomainException


class PipelineStage(str, Enum):
    """States a document trigger moves through."""

    RECEIVED = "received"
    NORMALIZING = "normalizing"
    NORMALIZED = "normalized"
    FAILED = "failed"
    AGGREGATING = "aggregating"
    SCORING = "scoring"
    PERSISTED = "persisted"


@dataclass
class DocumentPipelineResult:
    """
    Terminal result of processing one document.

    ``stages`` records every transition in order. A run that failed
    normalization ends in FAILED and carries no profile; a run that failed
    after normalization carries the exception that stopped it, so a
    ProfilePersistenceException can be handed to resume_persistence.
    """

    document_id: str
    subject_id: Optional[str] = None
    stages: List[PipelineStage] = field(default_factory=lambda: [PipelineStage.RECEIVED])
    document: Optional[FinancialDocument] = None
    profile: Optional[RiskProfile] = None
    monitoring: Optional[MonitoringResult] = None
    failure: Optional[DomainException] = None

    @property
    def stage(self) -> PipelineStage:
        """The most recent stage reached."""
        return self.stages[-1]

    @property
    def succeeded(self) -> bool:
        return self.stage == PipelineStage.PERSISTED

    @property
    def error(self) -> Optional[str]:
        return self.failure.message if self.failure else None

    @property
    def error_code(self) -> Optional[str]:
        return self.failure.code if self.failure else None

    def advance(self, stage: PipelineStage) -> None:
        self.stages.append(stage)

    def to_dict(self) -> dict:
        return {
            "document_id": self.document_id,
            "subject_id": self.subject_id,
            "stage": self.stage.value,
            "stages": [s.value for s in self.stages],
            "profile_id": self.profile.id if self.profile else None,
            "helix_score": self.profile.helix_score if self.profile else None,
            "error": self.error,
            "error_code": self.error_code,
        }


@dataclass
class BatchResult:
    """Result of processing every pending document of a subject."""

    subject_id: str
    results: List[DocumentPipelineResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[DocumentPipelineResult]:
        return [r for r in self.results if r.succeeded]

    @property
    def failed(self) -> List[DocumentPipelineResult]:
        return [r for r in self.results if not r.succeeded]

    @property
    def latest_profile(self) -> Optional[RiskProfile]:
        profiles = [r.profile for r in self.results if r.profile is not None]
        if not profiles:
            return None
        return max(profiles, key=lambda p: p.created_at)

    def to_dict(self) -> dict:
        return {
            "subject_id": self.subject_id,
            "processed": len(self.results),
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "results": [r.to_dict() for r in self.results],
        }
