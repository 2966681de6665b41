"""Risk assessment and risk profile entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Tuple
from uuid import uuid4

from helix.utils.dates import utcnow

from .features import FeatureVector


class Dimension(str, Enum):
    """The five scored risk dimensions, in canonical order."""

    FINANCIAL = "financial"
    BEHAVIORAL = "behavioral"
    ALTERNATIVE = "alternative"
    ENVIRONMENTAL = "environmental"
    FRAUD = "fraud"


class RiskCategory(str, Enum):
    PRIME = "prime"
    NEAR_PRIME = "near_prime"
    SUBPRIME = "subprime"
    DEEP_SUBPRIME = "deep_subprime"
    DECLINE = "decline"


class RiskGrade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"


@dataclass(frozen=True)
class DimensionAssessment:
    """
    Result of scoring one risk dimension.

    Attributes:
        dimension: Which dimension was assessed
        score: Risk score in [0, 100], higher is riskier
        confidence: Share of the dimension's canonical inputs present, in [0, 1]
        factors: Human-readable descriptions of the inputs that were used
        sub_scores: Health score of each sub-factor (higher is healthier)
    """

    dimension: Dimension
    score: float
    confidence: float
    factors: Tuple[str, ...] = ()
    sub_scores: Mapping[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "dimension": self.dimension.value,
            "score": round(self.score, 2),
            "confidence": round(self.confidence, 2),
            "factors": list(self.factors),
            "sub_scores": {k: round(v, 2) for k, v in self.sub_scores.items()},
        }


@dataclass(frozen=True)
class RiskFlags:
    """Decision gates derived from the helix score and fraud dimension."""

    high_risk: bool
    requires_manual_review: bool
    fast_track_eligible: bool
    prime_customer: bool

    def to_dict(self) -> dict:
        return {
            "high_risk": self.high_risk,
            "requires_manual_review": self.requires_manual_review,
            "fast_track_eligible": self.fast_track_eligible,
            "prime_customer": self.prime_customer,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RiskFlags":
        return cls(
            high_risk=bool(data["high_risk"]),
            requires_manual_review=bool(data["requires_manual_review"]),
            fast_track_eligible=bool(data["fast_track_eligible"]),
            prime_customer=bool(data["prime_customer"]),
        )


@dataclass(frozen=True)
class KeyFactor:
    """A factor string annotated with its dimension's impact."""

    factor: str
    dimension: Dimension
    impact: float
    direction: str  # positive | negative
    explanation: str

    def to_dict(self) -> dict:
        return {
            "factor": self.factor,
            "dimension": self.dimension.value,
            "impact": round(self.impact, 2),
            "direction": self.direction,
            "explanation": self.explanation,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeyFactor":
        return cls(
            factor=data["factor"],
            dimension=Dimension(data["dimension"]),
            impact=float(data["impact"]),
            direction=data["direction"],
            explanation=data["explanation"],
        )


@dataclass(frozen=True)
class RiskExplanation:
    """Narrative explanation of a risk assessment."""

    summary: str
    key_factors: Tuple[KeyFactor, ...] = ()
    strengths: Tuple[str, ...] = ()
    concerns: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "key_factors": [f.to_dict() for f in self.key_factors],
            "strengths": list(self.strengths),
            "concerns": list(self.concerns),
            "recommendations": list(self.recommendations),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RiskExplanation":
        return cls(
            summary=data.get("summary", ""),
            key_factors=tuple(
                KeyFactor.from_dict(f) for f in data.get("key_factors", [])
            ),
            strengths=tuple(data.get("strengths", [])),
            concerns=tuple(data.get("concerns", [])),
            recommendations=tuple(data.get("recommendations", [])),
        )


@dataclass(frozen=True)
class RiskAssessment:
    """
    Output of a single scoring call.

    Pure value object: the same feature vector always yields an equal
    assessment.
    """

    helix_score: float
    category: RiskCategory
    grade: RiskGrade
    dimensions: Tuple[DimensionAssessment, ...]
    confidence: float
    flags: RiskFlags
    explanation: RiskExplanation

    def dimension(self, dimension: Dimension) -> DimensionAssessment:
        for assessment in self.dimensions:
            if assessment.dimension == dimension:
                return assessment
        raise KeyError(dimension)

    @property
    def dimension_scores(self) -> Dict[str, float]:
        return {a.dimension.value: a.score for a in self.dimensions}

    def to_dict(self) -> dict:
        return {
            "helix_score": self.helix_score,
            "category": self.category.value,
            "grade": self.grade.value,
            "dimensions": [a.to_dict() for a in self.dimensions],
            "confidence": self.confidence,
            "flags": self.flags.to_dict(),
            "explanation": self.explanation.to_dict(),
        }


@dataclass(frozen=True)
class ScenarioOutcome:
    """Projected result of scoring a what-if variation of a feature vector."""

    name: str
    overrides: Mapping[str, Any]
    helix_score: float
    category: RiskCategory
    grade: RiskGrade
    impact: float  # projected - base; negative means lower risk

    @property
    def improves(self) -> bool:
        return self.impact < 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "overrides": dict(self.overrides),
            "helix_score": self.helix_score,
            "category": self.category.value,
            "grade": self.grade.value,
            "impact": self.impact,
        }


@dataclass(frozen=True)
class RiskProfile:
    """
    Immutable, append-only snapshot of a subject's risk assessment.

    A subject's current profile is the most recently created one; older
    snapshots are never updated.
    """

    subject_id: str
    helix_score: float
    category: RiskCategory
    grade: RiskGrade
    dimension_scores: Mapping[str, float]
    confidence: float
    flags: RiskFlags
    explanation: RiskExplanation
    features: FeatureVector
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_assessment(
        cls,
        subject_id: str,
        assessment: RiskAssessment,
        features: FeatureVector,
    ) -> "RiskProfile":
        """Build a new snapshot from a scoring result."""
        return cls(
            subject_id=subject_id,
            helix_score=assessment.helix_score,
            category=assessment.category,
            grade=assessment.grade,
            dimension_scores=assessment.dimension_scores,
            confidence=assessment.confidence,
            flags=assessment.flags,
            explanation=assessment.explanation,
            features=features,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "profile_id": self.id,
            "subject_id": self.subject_id,
            "helix_score": self.helix_score,
            "category": self.category.value,
            "grade": self.grade.value,
            "dimension_scores": dict(self.dimension_scores),
            "confidence": self.confidence,
            "flags": self.flags.to_dict(),
            "explanation": self.explanation.to_dict(),
            "features": self.features.to_dict(),
            "created_at": self.created_at.isoformat() + "Z",
        }


@dataclass(frozen=True)
class RiskProfileHistoryEntry:
    """Score history row written alongside every profile snapshot."""

    id: str
    profile_id: str
    subject_id: str
    helix_score: float
    category: RiskCategory
    dimension_scores: Mapping[str, float]
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def for_profile(cls, profile: RiskProfile, entry_id: str) -> "RiskProfileHistoryEntry":
        return cls(
            id=entry_id,
            profile_id=profile.id,
            subject_id=profile.subject_id,
            helix_score=profile.helix_score,
            category=profile.category,
            dimension_scores=dict(profile.dimension_scores),
            created_at=profile.created_at,
        )

    def to_dict(self) -> dict:
        return {
            "history_id": self.id,
            "profile_id": self.profile_id,
            "subject_id": self.subject_id,
            "helix_score": self.helix_score,
            "category": self.category.value,
            "dimension_scores": dict(self.dimension_scores),
            "created_at": self.created_at.isoformat() + "Z",
        }
