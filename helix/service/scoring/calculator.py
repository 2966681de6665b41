"""
Helix Risk Scorer.

Combines the five dimension assessments into the composite helix score,
classifies it, derives decision flags and synthesizes an explanation.

Scoring is pure: the same feature vector always produces an equal
RiskAssessment, down to the explanation text.
"""

import math
from dataclasses import fields
from typing import Any, List, Mapping, Optional

from helix.domain.entities import (
    Dimension,
    DimensionAssessment,
    FeatureVector,
    RiskAssessment,
    ScenarioOutcome,
)
from helix.domain.exceptions import InvalidFeatureVectorException

from .classification import classify_category, classify_grade, determine_flags
from .dimensions import (
    assess_alternative_signals,
    assess_behavioral_patterns,
    assess_environmental_factors,
    assess_financial_stability,
    assess_fraud_risk,
)
from .explanation import build_explanation
from .settings import ScoringSettings, get_scoring_settings


def validate_features(features: FeatureVector) -> None:
    """
    Reject feature vectors no formula can score.

    Raises:
        InvalidFeatureVectorException: If a numeric field is NaN or infinite,
            or a field holds a non-numeric value
    """
    for f in fields(features):
        value = getattr(features, f.name)
        if value is None or isinstance(value, bool):
            continue
        if not isinstance(value, (int, float)):
            raise InvalidFeatureVectorException(f.name, f"expected a number, got {value!r}")
        if not math.isfinite(value):
            raise InvalidFeatureVectorException(f.name, "value is not finite")


class RiskScorer:
    """
    Multi-dimensional risk scorer.

    Usage:
        scorer = RiskScorer()
        assessment = scorer.score(features)
        assessment.helix_score, assessment.category, assessment.flags
    """

    def __init__(self, settings: Optional[ScoringSettings] = None):
        self.settings = settings or get_scoring_settings()

    @property
    def weights(self) -> Mapping[Dimension, float]:
        s = self.settings
        return {
            Dimension.FINANCIAL: s.weight_financial,
            Dimension.BEHAVIORAL: s.weight_behavioral,
            Dimension.ALTERNATIVE: s.weight_alternative,
            Dimension.ENVIRONMENTAL: s.weight_environmental,
            Dimension.FRAUD: s.weight_fraud,
        }

    def assess_dimensions(self, features: FeatureVector) -> List[DimensionAssessment]:
        """Run all five assessors in canonical dimension order."""
        return [
            assess_financial_stability(features, self.settings),
            assess_behavioral_patterns(features, self.settings),
            assess_alternative_signals(features, self.settings),
            assess_environmental_factors(features, self.settings),
            assess_fraud_risk(features, self.settings),
        ]

    def score(self, features: FeatureVector) -> RiskAssessment:
        """
        Score a feature vector.

        Args:
            features: The subject's canonical feature vector

        Returns:
            The complete risk assessment

        Raises:
            InvalidFeatureVectorException: If the vector holds non-finite values
        """
        validate_features(features)

        assessments = self.assess_dimensions(features)
        weights = self.weights

        raw_score = math.fsum(a.score * weights[a.dimension] for a in assessments)
        helix_score = round(max(0.0, min(100.0, raw_score)), 2)

        raw_confidence = math.fsum(a.confidence * weights[a.dimension] for a in assessments)
        confidence = round(max(0.0, min(1.0, raw_confidence)), 2)

        category = classify_category(helix_score, self.settings)
        fraud_score = next(a.score for a in assessments if a.dimension == Dimension.FRAUD)

        return RiskAssessment(
            helix_score=helix_score,
            category=category,
            grade=classify_grade(helix_score, self.settings),
            dimensions=tuple(assessments),
            confidence=confidence,
            flags=determine_flags(helix_score, fraud_score, self.settings),
            explanation=build_explanation(helix_score, category, assessments, self.settings),
        )

    def simulate(
        self,
        base: FeatureVector,
        scenarios: Mapping[str, Mapping[str, Any]],
    ) -> List[ScenarioOutcome]:
        """
        Project the score of what-if variations of a feature vector.

        Args:
            base: The subject's current feature vector
            scenarios: Scenario name -> feature overrides applied on top of base

        Returns:
            One outcome per scenario, in the order given. ``impact`` is the
            projected score minus the base score.

        Raises:
            InvalidFeatureVectorException: If an override names an unknown
                feature or produces a non-finite value
        """
        base_score = self.score(base).helix_score

        outcomes = []
        for name, overrides in scenarios.items():
            projected = self.score(base.with_overrides(**overrides))
            outcomes.append(
                ScenarioOutcome(
                    name=name,
                    overrides=dict(overrides),
                    helix_score=projected.helix_score,
                    category=projected.category,
                    grade=projected.grade,
                    impact=round(projected.helix_score - base_score, 2),
                )
            )
        return outcomes
