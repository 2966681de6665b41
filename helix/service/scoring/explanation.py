"""
Explanation synthesis for risk assessments.

Produces the narrative attached to every score: a summary naming the
dominant risk driver and the best-managed dimension, the top key factors,
strengths, concerns and threshold-triggered recommendations. Output is a
pure function of the dimension assessments.
"""

from typing import Dict, List, Sequence

from helix.domain.entities import (
    Dimension,
    DimensionAssessment,
    KeyFactor,
    RiskCategory,
    RiskExplanation,
)

from .settings import ScoringSettings, scoring_settings

DIMENSION_LABELS: Dict[Dimension, str] = {
    Dimension.FINANCIAL: "financial stability",
    Dimension.BEHAVIORAL: "behavioral",
    Dimension.ALTERNATIVE: "alternative data",
    Dimension.ENVIRONMENTAL: "environmental",
    Dimension.FRAUD: "fraud and identity",
}

_CANONICAL_ORDER = {dimension: index for index, dimension in enumerate(Dimension)}


def rank_dimensions(
    assessments: Sequence[DimensionAssessment],
) -> List[DimensionAssessment]:
    """Order assessments riskiest first; ties keep canonical dimension order."""
    return sorted(
        assessments,
        key=lambda a: (-a.score, _CANONICAL_ORDER[a.dimension]),
    )


def select_key_factors(
    assessments: Sequence[DimensionAssessment],
    settings: ScoringSettings = scoring_settings,
) -> List[KeyFactor]:
    """
    Pick the most influential factor strings.

    Every factor inherits its dimension's impact (distance of the dimension
    score from neutral 50). Factors are ranked by impact; equal impacts keep
    canonical dimension order and then the order the factors were emitted.
    """
    annotated = []
    for assessment in sorted(assessments, key=lambda a: _CANONICAL_ORDER[a.dimension]):
        impact = abs(assessment.score - 50.0)
        direction = "positive" if assessment.score < 50.0 else "negative"
        label = DIMENSION_LABELS[assessment.dimension]
        for factor in assessment.factors:
            annotated.append(
                KeyFactor(
                    factor=factor,
                    dimension=assessment.dimension,
                    impact=impact,
                    direction=direction,
                    explanation=f"{label}: {factor}",
                )
            )

    annotated.sort(key=lambda f: -f.impact)
    return annotated[: settings.key_factor_count]


def build_recommendations(
    scores: Dict[Dimension, float],
    settings: ScoringSettings = scoring_settings,
) -> List[str]:
    recommendations = []
    if scores[Dimension.FINANCIAL] > settings.financial_recommendation_threshold:
        recommendations.append(
            "Improve debt-to-income ratio by reducing expenses or increasing income"
        )
    if scores[Dimension.BEHAVIORAL] > settings.behavioral_recommendation_threshold:
        recommendations.append(
            "Establish consistent payment history for bills and rent"
        )
    if scores[Dimension.ALTERNATIVE] < settings.alternative_recommendation_threshold:
        recommendations.append(
            "Maintain your asset base and stable employment to preserve this strength"
        )
    if scores[Dimension.FRAUD] > settings.fraud_recommendation_threshold:
        recommendations.append(
            "Complete identity verification and address documentation"
        )
    return recommendations


def build_explanation(
    helix_score: float,
    category: RiskCategory,
    assessments: Sequence[DimensionAssessment],
    settings: ScoringSettings = scoring_settings,
) -> RiskExplanation:
    """
    Synthesize the explanation for a scored feature vector.

    Args:
        helix_score: The composite score
        category: Category of the composite score
        assessments: Exactly one assessment per dimension
        settings: Scoring settings (uses defaults if not provided)
    """
    ranked = rank_dimensions(assessments)
    riskiest, safest = ranked[0], ranked[-1]

    summary = (
        f"A Helix score of {helix_score:.1f} places this profile in the "
        f"{category.value.replace('_', ' ')} category. "
        f"The dominant risk driver is {DIMENSION_LABELS[riskiest.dimension]} risk "
        f"({riskiest.score:.1f}), while {DIMENSION_LABELS[safest.dimension]} risk "
        f"is the best managed ({safest.score:.1f})."
    )

    strengths = [
        f"Strong {DIMENSION_LABELS[a.dimension]} management"
        for a in ranked
        if a.score < settings.strength_threshold
    ]
    concerns = [
        f"Elevated {DIMENSION_LABELS[a.dimension]} risk"
        for a in ranked
        if a.score > settings.concern_threshold
    ]

    scores = {a.dimension: a.score for a in assessments}

    return RiskExplanation(
        summary=summary,
        key_factors=tuple(select_key_factors(assessments, settings)),
        strengths=tuple(strengths),
        concerns=tuple(concerns),
        recommendations=tuple(build_recommendations(scores, settings)),
    )
