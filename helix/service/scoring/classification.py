"""
Score classification: risk category, letter grade and decision flags.

Category and grade are independent views of the same helix score. Both are
total partitions of [0, 100] using inclusive upper bounds.
"""

from helix.domain.entities import RiskCategory, RiskFlags, RiskGrade

from .settings import ScoringSettings, scoring_settings


def classify_category(
    score: float,
    settings: ScoringSettings = scoring_settings,
) -> RiskCategory:
    """
    Map a helix score to its risk category.

    Bands (inclusive upper bounds): prime <= 25, near_prime <= 45,
    subprime <= 65, deep_subprime <= 85, decline otherwise.
    """
    if score <= settings.prime_max:
        return RiskCategory.PRIME
    if score <= settings.near_prime_max:
        return RiskCategory.NEAR_PRIME
    if score <= settings.subprime_max:
        return RiskCategory.SUBPRIME
    if score <= settings.deep_subprime_max:
        return RiskCategory.DEEP_SUBPRIME
    return RiskCategory.DECLINE


def classify_grade(
    score: float,
    settings: ScoringSettings = scoring_settings,
) -> RiskGrade:
    """Map a helix score to a letter grade (A best, F worst)."""
    if score <= settings.grade_a_max:
        return RiskGrade.A
    if score <= settings.grade_b_max:
        return RiskGrade.B
    if score <= settings.grade_c_max:
        return RiskGrade.C
    if score <= settings.grade_d_max:
        return RiskGrade.D
    if score <= settings.grade_e_max:
        return RiskGrade.E
    return RiskGrade.F


def determine_flags(
    score: float,
    fraud_score: float,
    settings: ScoringSettings = scoring_settings,
) -> RiskFlags:
    """
    Derive decision flags.

    Args:
        score: Helix score
        fraud_score: Fraud dimension risk score
        settings: Scoring settings (uses defaults if not provided)
    """
    return RiskFlags(
        high_risk=score >= settings.high_risk_threshold,
        requires_manual_review=(
            score >= settings.manual_review_threshold
            or fraud_score >= settings.manual_review_fraud_threshold
        ),
        fast_track_eligible=(
            score <= settings.fast_track_max_score
            and fraud_score <= settings.fast_track_max_fraud
        ),
        prime_customer=score <= settings.prime_max,
    )
