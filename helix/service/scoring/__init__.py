"""
Multi-Dimensional Risk Scorer for the Helix risk core
"""

from .settings import ScoringSettings, scoring_settings
from .dimensions import (
    assess_alternative_signals,
    assess_behavioral_patterns,
    assess_environmental_factors,
    assess_financial_stability,
    assess_fraud_risk,
    score_dti,
)
from .classification import classify_category, classify_grade, determine_flags
from .explanation import build_explanation, rank_dimensions
from .calculator import RiskScorer, validate_features

__all__ = [
    # Settings
    "ScoringSettings",
    "scoring_settings",
    # Dimensions
    "assess_alternative_signals",
    "assess_behavioral_patterns",
    "assess_environmental_factors",
    "assess_financial_stability",
    "assess_fraud_risk",
    "score_dti",
    # Classification
    "classify_category",
    "classify_grade",
    "determine_flags",
    # Explanation
    "build_explanation",
    "rank_dimensions",
    # Scorer
    "RiskScorer",
    "validate_features",
]
