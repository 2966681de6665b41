"""
Scoring Settings for the Helix multi-dimensional risk scorer.

This module contains the configurable parameters of the scoring system:
dimension weights, sub-factor weights, category and grade bands, flag
thresholds and explanation thresholds. They can be adjusted via
environment variables for tuning against observed default rates.

Environment variables use the SCORING_ prefix:
    SCORING_WEIGHT_FINANCIAL=0.35
    SCORING_PRIME_MAX=25
    SCORING_HIGH_RISK_THRESHOLD=66

Usage:
    from helix.service.scoring.settings import scoring_settings

    # Or create custom settings for testing
    custom = ScoringSettings(high_risk_threshold=70)
"""

import math
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScoringSettings(BaseSettings):
    """
    Configurable parameters for the risk scoring algorithm.

    All settings can be overridden via environment variables with SCORING_ prefix.
    All scores are 0-100 with higher meaning riskier.
    """

    model_config = SettingsConfigDict(
        env_prefix="SCORING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # === Dimension Weights ===
    weight_financial: float = Field(default=0.35, ge=0.0, le=1.0)
    weight_behavioral: float = Field(default=0.25, ge=0.0, le=1.0)
    weight_alternative: float = Field(default=0.20, ge=0.0, le=1.0)
    weight_environmental: float = Field(default=0.10, ge=0.0, le=1.0)
    weight_fraud: float = Field(default=0.10, ge=0.0, le=1.0)

    # === Financial Sub-factor Weights ===
    weight_income_consistency: float = Field(default=0.40, ge=0.0, le=1.0)
    weight_cash_flow: float = Field(default=0.35, ge=0.0, le=1.0)
    weight_debt_management: float = Field(default=0.25, ge=0.0, le=1.0)

    # === Behavioral Sub-factor Weights ===
    weight_spending: float = Field(default=0.35, ge=0.0, le=1.0)
    weight_responsibility: float = Field(default=0.40, ge=0.0, le=1.0)
    weight_digital: float = Field(default=0.25, ge=0.0, le=1.0)

    # === Alternative Sub-factor Weights ===
    weight_social: float = Field(default=0.30, ge=0.0, le=1.0)
    weight_asset: float = Field(default=0.40, ge=0.0, le=1.0)
    weight_lifestyle: float = Field(default=0.30, ge=0.0, le=1.0)

    # === Environmental ===
    weight_macroeconomic: float = Field(
        default=0.40,
        ge=0.0,
        le=1.0,
        description="Share of the macroeconomic score blended with the neutral baseline",
    )
    environmental_confidence: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Fixed confidence of the environmental dimension",
    )

    # === Fraud Sub-factor Weights ===
    weight_identity: float = Field(default=0.50, ge=0.0, le=1.0)
    weight_transaction_anomaly: float = Field(default=0.50, ge=0.0, le=1.0)

    # === Reference Values ===
    neutral_score: float = Field(
        default=50.0,
        ge=0.0,
        le=100.0,
        description="Sub-factor score used when its inputs are unknown",
    )
    stable_tenure_months: float = Field(
        default=24.0,
        gt=0.0,
        description="Employment, geographic or residential tenure that earns a full score",
    )
    stable_phone_months: float = Field(
        default=12.0,
        gt=0.0,
        description="Phone number tenure that earns a full score",
    )
    dti_excellent: float = Field(default=0.36, gt=0.0, description="Conventional DTI ceiling")
    dti_acceptable: float = Field(default=0.43, gt=0.0, description="Qualified-mortgage DTI ceiling")
    utilization_threshold: float = Field(
        default=30.0,
        ge=0.0,
        le=100.0,
        description="Credit utilization (%) above which debt health is penalized",
    )
    emergency_fund_target_months: float = Field(default=6.0, gt=0.0)

    # === Category Bands (inclusive upper bounds) ===
    prime_max: float = Field(default=25.0, ge=0.0, le=100.0)
    near_prime_max: float = Field(default=45.0, ge=0.0, le=100.0)
    subprime_max: float = Field(default=65.0, ge=0.0, le=100.0)
    deep_subprime_max: float = Field(default=85.0, ge=0.0, le=100.0)

    # === Grade Bands (inclusive upper bounds) ===
    grade_a_max: float = Field(default=20.0, ge=0.0, le=100.0)
    grade_b_max: float = Field(default=40.0, ge=0.0, le=100.0)
    grade_c_max: float = Field(default=60.0, ge=0.0, le=100.0)
    grade_d_max: float = Field(default=80.0, ge=0.0, le=100.0)
    grade_e_max: float = Field(default=90.0, ge=0.0, le=100.0)

    # === Flags ===
    high_risk_threshold: float = Field(default=66.0, ge=0.0, le=100.0)
    manual_review_threshold: float = Field(default=45.0, ge=0.0, le=100.0)
    manual_review_fraud_threshold: float = Field(default=70.0, ge=0.0, le=100.0)
    fast_track_max_score: float = Field(default=30.0, ge=0.0, le=100.0)
    fast_track_max_fraud: float = Field(default=20.0, ge=0.0, le=100.0)

    # === Explanation ===
    key_factor_count: int = Field(default=5, ge=1)
    strength_threshold: float = Field(
        default=30.0,
        description="Dimensions scoring below this are reported as strengths",
    )
    concern_threshold: float = Field(
        default=70.0,
        description="Dimensions scoring above this are reported as concerns",
    )
    financial_recommendation_threshold: float = Field(default=60.0)
    behavioral_recommendation_threshold: float = Field(default=60.0)
    alternative_recommendation_threshold: float = Field(default=40.0)
    fraud_recommendation_threshold: float = Field(default=50.0)

    @model_validator(mode="after")
    def validate_weights_and_bands(self) -> "ScoringSettings":
        """Weights must sum to 1.0 and bands must be ascending."""
        groups = {
            "dimension": (
                self.weight_financial,
                self.weight_behavioral,
                self.weight_alternative,
                self.weight_environmental,
                self.weight_fraud,
            ),
            "financial": (
                self.weight_income_consistency,
                self.weight_cash_flow,
                self.weight_debt_management,
            ),
            "behavioral": (
                self.weight_spending,
                self.weight_responsibility,
                self.weight_digital,
            ),
            "alternative": (
                self.weight_social,
                self.weight_asset,
                self.weight_lifestyle,
            ),
            "fraud": (
                self.weight_identity,
                self.weight_transaction_anomaly,
            ),
        }
        for name, weights in groups.items():
            total = math.fsum(weights)
            if not math.isclose(total, 1.0, abs_tol=1e-9):
                raise ValueError(f"{name} weights must sum to 1.0, got {total}")

        bands = (self.prime_max, self.near_prime_max, self.subprime_max, self.deep_subprime_max)
        if list(bands) != sorted(bands):
            raise ValueError(f"Category bands must be ascending: {bands}")

        grades = (
            self.grade_a_max,
            self.grade_b_max,
            self.grade_c_max,
            self.grade_d_max,
            self.grade_e_max,
        )
        if list(grades) != sorted(grades):
            raise ValueError(f"Grade bands must be ascending: {grades}")

        if self.dti_excellent > self.dti_acceptable:
            raise ValueError("dti_excellent must not exceed dti_acceptable")
        return self


@lru_cache
def get_scoring_settings() -> ScoringSettings:
    """Get cached scoring settings instance."""
    return ScoringSettings()


scoring_settings = get_scoring_settings()
