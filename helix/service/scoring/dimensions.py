"""
Dimension Assessors for the Helix risk scorer.

Each assessor turns a FeatureVector into one DimensionAssessment:
- Financial stability
- Behavioral patterns
- Alternative data and assets
- Environmental (macroeconomic) exposure
- Fraud and identity

Sub-factors are computed as health scores (higher = healthier), clamped
to [0, 100] after every adjustment, then combined into the dimension's
risk score as 100 - weighted health. Unknown inputs leave a sub-factor at
the neutral score.
"""

from typing import List, Optional, Sequence

from helix.domain.entities import Dimension, DimensionAssessment, FeatureVector

from .settings import ScoringSettings, scoring_settings


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(high, value))


def tenure_score(months: float, full_months: float) -> float:
    """Scale a tenure in months so that ``full_months`` or more scores 100."""
    return clamp(months / full_months * 100.0)


def _mean_present(values: Sequence[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


def _confidence(features: FeatureVector, names: Sequence[str]) -> float:
    present = sum(1 for name in names if features.is_present(name))
    return min(1.0, present / len(names))


def _usable_income(features: FeatureVector) -> Optional[float]:
    # Zero or negative income cannot anchor a ratio
    income = features.monthly_income
    if income is None or income <= 0:
        return None
    return income


def _risk(weighted_health: Sequence[tuple]) -> float:
    return clamp(100.0 - sum(weight * health for weight, health in weighted_health))


# =============================================================================
# Financial Stability
# =============================================================================

FINANCIAL_CONFIDENCE_FIELDS = (
    "employment_duration",
    "monthly_income_variance",
    "average_monthly_balance",
    "debt_to_income_ratio",
    "payment_timeliness",
)


def score_dti(
    dti: float,
    settings: ScoringSettings = scoring_settings,
) -> float:
    """
    Convert a debt-to-income ratio into a 0-100 health score.

    Bands:
        - DTI <= 36%: 100 - DTI*100 (conventional lending ceiling)
        - DTI <= 43%: 70 - (DTI - 0.36)*500 (qualified-mortgage ceiling)
        - above: 50 - (DTI - 0.43)*500, floored at 0
    """
    if dti <= settings.dti_excellent:
        return clamp(100.0 - dti * 100.0)
    if dti <= settings.dti_acceptable:
        return clamp(70.0 - (dti - settings.dti_excellent) * 500.0)
    return max(0.0, 50.0 - (dti - settings.dti_acceptable) * 500.0)


def score_income_consistency(
    features: FeatureVector,
    factors: List[str],
    settings: ScoringSettings = scoring_settings,
) -> float:
    """Employment tenure, income variance and diversity of income."""
    score = settings.neutral_score

    if features.employment_duration is not None:
        score = tenure_score(features.employment_duration, settings.stable_tenure_months)
        factors.append(f"Employment duration: {features.employment_duration:.1f} months")

    if features.monthly_income_variance is not None:
        variance_penalty = min(50.0, features.monthly_income_variance * 10)
        score = clamp(score - variance_penalty * 0.2)
        factors.append(f"Income variance: {features.monthly_income_variance:.4f}")

    if features.multiple_income_streams is not None:
        score = clamp(score + min(20.0, features.multiple_income_streams * 5))
        factors.append(f"Income streams: {features.multiple_income_streams}")

    return score


def score_cash_flow(
    features: FeatureVector,
    factors: List[str],
    settings: ScoringSettings = scoring_settings,
) -> float:
    """Balance cushion relative to income, overdrafts, savings and reserves."""
    score = settings.neutral_score
    income = _usable_income(features)

    if features.average_monthly_balance is not None and income is not None:
        ratio = features.average_monthly_balance / income
        score = clamp(min(100.0, ratio * 200.0))
        factors.append(f"Balance to income ratio: {ratio:.2f}")

    if features.overdraft_frequency is not None:
        score = clamp(score - min(30.0, features.overdraft_frequency * 5))
        factors.append(f"Overdraft frequency: {features.overdraft_frequency:g}")

    if features.savings_rate is not None:
        score = clamp(score + clamp(features.savings_rate * 0.3, -15.0, 15.0))
        factors.append(f"Savings rate: {features.savings_rate:.1f}%")

    if features.emergency_fund_coverage is not None:
        target = settings.emergency_fund_target_months
        score = clamp(score + min(20.0, features.emergency_fund_coverage / target * 20.0))
        factors.append(f"Emergency fund: {features.emergency_fund_coverage:.1f} months")

    return score


def score_debt_management(
    features: FeatureVector,
    factors: List[str],
    settings: ScoringSettings = scoring_settings,
) -> float:
    """Debt load, payment timeliness and revolving credit utilization."""
    score = settings.neutral_score

    if features.debt_to_income_ratio is not None:
        score = score_dti(features.debt_to_income_ratio, settings)
        factors.append(f"Debt-to-income ratio: {features.debt_to_income_ratio * 100:.1f}%")

    if features.payment_timeliness is not None:
        score = clamp((score + features.payment_timeliness) / 2)
        factors.append(f"Payment timeliness: {features.payment_timeliness:.1f}%")

    if features.credit_utilization is not None:
        penalty = max(0.0, (features.credit_utilization - settings.utilization_threshold) * 0.5)
        score = clamp(score - penalty)
        factors.append(f"Credit utilization: {features.credit_utilization:.1f}%")

    return score


def assess_financial_stability(
    features: FeatureVector,
    settings: ScoringSettings = scoring_settings,
) -> DimensionAssessment:
    """Assess the financial stability dimension."""
    factors: List[str] = []
    income = score_income_consistency(features, factors, settings)
    cash_flow = score_cash_flow(features, factors, settings)
    debt = score_debt_management(features, factors, settings)

    return DimensionAssessment(
        dimension=Dimension.FINANCIAL,
        score=_risk([
            (settings.weight_income_consistency, income),
            (settings.weight_cash_flow, cash_flow),
            (settings.weight_debt_management, debt),
        ]),
        confidence=_confidence(features, FINANCIAL_CONFIDENCE_FIELDS),
        factors=tuple(factors),
        sub_scores={
            "income_consistency": income,
            "cash_flow_health": cash_flow,
            "debt_management": debt,
        },
    )


# =============================================================================
# Behavioral Patterns
# =============================================================================

BEHAVIORAL_CONFIDENCE_FIELDS = (
    "discretionary_spending_ratio",
    "bill_payment_consistency",
    "rent_payment_history",
    "app_engagement_frequency",
)


def score_spending(
    features: FeatureVector,
    factors: List[str],
    settings: ScoringSettings = scoring_settings,
) -> float:
    score = settings.neutral_score

    ratio = features.discretionary_spending_ratio
    if ratio is not None:
        if ratio <= 0.3:
            score = 100.0
        elif ratio <= 0.5:
            score = clamp(80.0 - (ratio - 0.3) * 100.0)
        else:
            score = max(0.0, 60.0 - (ratio - 0.5) * 120.0)
        factors.append(f"Discretionary spending: {ratio * 100:.1f}%")

    if features.gambling_activity is not None:
        score = clamp(score - features.gambling_activity * 0.5)
        factors.append(f"Gambling activity: {features.gambling_activity:.1f}%")

    if features.budget_adherence is not None:
        score = clamp((score + features.budget_adherence) / 2)
        factors.append(f"Budget adherence: {features.budget_adherence:.1f}%")

    return score


def score_responsibility(
    features: FeatureVector,
    factors: List[str],
    settings: ScoringSettings = scoring_settings,
) -> float:
    score = settings.neutral_score

    consistency = _mean_present([
        features.bill_payment_consistency,
        features.rent_payment_history,
        features.utility_payment_patterns,
    ])
    if consistency is None:
        consistency = features.payment_timeliness

    if consistency is not None:
        score = clamp(consistency)
        factors.append(f"Payment consistency: {consistency:.1f}%")

    if features.subscription_management is not None:
        score = clamp((score + features.subscription_management) / 2)
        factors.append(f"Subscription management: {features.subscription_management:.1f}%")

    return score


def score_digital_behavior(
    features: FeatureVector,
    factors: List[str],
    settings: ScoringSettings = scoring_settings,
) -> float:
    score = settings.neutral_score

    if features.app_engagement_frequency is not None:
        score = clamp(score + (features.app_engagement_frequency - 50) * 0.3)
        factors.append(f"App engagement: {features.app_engagement_frequency:.1f}%")

    if features.document_submission_timeliness is not None:
        score = clamp(score + (features.document_submission_timeliness - 50) * 0.3)
        factors.append(f"Document timeliness: {features.document_submission_timeliness:.1f}%")

    if features.profile_completeness is not None:
        score = clamp(score + (features.profile_completeness - 50) * 0.2)
        factors.append(f"Profile completeness: {features.profile_completeness:.1f}%")

    if features.fraud_risk_signals is not None:
        score = clamp(score - features.fraud_risk_signals * 0.5)
        factors.append(f"Fraud risk signals: {features.fraud_risk_signals:.1f}%")

    return score


def assess_behavioral_patterns(
    features: FeatureVector,
    settings: ScoringSettings = scoring_settings,
) -> DimensionAssessment:
    """Assess the behavioral dimension."""
    factors: List[str] = []
    spending = score_spending(features, factors, settings)
    responsibility = score_responsibility(features, factors, settings)
    digital = score_digital_behavior(features, factors, settings)

    return DimensionAssessment(
        dimension=Dimension.BEHAVIORAL,
        score=_risk([
            (settings.weight_spending, spending),
            (settings.weight_responsibility, responsibility),
            (settings.weight_digital, digital),
        ]),
        confidence=_confidence(features, BEHAVIORAL_CONFIDENCE_FIELDS),
        factors=tuple(factors),
        sub_scores={
            "spending_patterns": spending,
            "financial_responsibility": responsibility,
            "digital_behavior": digital,
        },
    )


# =============================================================================
# Alternative Data
# =============================================================================

ALTERNATIVE_CONFIDENCE_FIELDS = (
    "professional_network_strength",
    "vehicle_ownership",
    "property_ownership",
    "residential_stability",
)


def score_social_capital(
    features: FeatureVector,
    factors: List[str],
    settings: ScoringSettings = scoring_settings,
) -> float:
    score = settings.neutral_score

    if features.professional_network_strength is not None:
        score = clamp(score + (features.professional_network_strength - 50) * 0.4)
        factors.append(f"Professional network: {features.professional_network_strength:.1f}%")

    if features.education_level is not None:
        score = clamp(score + (features.education_level - 50) * 0.3)
        factors.append(f"Education level: {features.education_level:.1f}%")

    if features.skill_marketability is not None:
        score = clamp(score + (features.skill_marketability - 50) * 0.2)
        factors.append(f"Skill marketability: {features.skill_marketability:.1f}%")

    if features.geographic_stability is not None:
        stability = tenure_score(features.geographic_stability, settings.stable_tenure_months)
        score = clamp((score + stability) / 2)
        factors.append(f"Geographic stability: {features.geographic_stability:g} months")

    return score


def score_assets(
    features: FeatureVector,
    factors: List[str],
    settings: ScoringSettings = scoring_settings,
) -> float:
    score = settings.neutral_score

    if features.property_ownership:
        score = clamp(score + 25)
        factors.append("Property ownership: Yes")

    if features.vehicle_ownership:
        score = clamp(score + 15)
        factors.append("Vehicle ownership: Yes")

    if features.business_ownership:
        score = clamp(score + 20)
        factors.append("Business ownership: Yes")

    if features.investment_accounts is not None:
        score = clamp(score + min(20.0, features.investment_accounts * 5))
        factors.append(f"Investment accounts: {features.investment_accounts}")

    return score


def score_lifestyle(
    features: FeatureVector,
    factors: List[str],
    settings: ScoringSettings = scoring_settings,
) -> float:
    score = settings.neutral_score

    if features.residential_stability is not None:
        score = tenure_score(features.residential_stability, settings.stable_tenure_months)
        factors.append(f"Residential stability: {features.residential_stability:g} months")

    if features.health_insurance_coverage:
        score = clamp(score + 15)
        factors.append("Health insurance: Yes")

    if features.professional_licenses is not None:
        score = clamp(score + min(15.0, features.professional_licenses * 5))
        factors.append(f"Professional licenses: {features.professional_licenses}")

    return score


def assess_alternative_signals(
    features: FeatureVector,
    settings: ScoringSettings = scoring_settings,
) -> DimensionAssessment:
    """Assess the alternative data and assets dimension."""
    factors: List[str] = []
    social = score_social_capital(features, factors, settings)
    assets = score_assets(features, factors, settings)
    lifestyle = score_lifestyle(features, factors, settings)

    return DimensionAssessment(
        dimension=Dimension.ALTERNATIVE,
        score=_risk([
            (settings.weight_social, social),
            (settings.weight_asset, assets),
            (settings.weight_lifestyle, lifestyle),
        ]),
        confidence=_confidence(features, ALTERNATIVE_CONFIDENCE_FIELDS),
        factors=tuple(factors),
        sub_scores={
            "social_capital": social,
            "asset_profile": assets,
            "lifestyle_stability": lifestyle,
        },
    )


# =============================================================================
# Environmental
# =============================================================================

def assess_environmental_factors(
    features: FeatureVector,
    settings: ScoringSettings = scoring_settings,
) -> DimensionAssessment:
    """
    Assess macroeconomic exposure.

    Only the macroeconomic sub-factor is modelled; it is blended with a
    neutral baseline. Regulatory exposure is reserved and not scored.
    """
    factors: List[str] = []
    macro = settings.neutral_score

    if features.industry_volatility is not None:
        macro = clamp(macro - features.industry_volatility * 0.3)
        factors.append(f"Industry volatility: {features.industry_volatility:.1f}%")

    if features.regional_economic_health is not None:
        macro = clamp(macro + (features.regional_economic_health - 50) * 0.4)
        factors.append(f"Regional economic health: {features.regional_economic_health:.1f}%")

    if features.interest_rate_trends is not None:
        macro = clamp(macro - max(0.0, features.interest_rate_trends) * 0.2)
        direction = "Increasing" if features.interest_rate_trends > 0 else "Decreasing"
        factors.append(f"Interest rate trends: {direction}")

    if features.inflation_impact is not None:
        macro = clamp(macro - features.inflation_impact * 0.2)
        factors.append(f"Inflation impact: {features.inflation_impact:.1f}%")

    weight = settings.weight_macroeconomic
    health = clamp(settings.neutral_score * (1 - weight) + macro * weight)

    return DimensionAssessment(
        dimension=Dimension.ENVIRONMENTAL,
        score=clamp(100.0 - health),
        confidence=settings.environmental_confidence,
        factors=tuple(factors),
        sub_scores={"macroeconomic": macro},
    )


# =============================================================================
# Fraud and Identity
# =============================================================================

FRAUD_CONFIDENCE_FIELDS = (
    "document_authenticity",
    "biometric_match_score",
    "address_verification",
    "unusual_transfer_patterns",
)


def score_identity(
    features: FeatureVector,
    factors: List[str],
    settings: ScoringSettings = scoring_settings,
) -> float:
    score = settings.neutral_score

    verification = _mean_present([
        features.document_authenticity,
        features.biometric_match_score,
    ])
    if verification is not None:
        score = clamp(verification)
        if features.document_authenticity is not None:
            factors.append(f"Document authenticity: {features.document_authenticity:.1f}%")
        if features.biometric_match_score is not None:
            factors.append(f"Biometric match: {features.biometric_match_score:.1f}%")

    if features.address_verification:
        score = clamp(score + 10)
        factors.append("Address verification: Verified")

    if features.phone_number_stability is not None:
        phone = tenure_score(features.phone_number_stability, settings.stable_phone_months)
        score = clamp((score + phone) / 2)
        factors.append(f"Phone stability: {features.phone_number_stability:g} months")

    return score


def score_transaction_anomaly(
    features: FeatureVector,
    factors: List[str],
    settings: ScoringSettings = scoring_settings,
) -> float:
    signals = (
        features.unusual_transfer_patterns,
        features.velocity_checks,
        features.geolocation_anomalies,
    )
    # Clean baseline only once at least one anomaly check has run
    score = 100.0 if any(s is not None for s in signals) else settings.neutral_score

    if features.unusual_transfer_patterns is not None:
        score = clamp(score - features.unusual_transfer_patterns * 0.5)
        factors.append(f"Unusual transfers: {features.unusual_transfer_patterns:.1f}%")

    if features.velocity_checks is not None:
        score = clamp(score - features.velocity_checks * 0.3)
        factors.append(f"Velocity risk: {features.velocity_checks:.1f}%")

    if features.geolocation_anomalies is not None:
        score = clamp(score - features.geolocation_anomalies * 0.4)
        factors.append(f"Geolocation anomalies: {features.geolocation_anomalies:.1f}%")

    if features.device_fingerprinting is not None:
        score = clamp(score + (features.device_fingerprinting - 50) * 0.3)
        factors.append(f"Device fingerprinting: {features.device_fingerprinting:.1f}%")

    return score


def assess_fraud_risk(
    features: FeatureVector,
    settings: ScoringSettings = scoring_settings,
) -> DimensionAssessment:
    """Assess the fraud and identity dimension."""
    factors: List[str] = []
    identity = score_identity(features, factors, settings)
    anomaly = score_transaction_anomaly(features, factors, settings)

    return DimensionAssessment(
        dimension=Dimension.FRAUD,
        score=_risk([
            (settings.weight_identity, identity),
            (settings.weight_transaction_anomaly, anomaly),
        ]),
        confidence=_confidence(features, FRAUD_CONFIDENCE_FIELDS),
        factors=tuple(factors),
        sub_scores={
            "identity_verification": identity,
            "transaction_anomaly": anomaly,
        },
    )
