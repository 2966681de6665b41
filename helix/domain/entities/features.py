"""Canonical subject-level feature vector consumed by the risk scorer."""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional, Tuple

from helix.domain.exceptions import InvalidFeatureVectorException


@dataclass(frozen=True)
class FeatureVector:
    """
    Aggregate of every normalized document a subject has submitted.

    Every field is optional and None is the only "absent" marker, so a
    zero always means a measured zero. Ratios are fractions (0.3 = 30%)
    unless noted; scores are on a 0-100 scale; durations are in months.
    """

    # Financial stability
    monthly_income: Optional[float] = None
    monthly_income_variance: Optional[float] = None
    employment_duration: Optional[float] = None
    multiple_income_streams: Optional[int] = None
    average_monthly_balance: Optional[float] = None
    overdraft_frequency: Optional[float] = None
    savings_rate: Optional[float] = None
    emergency_fund_coverage: Optional[float] = None
    monthly_debt_payments: Optional[float] = None
    debt_to_income_ratio: Optional[float] = None
    payment_timeliness: Optional[float] = None
    credit_utilization: Optional[float] = None
    debt_diversification: Optional[int] = None

    # Behavioral
    discretionary_spending_ratio: Optional[float] = None
    gambling_activity: Optional[float] = None
    budget_adherence: Optional[float] = None
    bill_payment_consistency: Optional[float] = None
    rent_payment_history: Optional[float] = None
    utility_payment_patterns: Optional[float] = None
    subscription_management: Optional[float] = None
    app_engagement_frequency: Optional[float] = None
    document_submission_timeliness: Optional[float] = None
    profile_completeness: Optional[float] = None
    fraud_risk_signals: Optional[float] = None

    # Alternative data / assets
    professional_network_strength: Optional[float] = None
    education_level: Optional[float] = None
    skill_marketability: Optional[float] = None
    geographic_stability: Optional[float] = None
    vehicle_ownership: Optional[bool] = None
    property_ownership: Optional[bool] = None
    investment_accounts: Optional[int] = None
    business_ownership: Optional[bool] = None
    residential_stability: Optional[float] = None
    health_insurance_coverage: Optional[bool] = None
    professional_licenses: Optional[int] = None

    # Market and environmental
    industry_volatility: Optional[float] = None
    regional_economic_health: Optional[float] = None
    interest_rate_trends: Optional[float] = None
    inflation_impact: Optional[float] = None

    # Fraud and identity
    document_authenticity: Optional[float] = None
    biometric_match_score: Optional[float] = None
    address_verification: Optional[bool] = None
    phone_number_stability: Optional[float] = None
    unusual_transfer_patterns: Optional[float] = None
    velocity_checks: Optional[float] = None
    geolocation_anomalies: Optional[float] = None
    device_fingerprinting: Optional[float] = None

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def is_present(self, name: str) -> bool:
        return getattr(self, name) is not None

    def present_fields(self) -> Tuple[str, ...]:
        """Names of the fields that carry a value, in canonical order."""
        return tuple(f.name for f in fields(self) if getattr(self, f.name) is not None)

    def with_overrides(self, **changes: Any) -> "FeatureVector":
        """
        Return a copy with the given fields replaced.

        Raises:
            InvalidFeatureVectorException: If a name is not a feature field
        """
        known = set(self.field_names())
        for name in changes:
            if name not in known:
                raise InvalidFeatureVectorException(name, "unknown feature")
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Canonical dict form; absent fields are omitted."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeatureVector":
        known = set(cls.field_names())
        return cls(**{k: v for k, v in data.items() if k in known})
