"""
Aggregation Settings for the Helix feature aggregator.

Environment variables use the AGGREGATION_ prefix:
    AGGREGATION_TAX_OVERRIDE_THRESHOLD=0.2
    AGGREGATION_DEFAULT_DOCUMENT_AUTHENTICITY=90
"""

from functools import lru_cache
from typing import Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AggregationSettings(BaseSettings):
    """
    Configurable constants for reconciling documents into a feature vector.

    All settings can be overridden via environment variables with the
    AGGREGATION_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="AGGREGATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # === Income ===
    tax_override_threshold: float = Field(
        default=0.2,
        ge=0.0,
        description="Relative difference above which tax-return income supersedes pay stubs",
    )

    # === Cash Flow ===
    essential_expense_ratio: float = Field(
        default=0.7,
        gt=0.0,
        le=1.0,
        description="Share of monthly income assumed to be essential spending",
    )

    # === Debt Detection ===
    debt_keywords: Tuple[str, ...] = Field(
        default=(
            "loan",
            "credit",
            "mortgage",
            "car payment",
            "auto loan",
            "student loan",
            "personal loan",
            "debt",
            "minimum payment",
        ),
        description="Description substrings that mark a transaction as a debt payment",
    )
    recurring_amount_tolerance: float = Field(
        default=1.0,
        ge=0.0,
        description="Amounts within this distance are treated as the same obligation",
    )
    min_recurring_occurrences: int = Field(
        default=2,
        ge=1,
        description="Occurrences needed before a payment counts as recurring",
    )

    # === Defaults ===
    default_document_authenticity: float = Field(default=90.0, ge=0.0, le=100.0)
    default_address_verification: bool = True
    default_phone_number_stability: float = Field(
        default=12.0,
        ge=0.0,
        description="Phone number stability in months when not derivable",
    )

    @field_validator("debt_keywords")
    @classmethod
    def lowercase_keywords(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        """Keywords are matched case-insensitively."""
        return tuple(k.strip().lower() for k in v if k.strip())


@lru_cache
def get_aggregation_settings() -> AggregationSettings:
    """Get cached aggregation settings instance."""
    return AggregationSettings()


aggregation_settings = get_aggregation_settings()
