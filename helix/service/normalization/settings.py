"""
Normalization Settings for the Helix document normalizer.

Environment variables use the NORMALIZATION_ prefix:
    NORMALIZATION_BIWEEKLY_MONTHLY_MULTIPLIER=2.17
    NORMALIZATION_NEUTRAL_TIMELINESS=50

Usage:
    from helix.service.normalization.settings import normalization_settings

    # Or create custom settings for testing
    custom = NormalizationSettings(neutral_timeliness=60)
"""

from functools import lru_cache
from typing import Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class NormalizationSettings(BaseSettings):
    """
    Configurable constants for per-document normalization.

    All settings can be overridden via environment variables with the
    NORMALIZATION_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="NORMALIZATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # === Income ===
    biweekly_monthly_multiplier: float = Field(
        default=2.17,
        gt=0.0,
        description="Pay periods per month assumed when a pay stub has no explicit period",
    )
    tax_return_months: int = Field(
        default=12,
        gt=0,
        description="Months used to convert annual tax-return income to monthly",
    )

    # === Payment Timeliness ===
    timeliness_keywords: Tuple[str, ...] = Field(
        default=("payment", "bill", "utility"),
        description="Description tokens that mark an outgoing transaction as a bill payment",
    )
    neutral_timeliness: float = Field(
        default=50.0,
        ge=0.0,
        le=100.0,
        description="Timeliness reported when too few payments exist to measure regularity",
    )
    min_timeliness_payments: int = Field(
        default=2,
        ge=2,
        description="Minimum qualifying payments needed to measure interval regularity",
    )

    @field_validator("timeliness_keywords")
    @classmethod
    def lowercase_keywords(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        """Keywords are matched case-insensitively."""
        keywords = tuple(k.strip().lower() for k in v if k.strip())
        if not keywords:
            raise ValueError("At least one timeliness keyword is required")
        return keywords


@lru_cache
def get_normalization_settings() -> NormalizationSettings:
    """Get cached normalization settings instance."""
    return NormalizationSettings()


normalization_settings = get_normalization_settings()
