"""
Monitoring Settings for Helix continuous monitoring.

Environment variables use the MONITORING_ prefix:
    MONITORING_SCORE_INCREASE_THRESHOLD=10
    MONITORING_PAYMENT_ISSUE_THRESHOLD=70
"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MonitoringSettings(BaseSettings):
    """Alert thresholds for comparing consecutive risk profiles."""

    model_config = SettingsConfigDict(
        env_prefix="MONITORING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    score_increase_threshold: float = Field(
        default=10.0,
        ge=0.0,
        description="Score increase above which a score_increase alert is raised",
    )
    score_increase_high_threshold: float = Field(
        default=20.0,
        ge=0.0,
        description="Score increase above which the alert is high severity and needs intervention",
    )
    income_variance_threshold: float = Field(
        default=0.2,
        ge=0.0,
        description="Income coefficient of variation above which income_drop is raised",
    )
    payment_issue_threshold: float = Field(
        default=70.0,
        ge=0.0,
        le=100.0,
        description="Payment timeliness below this raises payment_issues",
    )
    payment_critical_threshold: float = Field(
        default=50.0,
        ge=0.0,
        le=100.0,
        description="Payment timeliness below this is critical and needs intervention",
    )
    intervention_score: float = Field(
        default=66.0,
        ge=0.0,
        le=100.0,
        description="Current score at or above which intervention is always required",
    )

    @model_validator(mode="after")
    def validate_thresholds(self) -> "MonitoringSettings":
        if self.score_increase_high_threshold < self.score_increase_threshold:
            raise ValueError("score_increase_high_threshold must be >= score_increase_threshold")
        if self.payment_critical_threshold > self.payment_issue_threshold:
            raise ValueError("payment_critical_threshold must be <= payment_issue_threshold")
        return self


@lru_cache
def get_monitoring_settings() -> MonitoringSettings:
    """Get cached monitoring settings instance."""
    return MonitoringSettings()


monitoring_settings = get_monitoring_settings()
