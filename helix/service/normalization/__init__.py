"""
Document Metric Normalizer for the Helix risk core
"""

from .settings import NormalizationSettings, normalization_settings
from .bank_statement import (
    calculate_average_monthly_balance,
    calculate_payment_timeliness,
    calculate_savings_rate,
    count_overdrafts,
)
from .normalizer import DocumentNormalizer

__all__ = [
    # Settings
    "NormalizationSettings",
    "normalization_settings",
    # Bank statement metrics
    "calculate_average_monthly_balance",
    "calculate_payment_timeliness",
    "calculate_savings_rate",
    "count_overdrafts",
    # Normalizer
    "DocumentNormalizer",
]
