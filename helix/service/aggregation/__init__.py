"""
Feature Aggregator for the Helix risk core
"""

from .settings import AggregationSettings, aggregation_settings
from .feature_aggregator import FeatureAggregator

__all__ = [
    "AggregationSettings",
    "aggregation_settings",
    "FeatureAggregator",
]
