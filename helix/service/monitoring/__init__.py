"""
Continuous Monitoring for the Helix risk core
"""

from .settings import MonitoringSettings, monitoring_settings
from .monitor import RiskMonitor

__all__ = [
    "MonitoringSettings",
    "monitoring_settings",
    "RiskMonitor",
]
