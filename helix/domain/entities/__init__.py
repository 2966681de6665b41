"""Domain Entities - Core business objects."""

from .alert import (
    AlertSeverity,
    AlertType,
    MonitoringAlert,
    MonitoringResult,
    RiskAlert,
    ScoreTrend,
)
from .document import (
    DocumentKind,
    DocumentMetrics,
    DocumentStatus,
    FinancialDocument,
    Transaction,
)
from .features import FeatureVector
from .risk import (
    Dimension,
    DimensionAssessment,
    KeyFactor,
    RiskAssessment,
    RiskCategory,
    RiskExplanation,
    RiskFlags,
    RiskGrade,
    RiskProfile,
    RiskProfileHistoryEntry,
    ScenarioOutcome,
)

__all__ = [
    "AlertSeverity",
    "AlertType",
    "MonitoringAlert",
    "MonitoringResult",
    "RiskAlert",
    "ScoreTrend",
    "DocumentKind",
    "DocumentMetrics",
    "DocumentStatus",
    "FinancialDocument",
    "Transaction",
    "FeatureVector",
    "Dimension",
    "DimensionAssessment",
    "KeyFactor",
    "RiskAssessment",
    "RiskCategory",
    "RiskExplanation",
    "RiskFlags",
    "RiskGrade",
    "RiskProfile",
    "RiskProfileHistoryEntry",
    "ScenarioOutcome",
]
