"""
Continuous Monitoring for the Helix risk core.

Compares a subject's new helix score against the preceding one and the
current feature vector, raising typed alerts. Every rule is evaluated
independently; any combination may fire together.
"""

from typing import List, Optional

from helix.domain.entities import (
    AlertSeverity,
    AlertType,
    FeatureVector,
    MonitoringAlert,
    MonitoringResult,
    ScoreTrend,
)

from .settings import MonitoringSettings, get_monitoring_settings


class RiskMonitor:
    """
    Evaluates monitoring rules for one scoring event.

    Rules:
        - score_increase: delta above 10 (high severity and intervention
          above 20)
        - income_drop: income variance above 0.2 (always high severity)
        - payment_issues: payment timeliness below 70 (critical below 50)
    """

    def __init__(self, settings: Optional[MonitoringSettings] = None):
        self.settings = settings or get_monitoring_settings()

    def evaluate(
        self,
        current: float,
        previous: Optional[float],
        features: FeatureVector,
        subject_id: str = "",
    ) -> MonitoringResult:
        """
        Evaluate all monitoring rules.

        Args:
            current: The new helix score
            previous: The subject's preceding helix score, None on first scoring
            features: The feature vector behind the current score
            subject_id: Subject the result belongs to

        Returns:
            The monitoring result with every alert that fired
        """
        s = self.settings
        delta = current - previous if previous is not None else 0.0
        alerts: List[MonitoringAlert] = []
        intervention = False

        if previous is not None and delta > s.score_increase_threshold:
            severe = delta > s.score_increase_high_threshold
            alerts.append(
                MonitoringAlert(
                    alert_type=AlertType.SCORE_INCREASE,
                    severity=AlertSeverity.HIGH if severe else AlertSeverity.MEDIUM,
                    message=f"Risk score increased by {delta:.1f} points",
                )
            )
            intervention = intervention or severe

        variance = features.monthly_income_variance
        if variance is not None and variance > s.income_variance_threshold:
            alerts.append(
                MonitoringAlert(
                    alert_type=AlertType.INCOME_DROP,
                    severity=AlertSeverity.HIGH,
                    message=f"Significant income variance detected ({variance:.2f})",
                )
            )
            intervention = True

        timeliness = features.payment_timeliness
        if timeliness is not None and timeliness < s.payment_issue_threshold:
            critical = timeliness < s.payment_critical_threshold
            alerts.append(
                MonitoringAlert(
                    alert_type=AlertType.PAYMENT_ISSUES,
                    severity=AlertSeverity.CRITICAL if critical else AlertSeverity.HIGH,
                    message=f"Payment timeliness below threshold ({timeliness:.1f}%)",
                )
            )
            intervention = intervention or critical

        intervention = (
            intervention
            or any(alert.severity.is_urgent for alert in alerts)
            or delta > s.score_increase_high_threshold
            or current >= s.intervention_score
        )

        return MonitoringResult(
            subject_id=subject_id,
            current_score=current,
            previous_score=previous,
            delta=delta,
            trend=_trend(delta),
            alerts=tuple(alerts),
            intervention_required=intervention,
        )


def _trend(delta: float) -> ScoreTrend:
    # Higher scores are riskier, so a rising score is deteriorating
    if delta > 0:
        return ScoreTrend.DETERIORATING
    if delta < 0:
        return ScoreTrend.IMPROVING
    return ScoreTrend.STABLE
