"""Risk aggregation: summing signal contributions and mapping scores to actions."""

from collections.abc import Iterable

from sessionguard.config import RiskThresholds
from sessionguard.core.modules.anomaly.models import AnomalyAction, SignalResult
from sessionguard.core.modules.security_event.models import Severity


def total_risk(results: Iterable[SignalResult]) -> int:
    """Sum the contributions of triggered signals. The total is not capped."""
    return sum(result.risk_increase for result in results if result.triggered)


def action_for_score(risk_score: int, thresholds: RiskThresholds) -> AnomalyAction:
    # critical and high share FORCE_REAUTH; critical only changes the severity label
    if risk_score >= thresholds.high:
        return AnomalyAction.FORCE_REAUTH
    if risk_score >= thresholds.medium:
        return AnomalyAction.REQUIRE_2FA
    if risk_score >= thresholds.low:
        return AnomalyAction.WARN
    return AnomalyAction.ALLOW


def severity_for_score(risk_score: int, thresholds: RiskThresholds) -> Severity:
    if risk_score >= thresholds.critical:
        return Severity.CRITICAL
    if risk_score >= thresholds.high:
        return Severity.HIGH
    if risk_score >= thresholds.medium:
        return Severity.MEDIUM
    return Severity.LOW
