"""Anomaly detection types: tags, actions, assessments, and detection settings."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from sessionguard.config import Config, RiskThresholds


class AnomalyType(StrEnum):
    """Closed set of anomaly tags.

    The first four are raised by signal checks; the rest are terminal
    outcomes produced before or instead of running them.
    """

    IP_DRIFT = "IP_DRIFT"
    USER_AGENT_DRIFT = "USER_AGENT_DRIFT"
    IMPOSSIBLE_TRAVEL = "IMPOSSIBLE_TRAVEL"
    RAPID_SESSION_SWITCHING = "RAPID_SESSION_SWITCHING"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_INACTIVE = "SESSION_INACTIVE"
    CHECK_ERROR = "CHECK_ERROR"


class AnomalyAction(StrEnum):
    """Corrective action, ordered from least to most restrictive."""

    ALLOW = "ALLOW"
    WARN = "WARN"
    REQUIRE_2FA = "REQUIRE_2FA"
    FORCE_REAUTH = "FORCE_REAUTH"


class SignalResult(BaseModel):
    """Outcome of one signal check."""

    triggered: bool = False
    risk_increase: int = Field(0, ge=0)

    model_config = ConfigDict(frozen=True)


NO_SIGNAL = SignalResult()


class AnomalyAssessment(BaseModel):
    """Decision for a single request, never persisted as-is."""

    has_anomaly: bool = Field(..., alias="hasAnomaly")
    anomaly_types: list[AnomalyType] = Field(default_factory=list, alias="anomalyTypes")
    risk_score: int = Field(..., ge=0, alias="riskScore")
    action: AnomalyAction

    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)

    @classmethod
    def terminal(cls, anomaly_type: AnomalyType, risk_score: int) -> "AnomalyAssessment":
        return cls(has_anomaly=True, anomaly_types=[anomaly_type], risk_score=risk_score, action=AnomalyAction.FORCE_REAUTH)


class DetectionConfig(BaseModel):
    """Immutable detection settings handed to the engine at construction."""

    strict_user_agent_matching: bool = False
    allow_ip_change: bool = False
    impossible_travel_threshold_minutes: float = Field(60, gt=0)
    risk_score_thresholds: RiskThresholds = RiskThresholds()
    rapid_switch_window_minutes: float = Field(5, gt=0)
    rapid_switch_max_sessions: int = Field(3, ge=0)
    store_timeout_seconds: float = Field(2.0, gt=0)
    second_factor_window_minutes: float = Field(5, ge=0)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_config(cls, config: Config) -> "DetectionConfig":
        return cls.model_validate(config.model_dump(include=set(cls.model_fields)))


class RecentAnomalyEvent(BaseModel):
    timestamp: datetime
    severity: str
    anomaly_types: str | None = Field(None, alias="anomalyTypes")
    risk_score: int | None = Field(None, alias="riskScore")

    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)


class AnomalyStatistics(BaseModel):
    """Summary of a user's session anomaly history over a trailing window."""

    total_anomalies: int = Field(0, alias="totalAnomalies")
    anomaly_types: dict[str, int] = Field(default_factory=dict, alias="anomalyTypes")
    recent_events: list[RecentAnomalyEvent] = Field(default_factory=list, alias="recentEvents")
    average_risk_score: float = Field(0, alias="averageRiskScore")

    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)
