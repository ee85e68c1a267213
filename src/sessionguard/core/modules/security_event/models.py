"""Append-only security events written by detection and enforcement."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from sessionguard.core.db import MongoModel
from sessionguard.utils import now

EVENT_SOURCE = "session_anomaly_detection"


class SecurityEventType(StrEnum):
    SESSION_ANOMALY_DETECTED = "SESSION_ANOMALY_DETECTED"
    FORCED_REAUTH = "FORCED_REAUTH"


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SecurityEventDetails(BaseModel):
    session_id: str
    anomaly_types: str | None = None  # Tags joined with ", "
    original_ip: str | None = None
    original_user_agent: str | None = None
    reason: str = ""

    def split_anomaly_types(self) -> list[str]:
        if not self.anomaly_types:
            return []
        return self.anomaly_types.split(", ")


class SecurityEvent(MongoModel):
    """Security event, never updated once written.

    Indexed on (user_id, event_type, timestamp) for statistics.
    """

    user_id: UUID
    event_type: SecurityEventType
    severity: Severity
    source: str = EVENT_SOURCE
    ip_address: str | None = None
    user_agent: str | None = None
    details: SecurityEventDetails
    risk_score: int | None = None
    timestamp: datetime = Field(default_factory=now)
