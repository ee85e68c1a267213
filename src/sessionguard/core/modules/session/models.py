"""Session records evaluated on every authenticated request."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from sessionguard.core.db import MongoModel
from sessionguard.utils import now


class SessionStatus(StrEnum):
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"
    LOGGED_OUT = "logged_out"


class RevocationReason(StrEnum):
    MANUAL = "manual"
    PASSWORD_CHANGE = "password_change"
    SECURITY_CONCERN = "security_concern"
    ADMIN_ACTION = "admin_action"
    USER_REQUEST = "user_request"
    TIMEOUT = "timeout"
    LOGOUT = "logout"


class SessionSecurity(BaseModel):
    """Security metadata accumulated over the session lifetime."""

    flags: list[str] = Field(default_factory=list)  # Anomaly tags, appended without deduplication
    risk_score: int = Field(0, ge=0)  # Highest score ever recorded for this session
    second_factor_verified_at: datetime | None = None


class SessionRevocation(BaseModel):
    revoked_at: datetime = Field(default_factory=now)
    reason: RevocationReason = RevocationReason.SECURITY_CONCERN
    note: str = ""


class Session(MongoModel):
    """Authenticated session as created at login by the identity service.

    Indexed on (user_id, status, last_access_at) for rapid switching counts.
    """

    user_id: UUID
    status: SessionStatus = SessionStatus.ACTIVE
    ip_address: str | None = None  # Address trusted at login
    user_agent: str | None = None
    last_access_at: datetime | None = Field(default_factory=now)
    last_access_ip: str | None = None
    access_count: int = 1
    security: SessionSecurity = Field(default_factory=SessionSecurity)
    revocation: SessionRevocation | None = None
    created_at: datetime = Field(default_factory=now)
    expires_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE


class RequestContext(BaseModel):
    """Attributes of the inbound request being evaluated against its session."""

    ip_address: str | None = Field(None, description="Source address of the request")
    user_agent: str | None = Field(None, description="User-Agent header of the request")
