from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from sessionguard.core.db import MongoModel
from sessionguard.core.modules.security_event.models import Severity
from sessionguard.utils import now


class AuditLogEntry(MongoModel):
    """Internal audit trail entry mirroring a security event with full request detail."""

    user_id: UUID
    action: str
    category: str = "security"
    severity: Severity
    details: dict[str, Any] = Field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None
    timestamp: datetime = Field(default_factory=now)
