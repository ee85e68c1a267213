"""Storage contracts consumed by the anomaly engine.

The MongoDB services satisfy these structurally; tests use in-memory versions.
"""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from sessionguard.core.modules.audit.models import AuditLogEntry
from sessionguard.core.modules.security_event.models import SecurityEvent, SecurityEventType
from sessionguard.core.modules.session.models import Session


class SessionStore(Protocol):
    async def get_session(self, session_id: UUID) -> Session | None: ...

    async def count_active_since(self, user_id: UUID, since: datetime) -> int: ...

    async def record_anomaly(self, session_id: UUID, flags: list[str], risk_score: int) -> None:
        """Append flags and set risk score to max(stored, risk_score) atomically."""
        ...

    async def revoke_session(self, session_id: UUID, note: str) -> Session | None: ...


class SecurityEventStore(Protocol):
    async def create_event(self, event: SecurityEvent) -> UUID: ...

    async def find_events(self, user_id: UUID, event_type: SecurityEventType, since: datetime) -> list[SecurityEvent]: ...


class AuditLogStore(Protocol):
    async def create_entry(self, entry: AuditLogEntry) -> UUID: ...
