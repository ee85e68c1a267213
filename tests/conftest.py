"""Shared pytest fixtures: in-memory stores and a detector wired to them."""

import asyncio
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest

from sessionguard.app import App
from sessionguard.core.modules.anomaly.detector import AnomalyDetector
from sessionguard.core.modules.anomaly.enforcer import ReauthEnforcer
from sessionguard.core.modules.anomaly.models import DetectionConfig
from sessionguard.core.modules.anomaly.recorder import AnomalyLogger
from sessionguard.core.modules.anomaly.statistics import StatisticsReporter
from sessionguard.core.modules.audit.models import AuditLogEntry
from sessionguard.core.modules.security_event.models import SecurityEvent, SecurityEventType
from sessionguard.core.modules.session.models import (
    RevocationReason,
    Session,
    SessionRevocation,
    SessionStatus,
)
from sessionguard.errors import PersistenceError

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)
USER_ID = UUID("87654321-4321-8765-4321-876543218765")
CHROME_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0.0.0"


class InMemorySessionStore:
    """Session store keeping documents in a dict, with failure and latency injection."""

    def __init__(self) -> None:
        self.sessions: dict[UUID, Session] = {}
        self.failing: set[str] = set()
        self.read_delay = 0.0
        self.recent_active_override: int | None = None

    def add(self, session: Session) -> Session:
        self.sessions[session.id] = session
        return session

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.failing:
            raise PersistenceError(f"{operation} failed")

    async def get_session(self, session_id: UUID) -> Session | None:
        self._maybe_fail("get_session")
        if self.read_delay:
            await asyncio.sleep(self.read_delay)
        session = self.sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    async def count_active_since(self, user_id: UUID, since: datetime) -> int:
        self._maybe_fail("count_active_since")
        if self.recent_active_override is not None:
            return self.recent_active_override
        return sum(
            1
            for s in self.sessions.values()
            if s.user_id == user_id
            and s.status == SessionStatus.ACTIVE
            and s.last_access_at is not None
            and s.last_access_at >= since
        )

    async def record_anomaly(self, session_id: UUID, flags: list[str], risk_score: int) -> None:
        self._maybe_fail("record_anomaly")
        session = self.sessions.get(session_id)
        if session is None:
            return
        session.security.flags.extend(flags)
        session.security.risk_score = max(session.security.risk_score, risk_score)

    async def revoke_session(self, session_id: UUID, note: str) -> Session | None:
        self._maybe_fail("revoke_session")
        session = self.sessions.get(session_id)
        if session is None:
            return None
        session.status = SessionStatus.REVOKED
        session.revocation = SessionRevocation(reason=RevocationReason.SECURITY_CONCERN, note=note)
        return session.model_copy(deep=True)

    async def record_activity(self, session_id: UUID, ip_address: str | None) -> None:
        session = self.sessions.get(session_id)
        if session is not None and session.is_active:
            session.last_access_ip = ip_address
            session.access_count += 1

    async def mark_second_factor_verified(self, session_id: UUID) -> bool:
        session = self.sessions.get(session_id)
        if session is None or not session.is_active:
            return False
        session.security.second_factor_verified_at = datetime.now(UTC)
        return True


class InMemorySecurityEventStore:
    def __init__(self) -> None:
        self.events: list[SecurityEvent] = []
        self.failing = False
        self.write_gate: asyncio.Event | None = None

    async def create_event(self, event: SecurityEvent) -> UUID:
        if self.write_gate is not None:
            await self.write_gate.wait()
        if self.failing:
            raise PersistenceError("security event write failed")
        self.events.append(event)
        return event.id

    async def find_events(self, user_id: UUID, event_type: SecurityEventType, since: datetime) -> list[SecurityEvent]:
        if self.failing:
            raise PersistenceError("security event query failed")
        matched = [e for e in self.events if e.user_id == user_id and e.event_type == event_type and e.timestamp >= since]
        return sorted(matched, key=lambda e: e.timestamp, reverse=True)


class InMemoryAuditLogStore:
    def __init__(self) -> None:
        self.entries: list[AuditLogEntry] = []
        self.failing = False

    async def create_entry(self, entry: AuditLogEntry) -> UUID:
        if self.failing:
            raise PersistenceError("audit log write failed")
        self.entries.append(entry)
        return entry.id


@pytest.fixture
def session_store():
    return InMemorySessionStore()


@pytest.fixture
def event_store():
    return InMemorySecurityEventStore()


@pytest.fixture
def audit_store():
    return InMemoryAuditLogStore()


@pytest.fixture
def detection_config():
    return DetectionConfig()


@pytest.fixture
def make_session(session_store):
    """Factory storing a session whose last activity is two hours before NOW."""

    def _make(**overrides) -> Session:
        fields = {
            "id": uuid4(),
            "user_id": USER_ID,
            "ip_address": "192.168.1.1",
            "user_agent": CHROME_UA,
            "last_access_at": NOW - timedelta(hours=2),
            "created_at": NOW - timedelta(hours=3),
        }
        fields.update(overrides)
        return session_store.add(Session(**fields))

    return _make


@pytest.fixture
def recorder(session_store, event_store, audit_store, detection_config):
    return AnomalyLogger(session_store, event_store, audit_store, detection_config.risk_score_thresholds)


@pytest.fixture
def make_detector(session_store, recorder):
    """Factory building a detector on the shared stores with a fixed clock."""

    def _make(config: DetectionConfig | None = None) -> AnomalyDetector:
        return AnomalyDetector(session_store, recorder, config or DetectionConfig(), clock=lambda: NOW)

    return _make


@pytest.fixture
def detector(make_detector):
    return make_detector()


@pytest.fixture
def enforcer(session_store, event_store):
    return ReauthEnforcer(session_store, event_store)


@pytest.fixture
def reporter(event_store):
    return StatisticsReporter(event_store, clock=lambda: NOW)


@pytest.fixture
def fixed_now():
    """Instant the detector and reporter fixtures treat as the current time."""
    return NOW


@pytest.fixture
def chrome_ua():
    return CHROME_UA


@pytest.fixture
def app(session_store, detector, enforcer, reporter, detection_config):
    """App wired to the in-memory stores instead of a database-backed Core."""
    instance = App.__new__(App)
    anomaly = SimpleNamespace(
        check_session_anomaly=detector.check_session_anomaly,
        force_reauthentication=enforcer.force_reauthentication,
        get_anomaly_statistics=reporter.get_anomaly_statistics,
        detection_config=detection_config,
    )
    instance._core = SimpleNamespace(
        config=SimpleNamespace(api_token="secret-token"),
        services=SimpleNamespace(anomaly=anomaly, session=session_store),
    )
    return instance
