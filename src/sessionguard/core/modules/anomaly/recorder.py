import asyncio

import structlog

from sessionguard.config import RiskThresholds
from sessionguard.core.modules.anomaly.models import AnomalyType
from sessionguard.core.modules.anomaly.scoring import severity_for_score
from sessionguard.core.modules.anomaly.stores import AuditLogStore, SecurityEventStore, SessionStore
from sessionguard.core.modules.audit.models import AuditLogEntry
from sessionguard.core.modules.security_event.models import (
    SecurityEvent,
    SecurityEventDetails,
    SecurityEventType,
)
from sessionguard.core.modules.session.models import RequestContext, Session

logger = structlog.get_logger(__name__)


class AnomalyLogger:
    """Persists detected anomalies: security event, audit entry, and session metadata.

    Each write is a separate failure domain. Failures are logged for operators
    and never reach the caller of the detection decision.
    """

    def __init__(
        self,
        sessions: SessionStore,
        events: SecurityEventStore,
        audit: AuditLogStore,
        thresholds: RiskThresholds,
    ) -> None:
        self._sessions = sessions
        self._events = events
        self._audit = audit
        self._thresholds = thresholds
        self._tasks: set[asyncio.Task[None]] = set()

    async def log_session_anomaly(
        self,
        session: Session,
        anomaly_types: list[AnomalyType],
        risk_score: int,
        context: RequestContext,
    ) -> None:
        severity = severity_for_score(risk_score, self._thresholds)
        tags = [str(anomaly_type) for anomaly_type in anomaly_types]
        joined_tags = ", ".join(tags)
        log = logger.bind(session_id=session.id, user_id=session.user_id)

        event = SecurityEvent(
            user_id=session.user_id,
            event_type=SecurityEventType.SESSION_ANOMALY_DETECTED,
            severity=severity,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            details=SecurityEventDetails(
                session_id=str(session.id),
                anomaly_types=joined_tags,
                original_ip=session.ip_address,
                original_user_agent=session.user_agent,
                reason=f"Session anomaly detected: {joined_tags}",
            ),
            risk_score=risk_score,
        )
        written: dict[str, bool] = {}
        try:
            await self._events.create_event(event)
            written["security_event"] = True
        except Exception:
            written["security_event"] = False
            log.exception("security_event_write_failed", anomaly_types=tags)

        entry = AuditLogEntry(
            user_id=session.user_id,
            action=SecurityEventType.SESSION_ANOMALY_DETECTED.value,
            severity=severity,
            details={
                "session_id": str(session.id),
                "anomaly_types": tags,
                "risk_score": risk_score,
                "original_ip": session.ip_address,
                "current_ip": context.ip_address,
                "original_user_agent": session.user_agent,
                "current_user_agent": context.user_agent,
            },
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )
        try:
            await self._audit.create_entry(entry)
            written["audit_entry"] = True
        except Exception:
            written["audit_entry"] = False
            log.exception("audit_entry_write_failed", anomaly_types=tags)

        try:
            await self._sessions.record_anomaly(session.id, tags, risk_score)
            written["session_security"] = True
        except Exception:
            written["session_security"] = False
            log.exception("session_security_update_failed", anomaly_types=tags)

        if not any(written.values()):
            log.error("session_anomaly_not_logged", anomaly_types=tags, risk_score=risk_score)
            return
        log.info(
            "session_anomaly_logged", anomaly_types=tags, risk_score=risk_score, severity=severity, written=written
        )

    def schedule(
        self,
        session: Session,
        anomaly_types: list[AnomalyType],
        risk_score: int,
        context: RequestContext,
    ) -> None:
        """Log the anomaly in the background so the decision never waits on writes."""
        task = asyncio.create_task(self.log_session_anomaly(session, anomaly_types, risk_score, context))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for every scheduled write to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
