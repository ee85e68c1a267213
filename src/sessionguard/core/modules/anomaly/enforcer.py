from uuid import UUID

import structlog

from sessionguard.core.modules.anomaly.stores import SecurityEventStore, SessionStore
from sessionguard.core.modules.security_event.models import (
    SecurityEvent,
    SecurityEventDetails,
    SecurityEventType,
    Severity,
)

logger = structlog.get_logger(__name__)


class ReauthEnforcer:
    """Revokes sessions so their holder has to log in again."""

    def __init__(self, sessions: SessionStore, events: SecurityEventStore) -> None:
        self._sessions = sessions
        self._events = events

    async def force_reauthentication(self, session_id: UUID, reason: str = "Session anomaly detected") -> bool:
        """Revoke the session and record a FORCED_REAUTH event.

        Returns False when the session does not exist or could not be revoked.
        Once the revocation is stored the result is True even if the event
        write fails.
        """
        try:
            session = await self._sessions.revoke_session(session_id, reason)
        except Exception:
            logger.exception("session_revocation_failed", session_id=session_id)
            return False

        if session is None:
            logger.info("forced_reauth_session_not_found", session_id=session_id)
            return False

        event = SecurityEvent(
            user_id=session.user_id,
            event_type=SecurityEventType.FORCED_REAUTH,
            severity=Severity.HIGH,
            ip_address=session.ip_address,
            details=SecurityEventDetails(session_id=str(session.id), reason=reason),
        )
        try:
            await self._events.create_event(event)
        except Exception:
            logger.exception("forced_reauth_event_write_failed", session_id=session_id)

        logger.warning("forced_reauthentication", session_id=session_id, user_id=session.user_id, reason=reason)
        return True
