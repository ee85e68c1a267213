import asyncio
from collections.abc import Callable
from datetime import datetime
from uuid import UUID

import structlog

from sessionguard.core.modules.anomaly.models import AnomalyAssessment, AnomalyType, DetectionConfig
from sessionguard.core.modules.anomaly.recorder import AnomalyLogger
from sessionguard.core.modules.anomaly.scoring import action_for_score, total_risk
from sessionguard.core.modules.anomaly.signals import (
    check_impossible_travel,
    check_ip_drift,
    check_rapid_session_switching,
    check_user_agent_drift,
)
from sessionguard.core.modules.anomaly.stores import SessionStore
from sessionguard.core.modules.session.models import RequestContext, Session
from sessionguard.utils import minutes_ago, now

logger = structlog.get_logger(__name__)


class AnomalyDetector:
    """Decides whether a request still plausibly belongs to its session.

    Fail-secure: a missing or inactive session, and any error while
    evaluating (store timeouts included), end in FORCE_REAUTH.
    """

    def __init__(
        self,
        sessions: SessionStore,
        recorder: AnomalyLogger,
        config: DetectionConfig,
        clock: Callable[[], datetime] = now,
    ) -> None:
        self._sessions = sessions
        self._recorder = recorder
        self._config = config
        self._clock = clock

    async def check_session_anomaly(
        self, session_id: UUID, context: RequestContext, timeout: float | None = None
    ) -> AnomalyAssessment:
        """Evaluate one request against its session.

        Args:
            session_id: Session the request claims to belong to
            context: Source address and User-Agent of the request
            timeout: Bound in seconds for each store read, defaults to the configured one
        """
        if timeout is None:
            timeout = self._config.store_timeout_seconds
        try:
            return await self._evaluate(session_id, context, timeout)
        except Exception:
            logger.exception("session_anomaly_check_failed", session_id=session_id)
            return AnomalyAssessment.terminal(AnomalyType.CHECK_ERROR, 75)

    async def _evaluate(self, session_id: UUID, context: RequestContext, timeout: float) -> AnomalyAssessment:
        async with asyncio.timeout(timeout):
            session = await self._sessions.get_session(session_id)

        if session is None:
            return AnomalyAssessment.terminal(AnomalyType.SESSION_NOT_FOUND, 100)
        if not session.is_active:
            return AnomalyAssessment.terminal(AnomalyType.SESSION_INACTIVE, 100)

        current_time = self._clock()

        # The session count is the only store-backed signal; the pure checks run while it is in flight
        async with asyncio.TaskGroup() as tg:
            recent_sessions = tg.create_task(self._count_recent_sessions(session, current_time, timeout))
            ip_drift = check_ip_drift(session, context.ip_address, self._config)
            user_agent_drift = check_user_agent_drift(session, context.user_agent, self._config)
            impossible_travel = check_impossible_travel(session, ip_drift, current_time, self._config)

        signals = [
            (AnomalyType.IP_DRIFT, ip_drift),
            (AnomalyType.USER_AGENT_DRIFT, user_agent_drift),
            (AnomalyType.IMPOSSIBLE_TRAVEL, impossible_travel),
            (AnomalyType.RAPID_SESSION_SWITCHING, check_rapid_session_switching(recent_sessions.result(), self._config)),
        ]
        anomaly_types = [anomaly_type for anomaly_type, result in signals if result.triggered]
        risk_score = total_risk(result for _, result in signals)
        action = action_for_score(risk_score, self._config.risk_score_thresholds)

        if anomaly_types:
            logger.info(
                "session_anomaly_detected",
                session_id=session.id,
                user_id=session.user_id,
                anomaly_types=anomaly_types,
                risk_score=risk_score,
                action=action,
            )
            self._recorder.schedule(session, anomaly_types, risk_score, context)

        return AnomalyAssessment(
            has_anomaly=bool(anomaly_types),
            anomaly_types=anomaly_types,
            risk_score=risk_score,
            action=action,
        )

    async def _count_recent_sessions(self, session: Session, current_time: datetime, timeout: float) -> int:
        since = minutes_ago(self._config.rapid_switch_window_minutes, current_time)
        async with asyncio.timeout(timeout):
            return await self._sessions.count_active_since(session.user_id, since)
