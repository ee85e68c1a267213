import secrets
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import assert_never
from uuid import UUID

import structlog

from sessionguard.config import Config
from sessionguard.core.core import Core
from sessionguard.core.modules.anomaly.models import AnomalyAction, AnomalyAssessment, AnomalyStatistics
from sessionguard.core.modules.session.models import RequestContext
from sessionguard.errors import NotFoundError, SecondFactorRequiredError, SessionAnomalyError
from sessionguard.utils import minutes_ago

logger = structlog.get_logger(__name__)


class App:
    """Facade for all application operations, delegating to Core services."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    def is_api_token_valid(self, token: str) -> bool:
        return secrets.compare_digest(token.encode(), self._core.config.api_token.encode())

    async def check_session_anomaly(
        self, session_id: UUID, context: RequestContext, timeout: float | None = None
    ) -> AnomalyAssessment:
        """Evaluate a request against its session without acting on the result.

        `timeout` bounds each store read in seconds, defaulting to the configured one.
        """
        return await self._core.services.anomaly.check_session_anomaly(session_id, context, timeout)

    async def force_reauthentication(self, session_id: UUID, reason: str = "Session anomaly detected") -> bool:
        """Revoke a session. False when the session does not exist."""
        return await self._core.services.anomaly.force_reauthentication(session_id, reason)

    async def get_anomaly_statistics(self, user_id: UUID, days: int = 30) -> AnomalyStatistics:
        return await self._core.services.anomaly.get_anomaly_statistics(user_id, days)

    async def authorize_request(self, session_id: UUID, context: RequestContext, strict: bool = False) -> AnomalyAssessment:
        """Evaluate a request and enact the resulting action.

        In strict mode any anomaly forces re-authentication, for sensitive
        operations such as password changes or fund transfers.

        Raises:
            SessionAnomalyError: the session was revoked and the client must log in again
            SecondFactorRequiredError: a recent second factor confirmation is missing
        """
        assessment = await self.check_session_anomaly(session_id, context)
        action = assessment.action
        if strict and assessment.has_anomaly:
            action = AnomalyAction.FORCE_REAUTH

        match action:
            case AnomalyAction.FORCE_REAUTH:
                tags = [str(anomaly_type) for anomaly_type in assessment.anomaly_types]
                await self.force_reauthentication(session_id, f"Session anomaly detected: {', '.join(tags)}")
                raise SessionAnomalyError(tags, assessment.risk_score)
            case AnomalyAction.REQUIRE_2FA:
                if not await self._has_recent_second_factor(session_id):
                    raise SecondFactorRequiredError(
                        [str(anomaly_type) for anomaly_type in assessment.anomaly_types], assessment.risk_score
                    )
            case AnomalyAction.WARN:
                logger.warning(
                    "session_anomaly_warning",
                    session_id=session_id,
                    anomaly_types=assessment.anomaly_types,
                    risk_score=assessment.risk_score,
                )
            case AnomalyAction.ALLOW:
                pass
            case _:
                assert_never(action)

        await self._record_activity(session_id, context)
        return assessment

    async def confirm_second_factor(self, session_id: UUID) -> None:
        """Record that the session holder just passed a second factor check."""
        if not await self._core.services.session.mark_second_factor_verified(session_id):
            raise NotFoundError(f"Active session '{session_id}' not found")

    async def _has_recent_second_factor(self, session_id: UUID) -> bool:
        session = await self._core.services.session.get_session(session_id)
        if session is None or session.security.second_factor_verified_at is None:
            return False
        window = self._core.services.anomaly.detection_config.second_factor_window_minutes
        return session.security.second_factor_verified_at >= minutes_ago(window)

    async def _record_activity(self, session_id: UUID, context: RequestContext) -> None:
        try:
            await self._core.services.session.record_activity(session_id, context.ip_address)
        except Exception:
            logger.exception("session_activity_update_failed", session_id=session_id)
