from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from sessionguard.core.core import Service
from sessionguard.core.modules.anomaly.detector import AnomalyDetector
from sessionguard.core.modules.anomaly.enforcer import ReauthEnforcer
from sessionguard.core.modules.anomaly.models import AnomalyAssessment, AnomalyStatistics, DetectionConfig
from sessionguard.core.modules.anomaly.recorder import AnomalyLogger
from sessionguard.core.modules.anomaly.statistics import StatisticsReporter
from sessionguard.core.modules.session.models import RequestContext

logger = structlog.get_logger(__name__)


class AnomalyService(Service):
    """Wires the detection engine to the MongoDB-backed stores."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._config: DetectionConfig | None = None
        self._detector: AnomalyDetector | None = None
        self._recorder: AnomalyLogger | None = None
        self._enforcer: ReauthEnforcer | None = None
        self._reporter: StatisticsReporter | None = None

    async def on_start(self) -> None:
        services = self.core.services
        self._config = DetectionConfig.from_config(self.core.config)
        self._recorder = AnomalyLogger(
            services.session, services.security_event, services.audit, self._config.risk_score_thresholds
        )
        self._detector = AnomalyDetector(services.session, self._recorder, self._config)
        self._enforcer = ReauthEnforcer(services.session, services.security_event)
        self._reporter = StatisticsReporter(services.security_event)
        logger.debug("anomaly_service_started", config=self._config.model_dump())

    async def on_stop(self) -> None:
        """Flush anomaly writes still in flight."""
        if self._recorder is not None:
            await self._recorder.drain()

    @property
    def detection_config(self) -> DetectionConfig:
        if self._config is None:
            raise RuntimeError("Anomaly service not started")
        return self._config

    @property
    def detector(self) -> AnomalyDetector:
        if self._detector is None:
            raise RuntimeError("Anomaly service not started")
        return self._detector

    @property
    def enforcer(self) -> ReauthEnforcer:
        if self._enforcer is None:
            raise RuntimeError("Anomaly service not started")
        return self._enforcer

    @property
    def reporter(self) -> StatisticsReporter:
        if self._reporter is None:
            raise RuntimeError("Anomaly service not started")
        return self._reporter

    async def check_session_anomaly(
        self, session_id: UUID, context: RequestContext, timeout: float | None = None
    ) -> AnomalyAssessment:
        return await self.detector.check_session_anomaly(session_id, context, timeout)

    async def force_reauthentication(self, session_id: UUID, reason: str) -> bool:
        return await self.enforcer.force_reauthentication(session_id, reason)

    async def get_anomaly_statistics(self, user_id: UUID, days: int = 30) -> AnomalyStatistics:
        return await self.reporter.get_anomaly_statistics(user_id, days)
