from collections import Counter
from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import UUID

import structlog

from sessionguard.core.modules.anomaly.models import AnomalyStatistics, RecentAnomalyEvent
from sessionguard.core.modules.anomaly.stores import SecurityEventStore
from sessionguard.core.modules.security_event.models import SecurityEventType
from sessionguard.utils import now

logger = structlog.get_logger(__name__)

RECENT_EVENTS_LIMIT = 10


class StatisticsReporter:
    """Summarizes a user's session anomaly events. Read-only and never raises."""

    def __init__(self, events: SecurityEventStore, clock: Callable[[], datetime] = now) -> None:
        self._events = events
        self._clock = clock

    async def get_anomaly_statistics(self, user_id: UUID, days: int = 30) -> AnomalyStatistics:
        try:
            since = self._clock() - timedelta(days=days)
            events = await self._events.find_events(user_id, SecurityEventType.SESSION_ANOMALY_DETECTED, since)
        except Exception:
            logger.exception("anomaly_statistics_query_failed", user_id=user_id, days=days)
            return AnomalyStatistics()

        events.sort(key=lambda e: e.timestamp, reverse=True)
        type_counts = Counter(tag for event in events for tag in event.details.split_anomaly_types())
        average = sum(event.risk_score or 0 for event in events) / len(events) if events else 0

        return AnomalyStatistics(
            total_anomalies=len(events),
            anomaly_types=dict(type_counts),
            recent_events=[
                RecentAnomalyEvent(
                    timestamp=event.timestamp,
                    severity=event.severity.value,
                    anomaly_types=event.details.anomaly_types,
                    risk_score=event.risk_score,
                )
                for event in events[:RECENT_EVENTS_LIMIT]
            ],
            average_risk_score=average,
        )
