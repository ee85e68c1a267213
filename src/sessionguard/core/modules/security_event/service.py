from datetime import datetime
from typing import Any
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from sessionguard.core.core import Service
from sessionguard.core.db import persistence_errors
from sessionguard.core.modules.security_event.models import SecurityEvent, SecurityEventType


class SecurityEventService(Service):
    """Stores security events in an append-only collection."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("security_events")

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([("user_id", 1), ("event_type", 1), ("timestamp", -1)])

    async def create_event(self, event: SecurityEvent) -> UUID:
        with persistence_errors("security event write"):
            await self._collection.insert_one(event.to_mongo())
        return event.id

    async def find_events(self, user_id: UUID, event_type: SecurityEventType, since: datetime) -> list[SecurityEvent]:
        """Events of one type for a user at or after `since`, newest first."""
        with persistence_errors("security event query"):
            cursor = self._collection.find(
                {"user_id": user_id, "event_type": event_type, "timestamp": {"$gte": since}}
            ).sort("timestamp", -1)
            return await SecurityEvent.list_cursor(cursor)
