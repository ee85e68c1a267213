from typing import Any
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from sessionguard.core.core import Service
from sessionguard.core.db import persistence_errors
from sessionguard.core.modules.audit.models import AuditLogEntry


class AuditService(Service):
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("audit_logs")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1), ("timestamp", -1)])

    async def create_entry(self, entry: AuditLogEntry) -> UUID:
        with persistence_errors("audit log write"):
            await self._collection.insert_one(entry.to_mongo())
        return entry.id
