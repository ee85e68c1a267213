from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from sessionguard.core.core import Service
from sessionguard.core.db import persistence_errors
from sessionguard.core.modules.session.models import (
    RevocationReason,
    Session,
    SessionRevocation,
    SessionStatus,
)
from sessionguard.utils import now

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Reads and updates session records owned by the identity service."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("sessions")

    async def on_start(self) -> None:
        """Create indexes on startup."""
        # Compound index for counting a user's recently active sessions
        await self._collection.create_index([("user_id", 1), ("status", 1), ("last_access_at", -1)])
        # TTL index removes sessions once their expiry passes
        await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0)

    async def get_session(self, session_id: UUID) -> Session | None:
        return Session.from_mongo(await self._collection.find_one({"_id": session_id}))

    async def count_active_since(self, user_id: UUID, since: datetime) -> int:
        """Count the user's active sessions accessed at or after `since`."""
        return await self._collection.count_documents(
            {"user_id": user_id, "status": SessionStatus.ACTIVE, "last_access_at": {"$gte": since}}
        )

    async def record_anomaly(self, session_id: UUID, flags: list[str], risk_score: int) -> None:
        """Append anomaly flags and raise the stored risk score in one atomic update."""
        with persistence_errors("session anomaly update"):
            await self._collection.update_one(
                {"_id": session_id},
                {
                    "$push": {"security.flags": {"$each": flags}},
                    "$max": {"security.risk_score": risk_score},
                },
            )

    async def revoke_session(self, session_id: UUID, note: str) -> Session | None:
        """Revoke a session for a security concern, returning the updated record."""
        revocation = SessionRevocation(reason=RevocationReason.SECURITY_CONCERN, note=note)
        with persistence_errors("session revocation"):
            doc = await self._collection.find_one_and_update(
                {"_id": session_id},
                {"$set": {"status": SessionStatus.REVOKED, "revocation": revocation.model_dump()}},
                return_document=ReturnDocument.AFTER,
            )
        return Session.from_mongo(doc)

    async def record_activity(self, session_id: UUID, ip_address: str | None) -> None:
        await self._collection.update_one(
            {"_id": session_id, "status": SessionStatus.ACTIVE},
            {"$set": {"last_access_at": now(), "last_access_ip": ip_address}, "$inc": {"access_count": 1}},
        )

    async def mark_second_factor_verified(self, session_id: UUID) -> bool:
        """Stamp the session after the identity service verified a second factor."""
        result = await self._collection.update_one(
            {"_id": session_id, "status": SessionStatus.ACTIVE},
            {"$set": {"security.second_factor_verified_at": now()}},
        )
        if result.matched_count == 0:
            logger.warning("second_factor_session_not_active", session_id=session_id)
            return False
        return True
