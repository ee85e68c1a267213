from uuid import UUID

from fastapi import APIRouter, Query

from sessionguard.core.modules.anomaly.models import AnomalyStatistics
from sessionguard.web.deps import ApiTokenDep, AppDep
from sessionguard.web.openapi import ErrorResponse

router = APIRouter(tags=["statistics"], dependencies=[ApiTokenDep])


@router.get(
    "/users/{user_id}/anomaly-statistics",
    summary="Session anomaly statistics",
    description="Summarize a user's session anomaly events over a trailing window of days.",
    operation_id="getAnomalyStatistics",
    responses={
        200: {"description": "Statistics, zeroed when the history cannot be read"},
        401: {"model": ErrorResponse, "description": "Invalid API token"},
    },
)
async def get_anomaly_statistics(
    user_id: UUID, app: AppDep, days: int = Query(30, ge=1, le=365, description="Window size in days")
) -> AnomalyStatistics:
    return await app.get_anomaly_statistics(user_id, days)
