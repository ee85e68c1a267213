from uuid import UUID

from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from sessionguard.core.modules.anomaly.models import AnomalyAssessment
from sessionguard.core.modules.session.models import RequestContext
from sessionguard.web.deps import ApiTokenDep, AppDep
from sessionguard.web.openapi import AnomalyErrorResponse, ErrorResponse

router = APIRouter(tags=["sessions"], dependencies=[ApiTokenDep])


class AuthorizeRequest(RequestContext):
    """Request attributes plus the enforcement mode."""

    strict: bool = Field(False, description="Force re-authentication on any anomaly (sensitive operations)")


class ReauthRequest(BaseModel):
    reason: str = Field("Session anomaly detected", description="Note stored with the revocation")


class ReauthResponse(BaseModel):
    revoked: bool = Field(..., description="False when the session does not exist")


def set_risk_headers(response: Response, assessment: AnomalyAssessment) -> None:
    response.headers["X-Session-Risk-Score"] = str(assessment.risk_score)
    response.headers["X-Session-Has-Anomaly"] = str(assessment.has_anomaly).lower()
    if assessment.has_anomaly:
        response.headers["X-Session-Anomaly-Types"] = ",".join(assessment.anomaly_types)


@router.post(
    "/sessions/{session_id}/assessment",
    summary="Assess request",
    description="Evaluate a request against its session and return the decision without enforcing it.",
    operation_id="assessSession",
    responses={
        200: {"description": "Assessment computed"},
        401: {"model": ErrorResponse, "description": "Invalid API token"},
    },
)
async def assess_session(session_id: UUID, context: RequestContext, app: AppDep) -> AnomalyAssessment:
    return await app.check_session_anomaly(session_id, context)


@router.post(
    "/sessions/{session_id}/authorize",
    summary="Authorize request",
    description=(
        "Evaluate a request and enforce the decision. Forced re-authentication revokes the session; "
        "a required second factor is satisfied by a recent confirmation."
    ),
    operation_id="authorizeSession",
    responses={
        200: {"description": "Request may proceed; risk headers describe any anomaly"},
        401: {"model": AnomalyErrorResponse, "description": "Session revoked, log in again"},
        403: {"model": AnomalyErrorResponse, "description": "Second factor verification required"},
    },
)
async def authorize_session(
    session_id: UUID, authorize_request: AuthorizeRequest, app: AppDep, response: Response
) -> AnomalyAssessment:
    context = RequestContext(ip_address=authorize_request.ip_address, user_agent=authorize_request.user_agent)
    assessment = await app.authorize_request(session_id, context, strict=authorize_request.strict)
    set_risk_headers(response, assessment)
    return assessment


@router.post(
    "/sessions/{session_id}/second-factor",
    summary="Confirm second factor",
    description="Record that the session holder passed second factor verification.",
    operation_id="confirmSecondFactor",
    status_code=204,
    responses={
        204: {"description": "Confirmation recorded"},
        404: {"model": ErrorResponse, "description": "Active session not found"},
    },
)
async def confirm_second_factor(session_id: UUID, app: AppDep) -> None:
    await app.confirm_second_factor(session_id)


@router.post(
    "/sessions/{session_id}/reauth",
    summary="Force re-authentication",
    description="Revoke the session so its holder must log in again.",
    operation_id="forceReauthentication",
)
async def force_reauthentication(session_id: UUID, reauth_request: ReauthRequest, app: AppDep) -> ReauthResponse:
    revoked = await app.force_reauthentication(session_id, reauth_request.reason)
    return ReauthResponse(revoked=revoked)
