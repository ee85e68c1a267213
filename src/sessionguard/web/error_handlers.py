import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from sessionguard.errors import (
    AuthenticationError,
    NotFoundError,
    SecondFactorRequiredError,
    SessionAnomalyError,
)

logger = logging.getLogger(__name__)


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"message": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


def create_anomaly_response(exc: SessionAnomalyError | SecondFactorRequiredError) -> JSONResponse:
    """Structured body telling the client how to recover from a session anomaly."""
    content: dict[str, Any] = {
        "message": str(exc),
        "code": exc.code,
        "anomalyDetected": True,
        "anomalyTypes": exc.anomaly_types,
        "riskScore": exc.risk_score,
    }
    if isinstance(exc, SessionAnomalyError):
        content["requiresReauth"] = True
        return JSONResponse(status_code=401, content=content)
    content["requires2FA"] = True
    return JSONResponse(status_code=403, content=content)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if isinstance(exc, SessionAnomalyError | SecondFactorRequiredError):
        return create_anomaly_response(exc)

    if isinstance(exc, AuthenticationError):
        status_code = 401
        error_type = "authentication_error"
    elif isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    else:
        status_code = 400
        error_type = "bad_request"

    return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type)


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
