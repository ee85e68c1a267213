from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="SessionGuard API",
            version="0.1.0",
            summary="Session hijacking detection and enforcement",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "description": "Service API token",
            },
        }
        openapi_schema["security"] = [{"BearerAuth": []}]

        public_endpoints = {("GET", "/health")}
        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in public_endpoints:
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Invalid or missing API token", "type": "authentication_error"},
                {"message": "Active session not found", "type": "not_found"},
            ]
        }
    }


class AnomalyErrorResponse(BaseModel):
    """Returned when a session anomaly blocks the request."""

    message: str = Field(..., description="Generic message safe to show the end user")
    code: str = Field(..., description="SESSION_ANOMALY_DETECTED or SESSION_ANOMALY_2FA_REQUIRED")
    anomalyDetected: bool = Field(True)
    anomalyTypes: list[str] = Field(..., description="Triggered anomaly tags")
    riskScore: int = Field(..., description="Aggregated risk score")
    requiresReauth: bool | None = Field(None, description="Present when the session was revoked")
    requires2FA: bool | None = Field(None, description="Present when a second factor is required")
