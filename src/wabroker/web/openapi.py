from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="wabroker API",
            version="0.1.0",
            summary="Per-user WhatsApp Web sessions: QR login and message sending",
            routes=app.routes,
        )

        # No authentication layer, the trust boundary sits in front of this service
        openapi_schema["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"error": "Invalid phone number", "type": "validation_error"},
                {"error": "Timeout: Client not ready after waiting.", "type": "timeout"},
            ]
        }
    }
