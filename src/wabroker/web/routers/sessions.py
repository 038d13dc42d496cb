from fastapi import APIRouter
from pydantic import BaseModel, Field

from wabroker.core.modules.session.models import SessionStatus
from wabroker.web.deps import AppDep
from wabroker.web.openapi import ErrorResponse

router = APIRouter(tags=["sessions"])


class StartSessionRequest(BaseModel):
    """Request to start a user's messaging session."""

    user_id: str = Field("", alias="userId", description="Identifier of the user owning the session")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "userId": "tenant-42",
                }
            ]
        },
    }


@router.post(
    "/start-session",
    summary="Start session",
    description="Create the user's session if needed, wait briefly, then report 'ready', 'qr' with a QR image, or 'pending'.",
    operation_id="startSession",
    response_model_exclude_none=True,
    responses={
        200: {"description": "Session status, with a PNG data URI when a QR code is waiting to be scanned"},
        400: {"model": ErrorResponse, "description": "Missing or invalid userId"},
        500: {"model": ErrorResponse, "description": "QR code could not be rendered"},
    },
)
async def start_session(app: AppDep, request: StartSessionRequest) -> SessionStatus:
    return await app.start_session(request.user_id)


@router.get(
    "/check-login/{user_id}",
    summary="Check login",
    description="Report whether the user's session is 'ready', 'pending', or 'not_started'. Resumes a stored login.",
    operation_id="checkLogin",
    response_model_exclude_none=True,
    responses={
        200: {"description": "Session status"},
        400: {"model": ErrorResponse, "description": "Invalid userId"},
    },
)
async def check_login(app: AppDep, user_id: str) -> SessionStatus:
    return await app.check_login(user_id)
