from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from wabroker.core.modules.messaging.models import MessageResult
from wabroker.web.deps import AppDep
from wabroker.web.openapi import ErrorResponse

router = APIRouter(tags=["messages"])

SEND_RESPONSES: dict[int | str, dict[str, Any]] = {
    200: {"description": "Message sent"},
    400: {"model": ErrorResponse, "description": "Missing fields or invalid phone number"},
    500: {"model": ErrorResponse, "description": "Session not ready in time or the backend rejected the send"},
}


class SendMessageRequest(BaseModel):
    """Request to send a text message."""

    user_id: str = Field("", alias="userId", description="Identifier of the sending user's session")
    number: str = Field("", description="Recipient phone number with country code; non-digits are ignored")
    message: str = Field("", description="Message text")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "userId": "tenant-42",
                    "number": "+1 (555) 010-0000",
                    "message": "Your order has shipped.",
                }
            ]
        },
    }


class SendPdfUrlRequest(SendMessageRequest):
    """Request to send a text message followed by a PDF downloaded from a URL."""

    pdf_url: str = Field("", alias="pdfUrl", description="URL of the PDF to download and attach")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "userId": "tenant-42",
                    "number": "15550100000",
                    "message": "Your invoice is attached.",
                    "pdfUrl": "https://example.com/invoices/1001.pdf",
                }
            ]
        },
    }


class SendPdfBase64Request(SendMessageRequest):
    """Request to send a base64-encoded PDF with the message as caption."""

    pdf_base64: str = Field("", alias="pdfBase64", description="Base64-encoded PDF content")
    filename: str | None = Field(None, description="File name shown to the recipient (default 'document.pdf')")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "userId": "tenant-42",
                    "number": "15550100000",
                    "message": "Your invoice",
                    "pdfBase64": "JVBERi0xLjQK...",
                    "filename": "invoice-1001.pdf",
                }
            ]
        },
    }


class SendImageBase64Request(SendMessageRequest):
    """Request to send a base64-encoded image with the message as caption."""

    image_base64: str = Field("", alias="imageBase64", description="Base64-encoded image content")
    mime_type: str = Field("", alias="mimeType", description="Image MIME type, e.g. image/png")
    filename: str | None = Field(None, description="File name shown to the recipient (default 'image.jpg')")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "userId": "tenant-42",
                    "number": "15550100000",
                    "message": "Your ticket",
                    "imageBase64": "iVBORw0KGgo...",
                    "mimeType": "image/png",
                    "filename": "ticket.png",
                }
            ]
        },
    }


@router.post(
    "/send-message",
    summary="Send message",
    description="Wait up to the readiness timeout for the user's session, then send a text message.",
    operation_id="sendMessage",
    responses=SEND_RESPONSES,
)
async def send_message(app: AppDep, request: SendMessageRequest) -> MessageResult:
    return await app.send_message(request.user_id, request.number, request.message)


@router.post(
    "/send-pdf-url",
    summary="Send message and PDF from URL",
    description="Download a PDF, then send the text and the document as two separate messages.",
    operation_id="sendPdfUrl",
    responses=SEND_RESPONSES,
)
async def send_pdf_url(app: AppDep, request: SendPdfUrlRequest) -> MessageResult:
    return await app.send_pdf_url(request.user_id, request.number, request.message, request.pdf_url)


@router.post(
    "/send-pdf-base64",
    summary="Send PDF from base64",
    description="Send a base64-encoded PDF as a single message with the text as caption.",
    operation_id="sendPdfBase64",
    responses=SEND_RESPONSES,
)
async def send_pdf_base64(app: AppDep, request: SendPdfBase64Request) -> MessageResult:
    return await app.send_pdf_base64(request.user_id, request.number, request.message, request.pdf_base64, request.filename)


@router.post(
    "/send-image-base64",
    summary="Send image from base64",
    description="Send a base64-encoded image as a single message with the text as caption. The MIME type is passed through.",
    operation_id="sendImageBase64",
    responses=SEND_RESPONSES,
)
async def send_image_base64(app: AppDep, request: SendImageBase64Request) -> MessageResult:
    return await app.send_image_base64(
        request.user_id, request.number, request.message, request.image_base64, request.mime_type, request.filename
    )
