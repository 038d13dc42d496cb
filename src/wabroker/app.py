import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog

from wabroker.config import Config
from wabroker.core.core import Core
from wabroker.core.modules.backend.client import ClientFactory
from wabroker.core.modules.backend.media import DEFAULT_IMAGE_FILENAME, DEFAULT_PDF_FILENAME, PDF_MIMETYPE, MessageMedia
from wabroker.core.modules.messaging.models import MessageResult
from wabroker.core.modules.qr.renderer import render_qr_data_uri
from wabroker.core.modules.session.models import LoginStatus, SessionStatus
from wabroker.errors import QRRenderError, ValidationError
from wabroker.utils import is_user_id

logger = structlog.get_logger(__name__)


def _require(message: str, *values: str) -> None:
    """Raise ValidationError if any required value is missing or empty."""
    if not all(values):
        raise ValidationError(message)


def _check_user_id(user_id: str) -> None:
    # The user id names the on-disk auth directory
    if not is_user_id(user_id):
        raise ValidationError("userId must be 1-64 characters of letters, digits, '_' or '-'")


class App:
    """Facade for all broker operations, validates input before delegating to Core."""

    def __init__(self, config: Config, client_factory: ClientFactory | None = None) -> None:
        self._core = Core(config, client_factory)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def start_session(self, user_id: str) -> SessionStatus:
        """Start a session, then report its state after a short grace period.

        The grace period lets an already stored login become ready without a QR round trip.
        """
        _require("UserId required", user_id)
        _check_user_id(user_id)

        self._core.services.session.start_session(user_id)
        await asyncio.sleep(self._core.config.start_grace_period)

        session = self._core.services.session.get_session(user_id)
        if session is None:
            return SessionStatus(status=LoginStatus.PENDING)
        if session.is_ready:
            return SessionStatus(status=LoginStatus.READY)
        if session.last_qr:
            return SessionStatus(status=LoginStatus.QR, qr=await self._render_qr(user_id, session.last_qr))
        return SessionStatus(status=LoginStatus.PENDING)

    async def _render_qr(self, user_id: str, payload: str) -> str:
        try:
            return await asyncio.to_thread(render_qr_data_uri, payload)
        except Exception as e:
            logger.exception("qr_render_failed", user_id=user_id)
            raise QRRenderError from e

    async def check_login(self, user_id: str) -> SessionStatus:
        """Report login state, resuming a stored login when no session is live."""
        _check_user_id(user_id)
        session_service = self._core.services.session

        session = session_service.get_session(user_id)
        if session is None:
            if await asyncio.to_thread(session_service.has_stored_login, user_id):
                logger.info("session_resuming", user_id=user_id)
                session_service.ensure_session(user_id)
                return SessionStatus(status=LoginStatus.PENDING)
            return SessionStatus(status=LoginStatus.NOT_STARTED)

        return SessionStatus(status=LoginStatus.READY if session.is_ready else LoginStatus.PENDING)

    async def send_message(self, user_id: str, number: str, message: str) -> MessageResult:
        _require("userId, number, and message are required", user_id, number, message)
        _check_user_id(user_id)

        await self._core.services.messaging.send_message(user_id, number, message)
        return MessageResult(status="Message sent")

    async def send_pdf_url(self, user_id: str, number: str, message: str, pdf_url: str) -> MessageResult:
        _require("userId, number, message, and pdfUrl are required", user_id, number, message, pdf_url)
        _check_user_id(user_id)

        await self._core.services.messaging.send_pdf_url(user_id, number, message, pdf_url)
        return MessageResult(status="Message and PDF sent from URL")

    async def send_pdf_base64(
        self, user_id: str, number: str, message: str, pdf_base64: str, filename: str | None = None
    ) -> MessageResult:
        _require("userId, number, message, and pdfBase64 are required", user_id, number, message, pdf_base64)
        _check_user_id(user_id)

        media = MessageMedia(mimetype=PDF_MIMETYPE, data=pdf_base64, filename=filename or DEFAULT_PDF_FILENAME)
        await self._core.services.messaging.send_media(user_id, number, message, media)
        return MessageResult(status="Message and PDF (base64) sent")

    async def send_image_base64(
        self,
        user_id: str,
        number: str,
        message: str,
        image_base64: str,
        mime_type: str,
        filename: str | None = None,
    ) -> MessageResult:
        _require(
            "userId, number, message, imageBase64, and mimeType are required",
            user_id,
            number,
            message,
            image_base64,
            mime_type,
        )
        _check_user_id(user_id)

        media = MessageMedia(mimetype=mime_type, data=image_base64, filename=filename or DEFAULT_IMAGE_FILENAME)
        await self._core.services.messaging.send_media(user_id, number, message, media)
        return MessageResult(status="Image (base64) and message sent")
