import structlog

from wabroker.core.core import Service
from wabroker.core.modules.backend.client import MessagingClient
from wabroker.core.modules.backend.media import DEFAULT_PDF_FILENAME, PDF_MIMETYPE, MessageMedia
from wabroker.core.modules.messaging.numbers import to_chat_id
from wabroker.errors import BackendError, BrokerError

logger = structlog.get_logger(__name__)


class MessagingService(Service):
    """Sends messages through a user's session once it is ready.

    The phone number is validated before the session is touched, so a bad number
    fails fast whatever state the session is in.
    """

    async def _ready_client(self, user_id: str) -> MessagingClient:
        session_service = self.core.services.session
        session_service.ensure_session(user_id)
        return await session_service.wait_until_ready(user_id)

    async def _send(
        self, client: MessagingClient, user_id: str, chat_id: str, content: str | MessageMedia, caption: str | None = None
    ) -> None:
        try:
            await client.send_message(chat_id, content, caption)
        except BrokerError:
            raise
        except Exception as e:
            logger.exception("message_send_failed", user_id=user_id, chat_id=chat_id)
            raise BackendError(str(e) or type(e).__name__) from e

    async def send_message(self, user_id: str, number: str, message: str) -> None:
        chat_id = to_chat_id(number)
        client = await self._ready_client(user_id)
        logger.info("message_sending", user_id=user_id, chat_id=chat_id)
        await self._send(client, user_id, chat_id, message)

    async def send_pdf_url(self, user_id: str, number: str, message: str, pdf_url: str) -> None:
        """Send the text, then the downloaded PDF, as two separate messages.

        Not atomic: if the document send fails the text has already been delivered.
        """
        chat_id = to_chat_id(number)
        client = await self._ready_client(user_id)
        content = await self.core.services.media.fetch(pdf_url)
        media = MessageMedia.from_bytes(PDF_MIMETYPE, content, DEFAULT_PDF_FILENAME)

        logger.info("message_sending", user_id=user_id, chat_id=chat_id, attachment=media.filename)
        await self._send(client, user_id, chat_id, message)
        await self._send(client, user_id, chat_id, media)

    async def send_media(self, user_id: str, number: str, message: str, media: MessageMedia) -> None:
        """Send an attachment with the text as its caption, in one message."""
        chat_id = to_chat_id(number)
        client = await self._ready_client(user_id)
        logger.info("message_sending", user_id=user_id, chat_id=chat_id, attachment=media.filename)
        await self._send(client, user_id, chat_id, media, caption=message)
