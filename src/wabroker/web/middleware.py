from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from wabroker.config import Config
from wabroker.web.error_handlers import create_json_error_response


class BodySizeLimitMiddleware:
    """Reject request bodies larger than ``config.max_body_size`` with 413.

    A declared Content-Length is checked before reading. Bodies without one
    (chunked uploads) are buffered and counted as they arrive, then replayed
    to the application.
    """

    def __init__(self, app: ASGIApp, config: Config) -> None:
        self.app = app
        self.config = config

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = self.config.max_body_size
        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > limit:
            await self._reject(scope, receive, send)
            return

        messages: list[Message] = []
        received = 0
        while True:
            message = await receive()
            messages.append(message)
            if message["type"] != "http.request":
                break
            received += len(message.get("body", b""))
            if received > limit:
                await self._reject(scope, receive, send)
                return
            if not message.get("more_body", False):
                break

        buffered = iter(messages)

        async def replay() -> Message:
            # Later reads, such as waiting for disconnect, go to the server
            return next(buffered, None) or await receive()

        await self.app(scope, replay, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send) -> None:
        response = create_json_error_response(
            status_code=413, message="Request body too large", error_type="payload_too_large"
        )
        await response(scope, receive, send)
