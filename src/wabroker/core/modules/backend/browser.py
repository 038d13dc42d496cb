"""WhatsApp Web client driven through a Playwright-controlled Chromium."""

import asyncio
import contextlib
from pathlib import Path

import structlog
from playwright.async_api import BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from wabroker.core.modules.backend.client import EventListener
from wabroker.core.modules.backend.events import (
    AuthFailure,
    Authenticated,
    Disconnected,
    LifecycleEvent,
    QRGenerated,
    Ready,
)
from wabroker.core.modules.backend.media import MessageMedia
from wabroker.errors import BackendError

logger = structlog.get_logger(__name__)

WEB_URL = "https://web.whatsapp.com"
BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]
STORED_LOGIN_REJECTED = "Stored login rejected, scan a new QR code"

# Page markers, checked in this order by the watcher
CHAT_LIST_SELECTOR = "#pane-side"
QR_SELECTOR = "div[data-ref]"

COMPOSE_SELECTOR = "footer div[contenteditable='true']"
ATTACH_SELECTOR = "span[data-icon='plus'], span[data-icon='attach-menu-plus'], span[data-icon='clip']"
FILE_INPUT_SELECTOR = "input[type='file']"
CAPTION_SELECTOR = "div[contenteditable='true'][data-tab='10']"
SEND_BUTTON_SELECTOR = "span[data-icon='send'], span[data-icon='wds-ic-send-filled']"


class BrowserClient:
    """One logged-in WhatsApp Web tab with a persistent profile in ``auth_dir``.

    The watcher polls the page: a QR element means a login payload is waiting,
    the chat list means the account is logged in. A QR code reappearing after
    login, or the page closing, is reported as a disconnect. A QR code shown for
    a stored profile means the stored login was rejected and is reported as an
    auth failure before the QR code itself.
    """

    def __init__(
        self,
        user_id: str,
        auth_dir: Path,
        *,
        headless: bool = True,
        poll_interval: float = 1.0,
        action_timeout: float = 30.0,
    ) -> None:
        self.user_id = user_id
        self._auth_dir = auth_dir
        self._resumed = auth_dir.is_dir() and any(auth_dir.iterdir())
        self._headless = headless
        self._poll_interval = poll_interval
        self._action_timeout_ms = action_timeout * 1000
        self._listeners: list[EventListener] = []
        self._playwright: Playwright | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._watcher: asyncio.Task[None] | None = None
        self._send_lock = asyncio.Lock()

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def _emit(self, event: LifecycleEvent) -> None:
        for listener in self._listeners:
            listener(event)

    async def initialize(self) -> None:
        self._auth_dir.mkdir(parents=True, exist_ok=True)
        self._playwright = await async_playwright().start()
        self._context = await self._playwright.chromium.launch_persistent_context(
            str(self._auth_dir), headless=self._headless, args=BROWSER_ARGS
        )
        self._page = self._context.pages[0] if self._context.pages else await self._context.new_page()
        await self._page.goto(WEB_URL)
        self._watcher = asyncio.create_task(self._watch(self._page))
        logger.debug("browser_client_initialized", user_id=self.user_id)

    async def _watch(self, page: Page) -> None:
        current_qr: str | None = None
        logged_in = False
        while True:
            await asyncio.sleep(self._poll_interval)
            if page.is_closed():
                self._emit(Disconnected("PAGE_CLOSED"))
                return
            try:
                if await page.locator(CHAT_LIST_SELECTOR).count():
                    if not logged_in:
                        logged_in = True
                        self._emit(Authenticated())
                        self._emit(Ready())
                    continue
                qr_element = page.locator(QR_SELECTOR)
                qr = await qr_element.first.get_attribute("data-ref") if await qr_element.count() else None
            except PlaywrightError as e:
                # Navigation inside send_message detaches elements; only fatal once the page is gone
                if page.is_closed():
                    self._emit(Disconnected(str(e)))
                    return
                continue

            if qr is None:
                continue
            if logged_in:
                self._emit(Disconnected("LOGOUT"))
                return
            if qr != current_qr:
                if current_qr is None and self._resumed:
                    self._emit(AuthFailure(STORED_LOGIN_REJECTED))
                current_qr = qr
                self._emit(QRGenerated(qr))

    def _require_page(self) -> Page:
        if self._page is None or self._page.is_closed():
            raise BackendError("Client not initialized properly")
        return self._page

    async def send_message(self, chat_id: str, content: str | MessageMedia, caption: str | None = None) -> None:
        page = self._require_page()
        phone = chat_id.partition("@")[0]
        async with self._send_lock:
            try:
                await page.goto(f"{WEB_URL}/send?phone={phone}", wait_until="domcontentloaded")
                compose = page.locator(COMPOSE_SELECTOR)
                await compose.wait_for(timeout=self._action_timeout_ms)
                if isinstance(content, MessageMedia):
                    await self._send_media(page, content, caption)
                else:
                    await compose.fill(content)
                    await compose.press("Enter")
            except PlaywrightError as e:
                raise BackendError(f"Failed to send message to {chat_id}: {e}") from e

    async def _send_media(self, page: Page, media: MessageMedia, caption: str | None) -> None:
        await page.locator(ATTACH_SELECTOR).first.click()
        await page.locator(FILE_INPUT_SELECTOR).first.set_input_files(
            {"name": media.filename or "file", "mimeType": media.mimetype, "buffer": media.to_bytes()}
        )
        if caption:
            caption_box = page.locator(CAPTION_SELECTOR).last
            await caption_box.wait_for(timeout=self._action_timeout_ms)
            await caption_box.fill(caption)
        await page.locator(SEND_BUTTON_SELECTOR).last.click(timeout=self._action_timeout_ms)

    async def destroy(self) -> None:
        if self._watcher is not None and not self._watcher.done():
            self._watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._watcher
        if self._context is not None:
            with contextlib.suppress(PlaywrightError):
                await self._context.close()
        if self._playwright is not None:
            await self._playwright.stop()
        self._page = None
        self._context = None
        self._playwright = None
        logger.debug("browser_client_destroyed", user_id=self.user_id)
