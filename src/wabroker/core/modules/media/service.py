import httpx
import structlog

from wabroker.config import Config
from wabroker.core.core import Service
from wabroker.errors import FetchError

logger = structlog.get_logger(__name__)


class MediaService(Service):
    """Downloads remote files to be sent as attachments."""

    def __init__(self, config: Config, transport: httpx.AsyncBaseTransport | None = None) -> None:
        super().__init__(config)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def on_start(self) -> None:
        self._client = httpx.AsyncClient(
            timeout=self.config.fetch_timeout, follow_redirects=True, transport=self._transport
        )

    async def on_stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str) -> bytes:
        """Download a file and return its content.

        Raises:
            FetchError: The URL is invalid, the request failed, or the server answered with an error status
        """
        if self._client is None:
            raise RuntimeError("MediaService is not started")

        logger.info("media_downloading", url=url)
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(f"Failed to download {url}: HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"Failed to download {url}: {e}") from e

        logger.debug("media_downloaded", url=url, size=len(response.content))
        return response.content
