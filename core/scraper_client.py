# core/scraper_client.py
from typing import Any, Dict, Optional
import httpx
from pydantic import BaseModel
from config.settings import settings
from util.enums import ErrorKind
from util.errors import ContentError
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


class ScrapeResult(BaseModel):
    markdown: str
    screenshot: Optional[str] = None


class FirecrawlScraper:
    """
    Scraping collaborator over the Firecrawl REST API. Any failure
    (transport, non-2xx, `success: false`, unexpected body) surfaces as
    ScrapeFailed; the provider's own error text only goes to the log.
    """

    def __init__(
        self,
        api_url: str = settings.FIRECRAWL_API_URL,
        timeout: float = settings.SCRAPE_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = api_url
        self._timeout = timeout
        self._transport = transport

    async def _post_json(
        self, headers: Dict[str, str], payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            r = await client.post(self._url, headers=headers, json=payload)
            r.raise_for_status()
            return r.json()

    async def scrape(self, url: str, credential: str) -> ScrapeResult:
        headers = {
            "Authorization": f"Bearer {credential}",
            "content-type": "application/json",
        }
        payload = {
            "url": url,
            "formats": ["markdown", "screenshot"],
            "onlyMainContent": True,
        }
        try:
            with timed(logger, "scrape.fetch"):
                data = await self._post_json(headers, payload)
        except httpx.HTTPStatusError as e:
            logger.warning("scrape.http_error status=%d", e.response.status_code)
            raise ContentError(
                ErrorKind.SCRAPE_FAILED,
                f"Scraper returned HTTP {e.response.status_code}",
            ) from e
        except (httpx.RequestError, ValueError) as e:
            logger.warning("scrape.request_error err=%s", type(e).__name__)
            raise ContentError(ErrorKind.SCRAPE_FAILED, "Scraping failed") from e

        if not isinstance(data, dict) or data.get("success") is False:
            err = data.get("error") if isinstance(data, dict) else None
            raise ContentError(ErrorKind.SCRAPE_FAILED, str(err or "Scraping failed"))

        body = data.get("data") or {}
        markdown = str(body.get("markdown") or "").strip()
        if not markdown:
            raise ContentError(ErrorKind.SCRAPE_FAILED, "Scraper returned no content")

        screenshot = body.get("screenshot") or None
        logger.info(
            "scrape.ok chars=%d screenshot=%s", len(markdown), screenshot is not None
        )
        return ScrapeResult(markdown=markdown, screenshot=screenshot)
