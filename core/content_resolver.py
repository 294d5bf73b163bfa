# core/content_resolver.py
from typing import Optional, Protocol
from core.scraper_client import ScrapeResult
from model.document import DocumentDescriptor, ResolvedContent
from util.enums import ErrorKind
from util.errors import ContentError
from util.functions import is_valid_url
import logging

logger = logging.getLogger(__name__)


class Scraper(Protocol):
    async def scrape(self, url: str, credential: str) -> ScrapeResult: ...


class ContentResolver:
    """
    Turn a DocumentDescriptor into analyzable text.

    Precedence:
      1) inline content, returned unchanged (never re-fetched)
      2) URL, validated first, then scraped when a credential is available
      3) otherwise MissingContent
    """

    def __init__(self, scraper: Scraper) -> None:
        self._scraper = scraper

    async def resolve(
        self, descriptor: DocumentDescriptor, scrape_credential: Optional[str]
    ) -> ResolvedContent:
        if descriptor.has_content():
            return ResolvedContent(
                content=descriptor.content or "", screenshot=descriptor.screenshot
            )

        if not descriptor.has_url():
            raise ContentError(ErrorKind.MISSING_CONTENT, "No content or URL provided")

        url = (descriptor.url or "").strip()
        if not is_valid_url(url):
            raise ContentError(ErrorKind.INVALID_URL, f"Invalid URL: {url}")

        if not (scrape_credential or "").strip():
            raise ContentError(
                ErrorKind.MISSING_CONTENT, "No content and no scrape credential"
            )

        try:
            scraped = await self._scraper.scrape(url, scrape_credential or "")
        except ContentError:
            raise
        except Exception as e:
            # Collaborator errors are opaque to callers
            logger.warning("resolve.scrape.error err=%s", type(e).__name__)
            raise ContentError(ErrorKind.SCRAPE_FAILED, "Scraping failed") from e

        return ResolvedContent(
            content=scraped.markdown, screenshot=scraped.screenshot, scraped=True
        )
