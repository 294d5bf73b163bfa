from pydantic import BaseModel


class DocumentDescriptor(BaseModel):
    """
    A reference or target page as supplied by the caller: inline text,
    a URL to scrape, or both. `screenshot` is an opaque image reference
    (usually an image URL returned by the scraper).
    """

    id: str | None = None
    url: str | None = None
    content: str | None = None
    screenshot: str | None = None

    def has_content(self) -> bool:
        return bool((self.content or "").strip())

    def has_url(self) -> bool:
        return bool((self.url or "").strip())


class ResolvedContent(BaseModel):
    content: str
    screenshot: str | None = None
    scraped: bool = False
