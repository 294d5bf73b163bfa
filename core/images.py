# core/images.py
import base64
import binascii
from typing import Optional
import httpx
from config.settings import settings
from core.prompts import ImageAttachment
from util.functions import is_valid_url
import logging
from util.timing import timed

logger = logging.getLogger(__name__)

DEFAULT_MIME = "image/png"


def _from_data_uri(ref: str) -> Optional[ImageAttachment]:
    # data:<mime>;base64,<payload>
    head, _, payload = ref.partition(",")
    if not payload or ";base64" not in head:
        return None
    mime = head[len("data:"):].split(";", 1)[0] or DEFAULT_MIME
    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None
    return ImageAttachment(mime_type=mime, data_b64=payload)


async def load_image(
    ref: Optional[str],
    *,
    timeout: float = settings.IMAGE_FETCH_TIMEOUT_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[ImageAttachment]:
    """
    Best-effort: resolve a screenshot reference (data URI or http(s) URL)
    to an inline attachment. Returns None on any failure.
    """
    if not ref:
        return None
    if ref.startswith("data:"):
        return _from_data_uri(ref)
    if not is_valid_url(ref):
        return None

    try:
        with timed(logger, "image.fetch"):
            async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
                r = await client.get(ref, follow_redirects=True)
                r.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("image.fetch.error err=%s", type(e).__name__)
        return None

    if not r.content:
        return None
    mime = (r.headers.get("content-type") or DEFAULT_MIME).split(";", 1)[0].strip()
    if not mime.startswith("image/"):
        logger.warning("image.fetch.not_image mime=%s", mime)
        return None
    return ImageAttachment(
        mime_type=mime, data_b64=base64.b64encode(r.content).decode("ascii")
    )
