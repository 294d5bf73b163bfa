# core/provider_adapter.py
import asyncio
from collections import OrderedDict
from typing import Callable, Dict, Mapping, Optional
from config.settings import settings
from core.gemini_client import GeminiAdapter
from core.images import load_image
from core.openai_client import OpenAIAdapter
from core.prompts import ImageAttachment, build_comparison_prompt
from core.provider_base import ProviderAdapter
from core.response_parser import parse_comparison
from model.analysis import ComparisonResult
from model.provider import GeminiResult, OpenAIResult, ProviderConfig, ProviderResult
from util.enums import ErrorKind
from util.errors import ProviderError
import logging

logger = logging.getLogger(__name__)


def collapse(result: ProviderResult) -> ComparisonResult:
    """
    Fold a provider-specific result into the canonical shape. Nothing
    provider-shaped is returned past this point.
    """
    if isinstance(result, GeminiResult):
        if not result.text.strip() and result.blockReason:
            raise ProviderError(
                ErrorKind.EMPTY_RESPONSE,
                f"{result.provider}: response blocked",
                detail=f"blockReason={result.blockReason}",
            )
    elif isinstance(result, OpenAIResult):
        if not result.text.strip() and result.refusal:
            raise ProviderError(
                ErrorKind.EMPTY_RESPONSE,
                f"{result.provider}: model refused the request",
                detail=str(result.refusal),
            )
    return parse_comparison(result.provider, result.text)


class ProviderAdapterLayer:
    """
    Uniform compare() over the registered providers. Exactly one adapter is
    picked per call from `config.provider`.
    """

    def __init__(
        self,
        adapters: Optional[Mapping[str, ProviderAdapter]] = None,
        image_loader: Callable = load_image,
        image_cache_size: int = settings.IMAGE_CACHE_SIZE,
    ) -> None:
        if adapters is None:
            adapters = {a.name: a for a in (GeminiAdapter(), OpenAIAdapter())}
        self._adapters: Dict[str, ProviderAdapter] = {
            k.upper(): v for k, v in adapters.items()
        }
        self._load_image = image_loader
        # The reference screenshot is shared by every target of a run
        self._image_cache: "OrderedDict[str, ImageAttachment]" = OrderedDict()
        self._image_cache_size = max(0, image_cache_size)
        self._image_pending: Dict[str, asyncio.Future] = {}

    def adapter_for(self, provider: str) -> ProviderAdapter:
        adapter = self._adapters.get((provider or "").strip().upper())
        if adapter is None:
            raise ProviderError(
                ErrorKind.UNSUPPORTED_PROVIDER, f"Unsupported provider: {provider}"
            )
        return adapter

    async def _cached_image(self, ref: str) -> Optional[ImageAttachment]:
        hit = self._image_cache.get(ref)
        if hit is not None:
            self._image_cache.move_to_end(ref)
            return hit
        pending = self._image_pending.get(ref)
        if pending is not None:
            return await asyncio.shield(pending)

        task = asyncio.ensure_future(self._load_image(ref))
        self._image_pending[ref] = task
        try:
            image = await asyncio.shield(task)
        finally:
            self._image_pending.pop(ref, None)

        if image is not None and self._image_cache_size:
            self._image_cache[ref] = image
            while len(self._image_cache) > self._image_cache_size:
                self._image_cache.popitem(last=False)
        return image

    async def _images(self, *refs: Optional[str]) -> list:
        wanted = [r for r in refs if r]
        if not wanted:
            return []
        loaded = await asyncio.gather(
            *(self._cached_image(r) for r in wanted), return_exceptions=True
        )
        out = []
        for item in loaded:
            if isinstance(item, BaseException):
                # Screenshots are optional; the comparison continues text-only
                logger.warning("provider.image.dropped err=%s", type(item).__name__)
                continue
            if item is not None:
                out.append(item)
        return out

    async def compare(
        self,
        reference_content: str,
        target_content: str,
        target_label: str,
        reference_label: str,
        config: ProviderConfig,
        reference_screenshot: Optional[str] = None,
        target_screenshot: Optional[str] = None,
    ) -> ComparisonResult:
        adapter = self.adapter_for(config.provider)
        if not (config.apiKey or "").strip():
            raise ProviderError(
                ErrorKind.MISSING_CREDENTIAL, f"{adapter.name}: API key is missing"
            )

        images = await self._images(reference_screenshot, target_screenshot)
        prompt = build_comparison_prompt(
            reference_content=reference_content,
            target_content=target_content,
            target_label=target_label,
            reference_label=reference_label,
            images=images,
        )
        result = await adapter.generate(prompt, config.apiKey, config.model)
        canonical = collapse(result)
        logger.info(
            "provider.compare.ok provider=%s score=%d discrepancies=%d",
            adapter.name,
            canonical.complianceScore,
            len(canonical.discrepancies),
        )
        return canonical

    async def check_key(self, config: ProviderConfig) -> None:
        adapter = self.adapter_for(config.provider)
        if not (config.apiKey or "").strip():
            raise ProviderError(
                ErrorKind.MISSING_CREDENTIAL, f"{adapter.name}: API key is missing"
            )
        await adapter.check_key(config.apiKey)
