# core/provider_base.py
from dataclasses import dataclass
from typing import Any, Dict, Optional
import httpx
from config.settings import settings
from core.prompts import ComparisonPrompt
from core.provider_errors import error_from_response, error_from_transport
from model.provider import ProviderResult
from util.enums import ErrorKind
from util.errors import ProviderError
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


@dataclass
class PreparedRequest:
    method: str
    url: str
    headers: Dict[str, str]
    payload: Optional[Dict[str, Any]] = None


class ProviderAdapter:
    """
    One generative-model backend. Subclasses only describe the wire format:
    build_request() and parse_success(). Transport, status handling and error
    translation are shared here. No retries: callers own retry policy.
    """

    name: str = ""
    default_model: str = ""

    def __init__(
        self,
        timeout: float = settings.LLM_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    def resolve_model(self, model: Optional[str]) -> str:
        return (model or "").strip() or self.default_model

    def build_request(
        self, prompt: ComparisonPrompt, api_key: str, model: str
    ) -> PreparedRequest:
        raise NotImplementedError

    def build_probe(self, api_key: str) -> PreparedRequest:
        raise NotImplementedError

    def parse_success(self, data: Dict[str, Any]) -> ProviderResult:
        raise NotImplementedError

    async def _send(self, req: PreparedRequest) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                return await client.request(
                    req.method, req.url, headers=req.headers, json=req.payload
                )
        except httpx.RequestError as e:
            logger.warning("provider.transport_error provider=%s err=%s", self.name, type(e).__name__)
            raise error_from_transport(self.name, e) from e

    async def generate(
        self, prompt: ComparisonPrompt, api_key: str, model: Optional[str]
    ) -> ProviderResult:
        model_name = self.resolve_model(model)
        req = self.build_request(prompt, api_key, model_name)
        with timed(
            logger,
            "provider.generate",
            provider=self.name,
            model=model_name,
            images=len(prompt.images),
        ):
            resp = await self._send(req)

        if resp.status_code // 100 != 2:
            err = error_from_response(self.name, resp)
            logger.warning(
                "provider.http_error provider=%s status=%d kind=%s",
                self.name,
                resp.status_code,
                err.kind.value,
            )
            raise err

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError(
                ErrorKind.MALFORMED_PROVIDER_RESPONSE,
                f"{self.name}: response envelope was not JSON",
                detail=str(e),
            ) from e
        if not isinstance(data, dict):
            raise ProviderError(
                ErrorKind.MALFORMED_PROVIDER_RESPONSE,
                f"{self.name}: unexpected response envelope",
            )
        return self.parse_success(data)

    async def check_key(self, api_key: str) -> None:
        """Cheap authenticated call; raises ProviderError on failure."""
        resp = await self._send(self.build_probe(api_key))
        if resp.status_code // 100 != 2:
            raise error_from_response(self.name, resp)
