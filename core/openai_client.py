# core/openai_client.py
from typing import Any, Dict, List
from config.settings import settings
from core.prompts import ComparisonPrompt
from core.provider_base import PreparedRequest, ProviderAdapter
from model.provider import LlmProvider, OpenAIResult


class OpenAIAdapter(ProviderAdapter):
    """Chat Completions call in JSON-object mode; images as data URIs."""

    name = LlmProvider.OPENAI.value
    default_model = settings.OPENAI_DEFAULT_MODEL

    def __init__(
        self,
        api_url: str = settings.OPENAI_API_URL,
        models_url: str = settings.OPENAI_MODELS_URL,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._api_url = api_url
        self._models_url = models_url

    @staticmethod
    def _headers(api_key: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "content-type": "application/json",
        }

    def build_request(
        self, prompt: ComparisonPrompt, api_key: str, model: str
    ) -> PreparedRequest:
        content: List[Dict[str, Any]] = [{"type": "text", "text": prompt.user}]
        for img in prompt.images:
            content.append({"type": "image_url", "image_url": {"url": img.data_uri}})

        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": content},
            ],
            "response_format": {"type": "json_object"},
            "temperature": settings.LLM_TEMPERATURE,
        }
        return PreparedRequest(
            method="POST", url=self._api_url, headers=self._headers(api_key), payload=payload
        )

    def build_probe(self, api_key: str) -> PreparedRequest:
        return PreparedRequest(method="GET", url=self._models_url, headers=self._headers(api_key))

    def parse_success(self, data: Dict[str, Any]) -> OpenAIResult:
        choices = data.get("choices") or []
        text = ""
        finish = None
        refusal = None
        if choices and isinstance(choices[0], dict):
            first = choices[0]
            finish = first.get("finish_reason")
            message = first.get("message") or {}
            text = str(message.get("content") or "")
            refusal = message.get("refusal")
        return OpenAIResult(text=text, finishReason=finish, refusal=refusal)
