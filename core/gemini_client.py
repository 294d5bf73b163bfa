# core/gemini_client.py
from typing import Any, Dict, List
from config.settings import settings
from core.prompts import RESPONSE_SCHEMA, ComparisonPrompt
from core.provider_base import PreparedRequest, ProviderAdapter
from model.provider import GeminiResult, LlmProvider


class GeminiAdapter(ProviderAdapter):
    """generateContent REST call with a JSON responseSchema."""

    name = LlmProvider.GEMINI.value
    default_model = settings.GEMINI_DEFAULT_MODEL

    def __init__(self, api_url: str = settings.GEMINI_API_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._api_url = api_url.rstrip("/")

    @staticmethod
    def _headers(api_key: str) -> Dict[str, str]:
        return {"x-goog-api-key": api_key, "content-type": "application/json"}

    def build_request(
        self, prompt: ComparisonPrompt, api_key: str, model: str
    ) -> PreparedRequest:
        parts: List[Dict[str, Any]] = [{"text": prompt.user}]
        for img in prompt.images:
            # Gemini wants the bare base64 payload, no data-URI header
            parts.append({"inlineData": {"mimeType": img.mime_type, "data": img.data_b64}})

        payload = {
            "systemInstruction": {"parts": [{"text": prompt.system}]},
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
                "temperature": settings.LLM_TEMPERATURE,
            },
        }
        return PreparedRequest(
            method="POST",
            url=f"{self._api_url}/{model}:generateContent",
            headers=self._headers(api_key),
            payload=payload,
        )

    def build_probe(self, api_key: str) -> PreparedRequest:
        return PreparedRequest(
            method="GET", url=f"{self._api_url}?pageSize=1", headers=self._headers(api_key)
        )

    def parse_success(self, data: Dict[str, Any]) -> GeminiResult:
        feedback = data.get("promptFeedback") or {}
        candidates = data.get("candidates") or []
        text = ""
        finish = None
        if candidates and isinstance(candidates[0], dict):
            first = candidates[0]
            finish = first.get("finishReason")
            parts = (first.get("content") or {}).get("parts") or []
            text = "".join(
                str(p.get("text") or "") for p in parts if isinstance(p, dict)
            )
        return GeminiResult(
            text=text,
            finishReason=finish,
            blockReason=feedback.get("blockReason") if isinstance(feedback, dict) else None,
        )
