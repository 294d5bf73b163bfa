# core/prompts.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from config.settings import settings


@dataclass
class ImageAttachment:
    mime_type: str
    data_b64: str

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data_b64}"


@dataclass
class ComparisonPrompt:
    """Provider-agnostic request content; adapters only change its wire shape."""

    system: str
    user: str
    images: List[ImageAttachment] = field(default_factory=list)


# Output contract in the Gemini responseSchema dialect (OpenAPI subset).
RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "complianceScore": {"type": "NUMBER"},
        "discrepancies": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "field": {"type": "STRING"},
                    "referenceValue": {"type": "STRING"},
                    "foundValue": {"type": "STRING"},
                    "severity": {
                        "type": "STRING",
                        "enum": ["CRITICAL", "MAJOR", "MINOR"],
                    },
                    "description": {"type": "STRING"},
                    "suggestion": {"type": "STRING"},
                },
                "required": [
                    "field",
                    "referenceValue",
                    "foundValue",
                    "severity",
                    "description",
                    "suggestion",
                ],
            },
        },
    },
    "required": ["complianceScore", "discrepancies"],
}


def _user_prompt(
    reference_content: str,
    target_content: str,
    target_label: str,
    reference_label: str,
    with_images: bool,
) -> str:
    parts = [
        f'Reference Data (Text from {reference_label}):\n"""\n{reference_content}\n"""',
        f'Published Landing Page Data (Text from {target_label}):\n"""\n{target_content}\n"""',
    ]
    if with_images:
        parts.append(
            "IMAGES PROVIDED: I have attached screenshots. Compare visually for "
            "branding consistency and text overlays."
        )
    parts.append("Return JSON only.")
    return "\n\n".join(parts)


def build_comparison_prompt(
    *,
    reference_content: str,
    target_content: str,
    target_label: str,
    reference_label: str,
    images: Optional[List[ImageAttachment]] = None,
) -> ComparisonPrompt:
    imgs = list(images or [])
    return ComparisonPrompt(
        system=settings.COMPARE_SYSTEM_PROMPT,
        user=_user_prompt(
            reference_content, target_content, target_label, reference_label, bool(imgs)
        ),
        images=imgs,
    )
