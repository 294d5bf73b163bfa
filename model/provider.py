from enum import Enum
from typing import Annotated, Literal, Union
from pydantic import BaseModel, Field


class LlmProvider(str, Enum):
    GEMINI = "GEMINI"
    OPENAI = "OPENAI"


class ProviderConfig(BaseModel):
    # provider stays a free string so unknown values reach the adapter
    # registry and fail there as UnsupportedProvider
    provider: str = LlmProvider.GEMINI.value
    apiKey: str = ""
    model: str = ""


class GeminiResult(BaseModel):
    provider: Literal["GEMINI"] = "GEMINI"
    text: str
    finishReason: str | None = None
    blockReason: str | None = None


class OpenAIResult(BaseModel):
    provider: Literal["OPENAI"] = "OPENAI"
    text: str
    finishReason: str | None = None
    refusal: str | None = None


ProviderResult = Annotated[
    Union[GeminiResult, OpenAIResult], Field(discriminator="provider")
]
