# core/response_parser.py
import json
import math
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from model.analysis import ComparisonResult, RawDiscrepancy
from util.enums import ErrorKind
from util.errors import ProviderError
from util.functions import strip_code_fences
import logging

logger = logging.getLogger(__name__)


class _WireDiscrepancy(RawDiscrepancy):
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")


class _WireResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    complianceScore: float
    discrepancies: list[_WireDiscrepancy] = Field(...)

    @field_validator("complianceScore", mode="before")
    @classmethod
    def _numeric_score(cls, v: Any) -> Any:
        # bool is an int subclass and numeric strings would slip through lax mode
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("complianceScore must be a number")
        if math.isnan(v) or math.isinf(v):
            raise ValueError("complianceScore must be finite")
        if not 0 <= v <= 100:
            raise ValueError("complianceScore must be within 0-100")
        return v


def parse_comparison(provider: str, text: str) -> ComparisonResult:
    """
    Enforce the canonical output shape on raw model text.
    Empty text -> EmptyResponse; bad JSON or shape -> MalformedProviderResponse.
    A score outside [0, 100] is a contract violation, not clamped;
    fractional scores are rounded to the nearest integer.
    """
    raw = strip_code_fences(text)
    if not raw:
        raise ProviderError(
            ErrorKind.EMPTY_RESPONSE, f"{provider}: empty response from provider"
        )

    try:
        parsed = json.loads(raw)
    except ValueError as e:
        logger.warning("provider.parse.json_error provider=%s chars=%d", provider, len(raw))
        raise ProviderError(
            ErrorKind.MALFORMED_PROVIDER_RESPONSE,
            f"{provider}: response was not valid JSON",
            detail=str(e),
        ) from e

    try:
        wire = _WireResponse.model_validate(parsed)
    except ValidationError as e:
        logger.warning(
            "provider.parse.schema_error provider=%s errors=%d", provider, e.error_count()
        )
        raise ProviderError(
            ErrorKind.MALFORMED_PROVIDER_RESPONSE,
            f"{provider}: response did not match the expected schema",
            detail=str(e),
        ) from e

    score = int(round(wire.complianceScore))
    return ComparisonResult(
        complianceScore=score,
        discrepancies=[
            RawDiscrepancy.model_validate(d.model_dump()) for d in wire.discrepancies
        ],
    )
