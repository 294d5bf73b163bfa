from __future__ import annotations

import httpx
import pytest

from core.provider_errors import classify, error_from_response, error_from_transport
from core.response_parser import parse_comparison
from util.enums import ErrorKind
from util.errors import ProviderError


def _resp(status: int, **kwargs) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("POST", "https://llm.test"), **kwargs)


def test_openai_rate_limit_code():
    err = error_from_response(
        "OPENAI",
        _resp(429, json={"error": {"message": "Rate limit reached", "code": "rate_limit_exceeded"}}),
    )
    assert err.kind == ErrorKind.RATE_LIMITED
    assert err.status_code == 429
    assert err.detail == "Rate limit reached"


def test_gemini_invalid_key_reason_beats_status():
    body = {
        "error": {
            "code": 400,
            "message": "API key not valid. Please pass a valid API key.",
            "status": "INVALID_ARGUMENT",
            "details": [{"reason": "API_KEY_INVALID"}],
        }
    }
    err = error_from_response("GEMINI", _resp(400, json=body))
    assert err.kind == ErrorKind.INVALID_CREDENTIAL


@pytest.mark.parametrize(
    "status,kind",
    [
        (401, ErrorKind.INVALID_CREDENTIAL),
        (403, ErrorKind.INVALID_CREDENTIAL),
        (429, ErrorKind.RATE_LIMITED),
        (503, ErrorKind.PROVIDER_UNAVAILABLE),
        (529, ErrorKind.PROVIDER_UNAVAILABLE),
    ],
)
def test_status_fallback(status: int, kind: ErrorKind):
    assert classify(status_code=status) == kind


def test_message_hint_only_when_code_and_status_are_silent():
    assert classify(status_code=400, message="You exceeded your current quota") == ErrorKind.RATE_LIMITED
    # status wins over a misleading message
    assert classify(status_code=401, message="quota") == ErrorKind.INVALID_CREDENTIAL


def test_unclassified_keeps_original_message():
    err = error_from_response("OPENAI", _resp(418, text="I'm a teapot"))
    assert err.kind == ErrorKind.PROVIDER_ERROR
    assert err.detail == "I'm a teapot"


def test_transport_timeout_is_unavailable():
    err = error_from_transport("GEMINI", httpx.ReadTimeout("timed out"))
    assert err.kind == ErrorKind.PROVIDER_UNAVAILABLE


# -----------------------------
# Response parsing
# -----------------------------
def test_parse_fenced_json_and_round_score():
    text = '```json\n{"complianceScore": 99.6, "discrepancies": []}\n```'
    got = parse_comparison("GEMINI", text)
    assert got.complianceScore == 100
    assert got.discrepancies == []


def test_parse_keeps_severity_as_raw_text():
    text = (
        '{"complianceScore": 70, "discrepancies": [{"field": "Price", "referenceValue": 500000,'
        ' "foundValue": "$450,000", "severity": "critical", "description": "d", "suggestion": "s"}]}'
    )
    got = parse_comparison("OPENAI", text)
    assert got.discrepancies[0].severity == "critical"
    assert got.discrepancies[0].referenceValue == "500000"


@pytest.mark.parametrize("text", ["", "   ", "``````"])
def test_parse_empty(text: str):
    with pytest.raises(ProviderError) as ei:
        parse_comparison("GEMINI", text)
    assert ei.value.kind == ErrorKind.EMPTY_RESPONSE


@pytest.mark.parametrize(
    "text",
    [
        "Sure! Here is the analysis",
        '{"complianceScore": 80}',
        '{"complianceScore": "80", "discrepancies": []}',
        '{"complianceScore": true, "discrepancies": []}',
        '{"complianceScore": 150, "discrepancies": []}',
        '{"complianceScore": -5, "discrepancies": []}',
        '{"complianceScore": 80, "discrepancies": [{"field": "Price"}]}',
    ],
)
def test_parse_malformed(text: str):
    with pytest.raises(ProviderError) as ei:
        parse_comparison("GEMINI", text)
    assert ei.value.kind == ErrorKind.MALFORMED_PROVIDER_RESPONSE
