# core/provider_errors.py
"""
Central translation of provider failures into stable error kinds.

Lookup order for an HTTP failure:
  1) structured provider code (OpenAI `error.code`/`error.type`,
     Gemini `error.status` and `details[].reason`)
  2) HTTP status code
  3) message substrings, only when neither of the above decided
Anything still unclassified becomes ProviderError with the original
message preserved on `detail`.
"""
from typing import Any, Dict, Final, Iterable, List, Optional, Tuple
import httpx
from util.enums import ErrorKind
from util.errors import ProviderError

CODE_KINDS: Final[Dict[str, ErrorKind]] = {
    # OpenAI
    "invalid_api_key": ErrorKind.INVALID_CREDENTIAL,
    "authentication_error": ErrorKind.INVALID_CREDENTIAL,
    "rate_limit_exceeded": ErrorKind.RATE_LIMITED,
    "insufficient_quota": ErrorKind.RATE_LIMITED,
    "server_error": ErrorKind.PROVIDER_UNAVAILABLE,
    "engine_overloaded": ErrorKind.PROVIDER_UNAVAILABLE,
    # Gemini (google.rpc status + ErrorInfo reasons)
    "UNAUTHENTICATED": ErrorKind.INVALID_CREDENTIAL,
    "PERMISSION_DENIED": ErrorKind.INVALID_CREDENTIAL,
    "API_KEY_INVALID": ErrorKind.INVALID_CREDENTIAL,
    "API_KEY_EXPIRED": ErrorKind.INVALID_CREDENTIAL,
    "RESOURCE_EXHAUSTED": ErrorKind.RATE_LIMITED,
    "RATE_LIMIT_EXCEEDED": ErrorKind.RATE_LIMITED,
    "UNAVAILABLE": ErrorKind.PROVIDER_UNAVAILABLE,
    "INTERNAL": ErrorKind.PROVIDER_UNAVAILABLE,
    "DEADLINE_EXCEEDED": ErrorKind.PROVIDER_UNAVAILABLE,
}

STATUS_KINDS: Final[Dict[int, ErrorKind]] = {
    401: ErrorKind.INVALID_CREDENTIAL,
    403: ErrorKind.INVALID_CREDENTIAL,
    408: ErrorKind.PROVIDER_UNAVAILABLE,
    429: ErrorKind.RATE_LIMITED,
    500: ErrorKind.PROVIDER_UNAVAILABLE,
    502: ErrorKind.PROVIDER_UNAVAILABLE,
    503: ErrorKind.PROVIDER_UNAVAILABLE,
    504: ErrorKind.PROVIDER_UNAVAILABLE,
    529: ErrorKind.PROVIDER_UNAVAILABLE,
}

MESSAGE_HINTS: Final[Tuple[Tuple[str, ErrorKind], ...]] = (
    ("api key not valid", ErrorKind.INVALID_CREDENTIAL),
    ("incorrect api key", ErrorKind.INVALID_CREDENTIAL),
    ("invalid api key", ErrorKind.INVALID_CREDENTIAL),
    ("quota", ErrorKind.RATE_LIMITED),
    ("rate limit", ErrorKind.RATE_LIMITED),
    ("too many requests", ErrorKind.RATE_LIMITED),
    ("overloaded", ErrorKind.PROVIDER_UNAVAILABLE),
    ("temporarily unavailable", ErrorKind.PROVIDER_UNAVAILABLE),
)

_MESSAGES: Final[Dict[ErrorKind, str]] = {
    ErrorKind.INVALID_CREDENTIAL: "The provider rejected the API key",
    ErrorKind.RATE_LIMITED: "The provider quota or rate limit was exceeded",
    ErrorKind.PROVIDER_UNAVAILABLE: "The provider is unavailable or overloaded",
    ErrorKind.PROVIDER_ERROR: "The provider request failed",
}


def _error_fields(body: Any) -> Tuple[Optional[str], List[str]]:
    """Return (message, structured codes) from an OpenAI or Gemini error body."""
    if isinstance(body, list) and body:
        body = body[0]
    if not isinstance(body, dict):
        return None, []
    err = body.get("error")
    if isinstance(err, str):
        return err, []
    if not isinstance(err, dict):
        return None, []

    codes: List[str] = []
    for key in ("code", "type", "status"):
        v = err.get(key)
        if isinstance(v, str) and v:
            codes.append(v)
    for d in err.get("details") or []:
        if isinstance(d, dict) and isinstance(d.get("reason"), str):
            codes.append(d["reason"])
    msg = err.get("message")
    return (str(msg) if msg else None), codes


def classify(
    *,
    status_code: Optional[int],
    codes: Iterable[str] = (),
    message: Optional[str] = None,
) -> ErrorKind:
    for c in codes:
        kind = CODE_KINDS.get(c)
        if kind is not None:
            return kind
    if status_code is not None and status_code in STATUS_KINDS:
        return STATUS_KINDS[status_code]
    lowered = (message or "").lower()
    for needle, kind in MESSAGE_HINTS:
        if needle in lowered:
            return kind
    return ErrorKind.PROVIDER_ERROR


def _message_for(provider: str, kind: ErrorKind) -> str:
    return f"{provider}: {_MESSAGES.get(kind, _MESSAGES[ErrorKind.PROVIDER_ERROR])}"


def error_from_response(provider: str, resp: httpx.Response) -> ProviderError:
    try:
        body = resp.json()
    except ValueError:
        body = None
    message, codes = _error_fields(body)
    if message is None:
        message = (resp.text or resp.reason_phrase or "").strip()[:500]
    kind = classify(status_code=resp.status_code, codes=codes, message=message)
    return ProviderError(
        kind,
        _message_for(provider, kind),
        detail=message,
        status_code=resp.status_code,
    )


def error_from_transport(provider: str, exc: httpx.RequestError) -> ProviderError:
    if isinstance(exc, (httpx.TimeoutException, httpx.ConnectError)):
        kind = ErrorKind.PROVIDER_UNAVAILABLE
    else:
        kind = classify(status_code=None, message=str(exc))
    return ProviderError(
        kind, _message_for(provider, kind), detail=f"{type(exc).__name__}: {exc}"
    )
