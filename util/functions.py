from datetime import datetime, timezone
from urllib.parse import urlparse


def clip_words(text: str, max_words: int = 60) -> str:
    """
    - Trim 'text' to at most `max_words` tokens separated by whitespace.
    - Adds an ellipsis when trimming occurs.
    """
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + " …"


def is_valid_url(raw: str | None) -> bool:
    # Absolute http(s) URL with a host; anything else never reaches the network.
    if not raw or not raw.strip():
        return False
    try:
        parsed = urlparse(raw.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def strip_code_fences(raw: str) -> str:
    text = (raw or "").strip()
    if text.startswith("```"):
        text = text.strip("`").strip()
        if text.lower().startswith("json"):
            text = text[4:].strip()
    return text
