import logging
import os
import re
import sys
from logging.handlers import RotatingFileHandler
from config.settings import settings

logging.captureWarnings(True)

TEXT_FMT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
DATE_FMT = "%Y-%m-%dT%H:%M:%S%z"

# HTTP client chatter; request lines can carry provider URLs
QUIET_LOGGERS = ("httpx", "httpcore", "hpack")

_SECRET_PATTERNS = (
    re.compile(r"(Bearer\s+)[A-Za-z0-9._\-]+"),
    re.compile(r"((?:api[_-]?key|apikey|key)=)[^\s&]+", re.IGNORECASE),
    re.compile(r"\b(sk-|fc-)[A-Za-z0-9_\-]{8,}"),
)


def redact(text: str) -> str:
    for pat in _SECRET_PATTERNS:
        text = pat.sub(lambda m: f"{m.group(1)}***", text)
    return text


class RedactingFilter(logging.Filter):
    """Masks credentials that slip into a formatted message."""

    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        cleaned = redact(msg)
        if cleaned != msg:
            record.msg, record.args = cleaned, None
        return True


class ColoredFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[37m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[41m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Format a copy so the file handler keeps the plain levelname
        colored = logging.makeLogRecord(record.__dict__)
        lvl = record.levelname
        colored.levelname = f"{self.COLORS.get(lvl, self.RESET)}{lvl}{self.RESET}"
        return super().format(colored)


def _handlers(level: int) -> list[logging.Handler]:
    redactor = RedactingFilter()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ColoredFormatter(TEXT_FMT, datefmt=DATE_FMT))
    out: list[logging.Handler] = [console]

    if settings.LOG_TO_FILE:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        rotating = RotatingFileHandler(
            os.path.join(settings.LOG_DIR, settings.LOG_FILE_NAME),
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        rotating.setFormatter(logging.Formatter(TEXT_FMT, datefmt=DATE_FMT))
        out.append(rotating)

    for h in out:
        h.setLevel(level)
        h.addFilter(redactor)
    return out


def init_logger() -> logging.Logger:
    """
    Idempotent logger init:
    - Always logs to stdout, level names coloured.
    - Adds a size-rotated file under LOG_DIR only when settings.LOG_TO_FILE is True.
    - Every handler masks bearer tokens and API keys.
    """
    root = logging.getLogger()
    if getattr(root, "_auditor_inited", False):
        return logging.getLogger(settings.LOGGER_NAME)

    level = getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
    for h in _handlers(level):
        root.addHandler(h)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root._auditor_inited = True  # type: ignore[attr-defined]
    logger = logging.getLogger(settings.LOGGER_NAME)
    logger.debug("logger.init level=%s file=%s", logging.getLevelName(level), settings.LOG_TO_FILE)
    return logger
