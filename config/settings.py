import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")
    ALLOWED_ORIGIN: str = Field(
        default="http://localhost:5173", validation_alias="ALLOWED_ORIGIN"
    )
    TRUST_PROXY: bool = Field(default=False, validation_alias="TRUST_PROXY")

    # Rate limiting (enabled only when Redis is configured)
    REDIS_URL: str = Field(default="", validation_alias="REDIS_URL")
    RATE_LIMIT_TIMES: int = Field(default=20, validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(default=60, validation_alias="RATE_LIMIT_SECONDS")

    # Generative model providers
    GEMINI_API_URL: str = "https://generativelanguage.googleapis.com/v1beta/models"
    GEMINI_DEFAULT_MODEL: str = Field(
        default="gemini-3-flash-preview", validation_alias="GEMINI_DEFAULT_MODEL"
    )
    OPENAI_API_URL: str = "https://api.openai.com/v1/chat/completions"
    OPENAI_MODELS_URL: str = "https://api.openai.com/v1/models"
    OPENAI_DEFAULT_MODEL: str = Field(
        default="gpt-4o", validation_alias="OPENAI_DEFAULT_MODEL"
    )
    LLM_TIMEOUT_SECONDS: float = Field(
        default=90.0, validation_alias="LLM_TIMEOUT_SECONDS"
    )
    LLM_TEMPERATURE: float = Field(default=0.2, validation_alias="LLM_TEMPERATURE")

    # Scraping
    FIRECRAWL_API_URL: str = "https://api.firecrawl.dev/v1/scrape"
    FIRECRAWL_API_KEY: str = Field(default="", validation_alias="FIRECRAWL_API_KEY")
    SCRAPE_TIMEOUT_SECONDS: float = Field(
        default=60.0, validation_alias="SCRAPE_TIMEOUT_SECONDS"
    )
    IMAGE_FETCH_TIMEOUT_SECONDS: float = Field(
        default=15.0, validation_alias="IMAGE_FETCH_TIMEOUT_SECONDS"
    )
    IMAGE_CACHE_SIZE: int = Field(default=8, validation_alias="IMAGE_CACHE_SIZE")

    # Orchestration
    ANALYSIS_CONCURRENCY: int = Field(default=4, validation_alias="ANALYSIS_CONCURRENCY")

    # Remote database (Supabase / PostgREST)
    SUPABASE_URL: str = Field(default="", validation_alias="SUPABASE_URL")
    SUPABASE_KEY: str = Field(default="", validation_alias="SUPABASE_KEY")
    REMOTE_TIMEOUT_SECONDS: float = Field(
        default=15.0, validation_alias="REMOTE_TIMEOUT_SECONDS"
    )
    REMOTE_PROBE_TIMEOUT_SECONDS: float = Field(
        default=3.0, validation_alias="REMOTE_PROBE_TIMEOUT_SECONDS"
    )

    # Local (degraded mode) store
    LOCAL_STORE_BACKEND: str = Field(default="file", validation_alias="LOCAL_STORE_BACKEND")
    LOCAL_STORE_DIR: str = Field(default=".local_store", validation_alias="LOCAL_STORE_DIR")
    LOCAL_HISTORY_LIMIT: int = Field(default=50, validation_alias="LOCAL_HISTORY_LIMIT")
    LOCAL_LOG_LIMIT: int = Field(default=200, validation_alias="LOCAL_LOG_LIMIT")
    LOCAL_AUTO_REGISTER: bool = Field(default=False, validation_alias="LOCAL_AUTO_REGISTER")

    # Logging knobs
    LOGGER_NAME: str = "landing-page-auditor"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    # Prompts
    COMPARE_SYSTEM_PROMPT: str = (
        "You are a Real Estate Compliance Auditor AI.\n"
        'Your task is to compare the "Reference Data" (Official Source) against the '
        '"Published Landing Page Data".\n'
        "Identify ANY discrepancies in pricing, location, dates, amenities, specifications, "
        "contact details, OR visual branding/imagery.\n"
        "\n"
        "Classify discrepancies by severity:\n"
        "- CRITICAL: Wrong price, wrong location, wrong completion date, misleading legal terms, "
        "completely wrong building image.\n"
        "- MAJOR: Missing key amenities, wrong contact info, significantly wrong description, "
        "low quality or mismatched images.\n"
        "- MINOR: Typos, slight tonal differences, vague wording.\n"
        "\n"
        "Calculate a compliance score (0-100), where 100 is a perfect match.\n"
        "\n"
        "OUTPUT: Return ONLY a JSON object, no code fences, shaped as:\n"
        '{"complianceScore": <number>, "discrepancies": [{"field": "...", "referenceValue": "...", '
        '"foundValue": "...", "severity": "CRITICAL|MAJOR|MINOR", "description": "...", '
        '"suggestion": "..."}]}\n'
        'Return an empty "discrepancies" array when the page matches the reference.\n'
    )


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
