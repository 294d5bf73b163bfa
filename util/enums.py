from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class LocalStoreBackend(str, Enum):
    FILE = "file"
    REDIS = "redis"


class ErrorKind(str, Enum):
    MISSING_CONTENT = "MissingContent"
    INVALID_URL = "InvalidUrl"
    SCRAPE_FAILED = "ScrapeFailed"
    MISSING_CREDENTIAL = "MissingCredential"
    UNSUPPORTED_PROVIDER = "UnsupportedProvider"
    INVALID_CREDENTIAL = "InvalidCredential"
    RATE_LIMITED = "RateLimited"
    PROVIDER_UNAVAILABLE = "ProviderUnavailable"
    EMPTY_RESPONSE = "EmptyResponse"
    MALFORMED_PROVIDER_RESPONSE = "MalformedProviderResponse"
    PROVIDER_ERROR = "ProviderError"
    INVALID_SEVERITY = "InvalidSeverity"
    REMOTE_UNAVAILABLE = "RemoteUnavailable"
    MISSING_REFERENCE = "MissingReference"
    USER_EXISTS = "UserExists"
    USER_NOT_FOUND = "UserNotFound"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    INVALID_API_KEY = ErrorInfo("Invalid API Key", status.HTTP_401_UNAUTHORIZED)
    NOT_LOGGED_IN = ErrorInfo("No user is logged in", status.HTTP_401_UNAUTHORIZED)
    OTHER_USER = ErrorInfo("Cannot act on behalf of another user", status.HTTP_403_FORBIDDEN)
    INTERNAL_ERROR = ErrorInfo("Internal Error", status.HTTP_502_BAD_GATEWAY)


# Flow: single lookup table from domain error kind to HTTP status.
ERROR_HTTP_STATUS: dict[ErrorKind, int] = {
    ErrorKind.MISSING_CONTENT: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.INVALID_URL: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.SCRAPE_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.MISSING_CREDENTIAL: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNSUPPORTED_PROVIDER: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_CREDENTIAL: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.PROVIDER_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.EMPTY_RESPONSE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.MALFORMED_PROVIDER_RESPONSE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.PROVIDER_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.INVALID_SEVERITY: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.REMOTE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.MISSING_REFERENCE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.USER_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
}
