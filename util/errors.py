from typing import Optional
from fastapi import HTTPException, status
from util.enums import ErrorKind


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self, message: str, http_status: int = status.HTTP_400_BAD_REQUEST
    ) -> None:
        super().__init__(status_code=http_status, detail=message)


class AuditError(Exception):
    """
    Domain failure carrying a stable `kind`. Callers branch on `kind`,
    never on message text.
    """

    def __init__(
        self, kind: ErrorKind, message: str = "", *, detail: Optional[str] = None
    ) -> None:
        self.kind = kind
        self.message = message or kind.value
        self.detail = detail
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class ContentError(AuditError):
    """Content resolution failures (MissingContent, InvalidUrl, ScrapeFailed)."""


class ProviderError(AuditError):
    """
    Provider adapter failures. `detail` keeps the provider's original
    message for diagnostics; `status_code` is set when the transport gave one.
    """

    def __init__(
        self,
        kind: ErrorKind = ErrorKind.PROVIDER_ERROR,
        message: str = "",
        *,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(kind, message, detail=detail)
        self.status_code = status_code


class PersistenceError(AuditError):
    """Storage failures (RemoteUnavailable, UserExists, UserNotFound)."""
