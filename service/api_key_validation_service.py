# service/api_key_validation_service.py
from core.provider_adapter import ProviderAdapterLayer
from model.provider import ProviderConfig
from util.enums import ErrorKind, ErrorMessage
from util.errors import AppError, ProviderError
import logging

logger = logging.getLogger(__name__)


class ApiKeyValidationService:
    """
    Service to validate user entered a valid API Key for the chosen provider
    """

    def __init__(self, providers: ProviderAdapterLayer) -> None:
        self._providers = providers

    async def validate_key(self, provider: str, api_key: str) -> None:
        try:
            await self._providers.check_key(ProviderConfig(provider=provider, apiKey=api_key))
        except ProviderError as e:
            if e.kind in (ErrorKind.INVALID_CREDENTIAL, ErrorKind.MISSING_CREDENTIAL):
                logger.warning("api.key.invalid provider=%s", provider)
                raise AppError(
                    ErrorMessage.INVALID_API_KEY.value.message,
                    ErrorMessage.INVALID_API_KEY.value.http_status,
                )
            # other kinds (rate limit, outage, unsupported) go to the AuditError handler
            raise
        logger.info("api.key.validated provider=%s", provider)
