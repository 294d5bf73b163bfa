# controller/controller_dependencies.py
from functools import lru_cache
from typing import Optional
from fastapi import Depends, Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from config.cache import get_redis
from config.settings import settings
from core.analysis_pipeline import AnalysisOrchestrator
from core.content_resolver import ContentResolver
from core.provider_adapter import ProviderAdapterLayer
from core.scraper_client import FirecrawlScraper
from model.account import DatabaseConfig, User
from repository.local_store import FileLocalStore, LocalStore, RedisLocalStore
from repository.persistence import PersistenceFacade
from service.activity_service import ActivityService
from service.analysis_service import AnalysisService
from service.api_key_validation_service import ApiKeyValidationService
from service.auth_service import AuthService
from service.history_service import HistoryService
from util.enums import ErrorMessage, LocalStoreBackend
from util.errors import AppError

_limiter = RateLimiter(times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS)


async def rate_limit(request: Request, response: Response) -> None:
    # Limiter is only initialised when Redis is configured
    if FastAPILimiter.redis is None:
        return
    await _limiter(request, response)


def _local_store() -> LocalStore:
    if settings.LOCAL_STORE_BACKEND == LocalStoreBackend.REDIS:
        return RedisLocalStore(get_redis)
    return FileLocalStore(settings.LOCAL_STORE_DIR)


@lru_cache
def get_persistence() -> PersistenceFacade:
    return PersistenceFacade(
        DatabaseConfig(url=settings.SUPABASE_URL, key=settings.SUPABASE_KEY),
        _local_store(),
        history_limit=settings.LOCAL_HISTORY_LIMIT,
        log_limit=settings.LOCAL_LOG_LIMIT,
    )


@lru_cache
def get_provider_layer() -> ProviderAdapterLayer:
    return ProviderAdapterLayer()


@lru_cache
def get_resolver() -> ContentResolver:
    return ContentResolver(FirecrawlScraper())


def get_activity_service(
    persistence: PersistenceFacade = Depends(get_persistence),
) -> ActivityService:
    return ActivityService(persistence)


@lru_cache
def get_auth_service() -> AuthService:
    # Holds the process-wide session, so it is a singleton
    persistence = get_persistence()
    return AuthService(
        persistence,
        ActivityService(persistence),
        auto_register=settings.LOCAL_AUTO_REGISTER,
    )


def get_history_service(
    persistence: PersistenceFacade = Depends(get_persistence),
    activity: ActivityService = Depends(get_activity_service),
) -> HistoryService:
    return HistoryService(persistence, activity)


def get_analysis_service(
    persistence: PersistenceFacade = Depends(get_persistence),
    providers: ProviderAdapterLayer = Depends(get_provider_layer),
    resolver: ContentResolver = Depends(get_resolver),
    activity: ActivityService = Depends(get_activity_service),
) -> AnalysisService:
    orchestrator = AnalysisOrchestrator(resolver, providers, persistence)
    return AnalysisService(orchestrator, resolver, activity)


def get_validation_service(
    providers: ProviderAdapterLayer = Depends(get_provider_layer),
) -> ApiKeyValidationService:
    return ApiKeyValidationService(providers)


def acting_user(user_id: Optional[str], auth: AuthService) -> Optional[User]:
    """
    The session user. An explicit `user_id` is only accepted when it names
    that same user; anonymous callers may not name anyone.
    """
    current = auth.current_user()
    if user_id:
        if current is None:
            raise AppError(
                ErrorMessage.NOT_LOGGED_IN.value.message,
                ErrorMessage.NOT_LOGGED_IN.value.http_status,
            )
        if current.id != user_id:
            raise AppError(
                ErrorMessage.OTHER_USER.value.message,
                ErrorMessage.OTHER_USER.value.http_status,
            )
    return current


def require_user(user_id: Optional[str], auth: AuthService) -> User:
    user = acting_user(user_id, auth)
    if user is None:
        raise AppError(
            ErrorMessage.NOT_LOGGED_IN.value.message,
            ErrorMessage.NOT_LOGGED_IN.value.http_status,
        )
    return user
