# controller/settings_controller.py
from fastapi import APIRouter, Depends
from model.api import DatabaseSettingsRequest, DatabaseSettingsResponse
from repository.persistence import PersistenceFacade
from util.constants import InternalURIs
from controller.controller_dependencies import get_persistence

settings_router = APIRouter()


async def _describe(persistence: PersistenceFacade) -> DatabaseSettingsResponse:
    # The key is write-only
    config = persistence.db_config
    return DatabaseSettingsResponse(
        url=config.url,
        configured=config.is_present(),
        mode=await persistence.mode(),
    )


@settings_router.get(InternalURIs.DATABASE_SETTINGS, response_model=DatabaseSettingsResponse)
async def get_database_settings(
    persistence: PersistenceFacade = Depends(get_persistence),
) -> DatabaseSettingsResponse:
    return await _describe(persistence)


@settings_router.put(InternalURIs.DATABASE_SETTINGS, response_model=DatabaseSettingsResponse)
async def put_database_settings(
    payload: DatabaseSettingsRequest,
    persistence: PersistenceFacade = Depends(get_persistence),
) -> DatabaseSettingsResponse:
    persistence.configure(payload.url, payload.key)
    return await _describe(persistence)
