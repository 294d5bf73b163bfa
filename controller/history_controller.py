# controller/history_controller.py
from typing import Optional
from fastapi import APIRouter, Depends, Query
from model.api import FeedbackRequest, HistoryResponse, LogsResponse, OkResponse
from service.activity_service import ActivityService
from service.auth_service import AuthService
from service.history_service import HistoryService
from util.constants import InternalURIs
from controller.controller_dependencies import (
    get_activity_service,
    get_auth_service,
    get_history_service,
    require_user,
)

history_router = APIRouter()


@history_router.get(InternalURIs.HISTORY, response_model=HistoryResponse)
async def get_history(
    userId: Optional[str] = Query(default=None),
    service: HistoryService = Depends(get_history_service),
    auth: AuthService = Depends(get_auth_service),
) -> HistoryResponse:
    user = require_user(userId, auth)
    return HistoryResponse(sessions=await service.get_history(user.id))


@history_router.delete(InternalURIs.HISTORY_ITEM, response_model=OkResponse)
async def delete_history(
    session_id: str,
    service: HistoryService = Depends(get_history_service),
    auth: AuthService = Depends(get_auth_service),
) -> OkResponse:
    await service.delete(require_user(None, auth), session_id)
    return OkResponse()


@history_router.delete(InternalURIs.HISTORY, response_model=OkResponse)
async def clear_history(
    userId: Optional[str] = Query(default=None),
    service: HistoryService = Depends(get_history_service),
    auth: AuthService = Depends(get_auth_service),
) -> OkResponse:
    await service.clear_all(require_user(userId, auth))
    return OkResponse()


@history_router.get(InternalURIs.LOGS, response_model=LogsResponse)
async def get_logs(
    userId: Optional[str] = Query(default=None),
    service: ActivityService = Depends(get_activity_service),
    auth: AuthService = Depends(get_auth_service),
) -> LogsResponse:
    user = require_user(userId, auth)
    return LogsResponse(logs=await service.list(user.id))


@history_router.post(InternalURIs.LOG_FEEDBACK, response_model=OkResponse)
async def feedback(
    payload: FeedbackRequest,
    service: ActivityService = Depends(get_activity_service),
    auth: AuthService = Depends(get_auth_service),
) -> OkResponse:
    entry = await service.feedback(
        require_user(None, auth), payload.discrepancyId, payload.isAccurate, payload.details
    )
    return OkResponse(ok=entry is not None)
