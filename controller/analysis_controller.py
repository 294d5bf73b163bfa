# controller/analysis_controller.py
from fastapi import APIRouter, Depends
from model.api import (
    AnalyzeRequest,
    AnalyzeResponse,
    ResolveContentRequest,
    ResolveContentResponse,
)
from service.analysis_service import AnalysisService
from service.auth_service import AuthService
from util.constants import InternalURIs
from controller.controller_dependencies import (
    acting_user,
    get_analysis_service,
    get_auth_service,
    rate_limit,
)

analysis_router = APIRouter(dependencies=[Depends(rate_limit)])


@analysis_router.post(InternalURIs.RESOLVE_CONTENT, response_model=ResolveContentResponse)
async def resolve_content(
    payload: ResolveContentRequest,
    service: AnalysisService = Depends(get_analysis_service),
    auth: AuthService = Depends(get_auth_service),
) -> ResolveContentResponse:
    resolved = await service.resolve_content(
        payload.descriptor, payload.scrapeKey, auth.current_user()
    )
    return ResolveContentResponse(**resolved.model_dump())


@analysis_router.post(InternalURIs.ANALYZE, response_model=AnalyzeResponse)
async def analyze(
    payload: AnalyzeRequest,
    service: AnalysisService = Depends(get_analysis_service),
    auth: AuthService = Depends(get_auth_service),
) -> AnalyzeResponse:
    run = await service.analyze(
        payload.reference,
        payload.targets,
        payload.llm,
        user=acting_user(payload.userId, auth),
        scrape_key=payload.scrapeKey,
        project_name=payload.projectName,
    )
    return AnalyzeResponse(
        results=run.results,
        sessionId=run.sessionId,
        saved=run.saved,
        cancelled=run.cancelled,
        summary=run.summary,
    )
