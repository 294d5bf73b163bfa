# controller/validation_controller.py
from fastapi import APIRouter, status
from fastapi.params import Depends
from model.api import ValidateKeyResponse, ValidateKeyRequest
from service.api_key_validation_service import ApiKeyValidationService
from util.constants import InternalURIs
from controller.controller_dependencies import get_validation_service, rate_limit

validation_router = APIRouter(dependencies=[Depends(rate_limit)])


@validation_router.post(
    InternalURIs.VALIDATE_API_KEY,
    response_model=ValidateKeyResponse,
    status_code=status.HTTP_200_OK,
)
async def validate_api_key(
    payload: ValidateKeyRequest,
    service: ApiKeyValidationService = Depends(get_validation_service),
) -> ValidateKeyResponse:
    await service.validate_key(payload.provider, payload.apiKey)
    return ValidateKeyResponse(ok=True)
