# controller/auth_controller.py
from fastapi import APIRouter, Depends, status
from model.api import LoginRequest, OkResponse, RegisterRequest, UserResponse
from service.auth_service import AuthService
from util.constants import InternalURIs
from controller.controller_dependencies import get_auth_service, rate_limit

auth_router = APIRouter(dependencies=[Depends(rate_limit)])


@auth_router.post(
    InternalURIs.AUTH_REGISTER,
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest, auth: AuthService = Depends(get_auth_service)
) -> UserResponse:
    return UserResponse(user=await auth.register(payload.email, payload.name))


@auth_router.post(InternalURIs.AUTH_LOGIN, response_model=UserResponse)
async def login(
    payload: LoginRequest, auth: AuthService = Depends(get_auth_service)
) -> UserResponse:
    return UserResponse(user=await auth.login(payload.email))


@auth_router.post(InternalURIs.AUTH_LOGOUT, response_model=OkResponse)
async def logout(auth: AuthService = Depends(get_auth_service)) -> OkResponse:
    await auth.logout()
    return OkResponse()


@auth_router.get(InternalURIs.AUTH_ME, response_model=UserResponse)
async def me(auth: AuthService = Depends(get_auth_service)) -> UserResponse:
    return UserResponse(user=auth.current_user())
