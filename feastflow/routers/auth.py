"""Authentication endpoints: register, login, current user, logout."""

import logging

from fastapi import APIRouter, Depends, Request, Response

from feastflow.core.config import get_settings
from feastflow.core.security import TokenIdentity
from feastflow.dependencies import get_auth_service, require_any_role
from feastflow.schemas import (
    AuthResponse,
    Envelope,
    ErrorResponse,
    LoginRequest,
    ProfileResponse,
    RegisterRequest,
    UserProfile,
    UserPublic,
)
from feastflow.services.auth import AuthResult, AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _client_ip(request: Request):
    return request.client.host if request.client else None


def _token_response(result: AuthResult, response: Response) -> AuthResponse:
    """Attach the session cookie and build the token payload."""
    settings = get_settings()
    response.set_cookie(
        key=settings.token_cookie_name,
        value=result.token,
        max_age=settings.cookie_max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )
    return AuthResponse(
        success=True,
        token=result.token,
        user=UserPublic.model_validate(result.user),
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
    summary="Register a new account",
)
async def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    result = await service.register(
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        phone_number=body.phone_number,
        role=body.role,
        ip_address=_client_ip(request),
    )
    return _token_response(result, response)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Log in with email and password",
)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    result = await service.login(body.email, body.password, ip_address=_client_ip(request))
    return _token_response(result, response)


@router.get(
    "/me",
    response_model=ProfileResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Current user",
)
async def me(
    identity: TokenIdentity = Depends(require_any_role),
    service: AuthService = Depends(get_auth_service),
) -> ProfileResponse:
    user = await service.get_current_user(identity.id)
    return ProfileResponse(success=True, user=UserProfile.model_validate(user))


@router.post(
    "/logout",
    response_model=Envelope,
    summary="Log out (drops the session cookie)",
)
async def logout(
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> Envelope:
    settings = get_settings()
    await service.logout()
    response.set_cookie(
        key=settings.token_cookie_name,
        value="none",
        max_age=10,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )
    return Envelope(success=True, message="User logged out successfully")
