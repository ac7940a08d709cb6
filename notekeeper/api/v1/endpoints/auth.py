"""
Auth API Endpoints.

Registration, login and the current principal.
"""

from fastapi import APIRouter

from notekeeper.core.config import get_app_config
from notekeeper.core.dependencies import CurrentUser, DbSession, RequestId
from notekeeper.core.exceptions import AuthorizationError
from notekeeper.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserInfo
from notekeeper.schemas.base import ApiResponse, ResponseMetadata
from notekeeper.services.auth import AuthService

router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse[AuthResponse],
    status_code=201,
    summary="Register",
    description="Create a USER account and return an access token.",
)
async def register(
    data: RegisterRequest,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[AuthResponse]:
    """Register a new account."""
    if not get_app_config().features.auth_registration_enabled:
        raise AuthorizationError("Registration is disabled")

    result = await AuthService(db).register(data)
    return ApiResponse(
        message="User registered successfully",
        data=result,
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "/login",
    response_model=ApiResponse[AuthResponse],
    summary="Log in",
    description="Exchange username and password for an access token.",
)
async def login(
    data: LoginRequest,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[AuthResponse]:
    """Log in with credentials."""
    result = await AuthService(db).login(data)
    return ApiResponse(
        message="Login successful",
        data=result,
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "/me",
    response_model=ApiResponse[UserInfo],
    summary="Current user",
)
async def me(user: CurrentUser, request_id: RequestId) -> ApiResponse[UserInfo]:
    """Return the authenticated user."""
    return ApiResponse(
        data=UserInfo.model_validate(user),
        metadata=ResponseMetadata(request_id=request_id),
    )
