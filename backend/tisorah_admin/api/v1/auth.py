"""Authentication API endpoints."""

from fastapi import APIRouter, HTTPException, status

from tisorah_admin.config import settings
from tisorah_admin.schemas.auth import LoginRequest, TokenResponse
from tisorah_admin.schemas.common import ApiResponse
from tisorah_admin.services.auth_service import authenticate_admin, create_access_token

router = APIRouter()


@router.post("/login", response_model=ApiResponse)
async def login(body: LoginRequest):
    """Login with the dashboard username and password."""
    username = authenticate_admin(body.username, body.password)

    if not username:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    token = create_access_token(username)
    return ApiResponse(
        status="success",
        data=TokenResponse(
            access_token=token,
            expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        ),
    )
