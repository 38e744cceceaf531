"""Auth Pydantic schemas for request/response validation."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Admin login request."""
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=128)


class TokenResponse(BaseModel):
    """JWT token response."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
