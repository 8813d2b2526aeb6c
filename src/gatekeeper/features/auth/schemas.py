"""Pydantic models for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.gatekeeper.auth.models import Identity


class LoginRequest(BaseModel):
    """Body of a provider login call."""

    token: str = Field(min_length=1, description="Google ID token or X OAuth2 access token")


class LoginResponse(BaseModel):
    """Response model for a successful login."""

    logged_in: bool = True
    user: Identity

    class Config:
        """Pydantic config."""

        json_schema_extra = {
            "example": {
                "logged_in": True,
                "user": {
                    "user_id": "42",
                    "email": None,
                    "name": "Jane",
                    "username": "jane",
                    "avatar": "https://pbs.twimg.com/profile_images/42/jane.jpg",
                    "provider": "x",
                },
            }
        }


class LogoutResponse(BaseModel):
    success: bool
    message: str


class ProvidersResponse(BaseModel):
    providers: list[str]


class ErrorResponse(BaseModel):
    """Body of every auth error response."""

    error: str
    message: str
    reset_at: datetime | None = None
