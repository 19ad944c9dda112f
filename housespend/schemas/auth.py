"""Authentication and setup schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserRegister(BaseModel):
    """User registration request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    name: str | None = Field(None, max_length=255)


class UserLogin(BaseModel):
    """User login request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)


class AuthResponse(BaseModel):
    """Authentication response with token and user info."""

    access_token: str
    token_type: str = "bearer"  # noqa: S105
    user: "UserResponse"


class UserResponse(BaseModel):
    """User information response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None
    is_admin: bool


class UserCreate(UserRegister):
    """Account created by an administrator."""

    is_admin: bool = False


class UserAdminResponse(UserResponse):
    """User as listed to administrators."""

    created_at: datetime


class SetupStatusResponse(BaseModel):
    """First-run setup progress."""

    is_setup_complete: bool
    has_api_key: bool


class ApiKeyUpdate(BaseModel):
    """Store the AI provider API key."""

    api_key: str = Field(..., min_length=1, max_length=500)
