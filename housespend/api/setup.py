"""First-run setup: administrator account and AI provider key."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from housespend.api.dependencies import get_current_admin, get_secret_store
from housespend.database import get_db
from housespend.models.user import User
from housespend.schemas.auth import (
    ApiKeyUpdate,
    AuthResponse,
    SetupStatusResponse,
    UserRegister,
    UserResponse,
)
from housespend.services.auth import create_access_token, create_user, get_user_by_email, has_admin
from housespend.services.secret_store import ANTHROPIC_API_KEY, SecretStore

router = APIRouter(prefix="/api/v1/setup", tags=["setup"])


@router.get("/check", response_model=SetupStatusResponse)
def check_setup(
    db: Annotated[Session, Depends(get_db)],
    secret_store: Annotated[SecretStore, Depends(get_secret_store)],
):
    """Report whether an administrator and an API key exist."""
    return SetupStatusResponse(
        is_setup_complete=has_admin(db),
        has_api_key=secret_store.has(ANTHROPIC_API_KEY),
    )


@router.post("/admin", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def create_admin(
    user_data: UserRegister,
    db: Annotated[Session, Depends(get_db)],
):
    """Create the first administrator. Only allowed once."""
    if has_admin(db):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Setup already completed")
    if get_user_by_email(db, user_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    user = create_user(db, user_data.email, user_data.password, user_data.name, is_admin=True)
    return AuthResponse(
        access_token=create_access_token(user.id, user.email),
        user=UserResponse.model_validate(user),
    )


@router.put("/api-key", response_model=SetupStatusResponse)
def update_api_key(
    data: ApiKeyUpdate,
    current_user: Annotated[User, Depends(get_current_admin)],
    db: Annotated[Session, Depends(get_db)],
    secret_store: Annotated[SecretStore, Depends(get_secret_store)],
):
    """Store the Anthropic API key, encrypted."""
    secret_store.set(ANTHROPIC_API_KEY, data.api_key.strip())
    return SetupStatusResponse(is_setup_complete=has_admin(db), has_api_key=True)
