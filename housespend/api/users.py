"""User administration API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from housespend.api.dependencies import get_current_admin
from housespend.database import get_db
from housespend.models.user import User
from housespend.schemas.auth import UserAdminResponse, UserCreate
from housespend.services.auth import create_user, delete_user, get_user_by_email, list_users

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("", response_model=list[UserAdminResponse])
def get_users(
    current_user: Annotated[User, Depends(get_current_admin)],
    db: Annotated[Session, Depends(get_db)],
):
    """List all users ordered by email."""
    return list_users(db)


@router.post("", response_model=UserAdminResponse, status_code=status.HTTP_201_CREATED)
def add_user(
    user_data: UserCreate,
    current_user: Annotated[User, Depends(get_current_admin)],
    db: Annotated[Session, Depends(get_db)],
):
    """Create a user, optionally with administrator rights."""
    if get_user_by_email(db, user_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )
    return create_user(
        db, user_data.email, user_data.password, user_data.name, is_admin=user_data.is_admin
    )


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_user(
    user_id: int,
    current_user: Annotated[User, Depends(get_current_admin)],
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a user and everything they own. Administrators cannot delete themselves."""
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account",
        )
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    delete_user(db, user)
