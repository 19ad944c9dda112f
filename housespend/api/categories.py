"""Category API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from housespend.api.dependencies import get_current_user
from housespend.database import get_db
from housespend.models.category import Category
from housespend.models.user import User
from housespend.schemas.category import CategoryResponse

router = APIRouter(prefix="/api/v1/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse])
def get_categories(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Get all product categories."""
    return db.query(Category).order_by(Category.name).all()
