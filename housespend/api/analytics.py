"""Spending analytics API endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from housespend.api.dependencies import get_analytics_service, get_current_user
from housespend.models.user import User
from housespend.schemas.analytics import CategoryExpense, MonthlyExpense, StoreAnalyticsResponse
from housespend.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/api/v1/analytics", tags=["analytics"])


@router.get("/stores", response_model=StoreAnalyticsResponse)
def get_store_analytics(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AnalyticsService, Depends(get_analytics_service)],
):
    """Spending per store."""
    return service.store_stats(current_user.id)


@router.get("/monthly", response_model=list[MonthlyExpense])
def get_monthly_expenses(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AnalyticsService, Depends(get_analytics_service)],
    year: Annotated[int | None, Query()] = None,
):
    """Spending per month of a year (defaults to the current year)."""
    return service.monthly(current_user.id, year or date.today().year)


@router.get("/categories", response_model=list[CategoryExpense])
def get_category_expenses(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AnalyticsService, Depends(get_analytics_service)],
    year: Annotated[int | None, Query()] = None,
    month: Annotated[int | None, Query()] = None,
):
    """Spending per category (defaults to the current month)."""
    today = date.today()
    if year is None:
        year = today.year
        if month is None:
            month = today.month
    return service.by_category(current_user.id, year, month)
