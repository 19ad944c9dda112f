"""Stock API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from housespend.api.dependencies import get_current_user, get_stock_service
from housespend.models.user import User
from housespend.schemas.stock import (
    StockItemCreate,
    StockItemResponse,
    StockItemUpdate,
    StockQuantityChange,
    StockTransactionResponse,
)
from housespend.services.stock_service import StockService

router = APIRouter(prefix="/api/v1/stock", tags=["stock"])


@router.get("", response_model=list[StockItemResponse])
def list_stock_items(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[StockService, Depends(get_stock_service)],
):
    """List all stock items for the current user."""
    return service.list_items(current_user.id)


@router.post("", response_model=StockItemResponse, status_code=status.HTTP_201_CREATED)
def create_stock_item(
    data: StockItemCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[StockService, Depends(get_stock_service)],
):
    """Add a product to stock by hand."""
    return service.create_item(current_user.id, data)


@router.get("/alerts", response_model=list[StockItemResponse])
def get_low_stock_alerts(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[StockService, Depends(get_stock_service)],
):
    """Items at or below their minimum quantity."""
    return service.low_stock_items(current_user.id)


@router.get("/{stock_item_id}", response_model=StockItemResponse)
def get_stock_item(
    stock_item_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[StockService, Depends(get_stock_service)],
):
    return service.get_item(stock_item_id, current_user.id)


@router.put("/{stock_item_id}", response_model=StockItemResponse)
def update_stock_item(
    stock_item_id: int,
    data: StockItemUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[StockService, Depends(get_stock_service)],
):
    """Update a stock item."""
    return service.update_item(stock_item_id, current_user.id, data)


@router.delete("/{stock_item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_stock_item(
    stock_item_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[StockService, Depends(get_stock_service)],
):
    """Delete a stock item and its history."""
    service.delete_item(stock_item_id, current_user.id)


@router.post("/{stock_item_id}/adjust", response_model=StockItemResponse)
def adjust_stock(
    stock_item_id: int,
    data: StockQuantityChange,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[StockService, Depends(get_stock_service)],
):
    """Set the quantity on hand."""
    return service.adjust(stock_item_id, current_user.id, data.quantity, data.notes)


@router.post("/{stock_item_id}/consume", response_model=StockItemResponse)
def consume_stock(
    stock_item_id: int,
    data: StockQuantityChange,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[StockService, Depends(get_stock_service)],
):
    """Record that some quantity was used."""
    return service.consume(stock_item_id, current_user.id, data.quantity, data.notes)


@router.post("/{stock_item_id}/expire", response_model=StockItemResponse)
def expire_stock(
    stock_item_id: int,
    data: StockQuantityChange,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[StockService, Depends(get_stock_service)],
):
    """Record that some quantity spoiled or was thrown away."""
    return service.expire(stock_item_id, current_user.id, data.quantity, data.notes)


@router.get("/{stock_item_id}/transactions", response_model=list[StockTransactionResponse])
def list_stock_transactions(
    stock_item_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[StockService, Depends(get_stock_service)],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=200)] = 50,
):
    """Ledger of an item, newest first."""
    return service.list_transactions(stock_item_id, current_user.id, page, page_size)
