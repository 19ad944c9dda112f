"""Pydantic schemas for API requests and responses."""

from housespend.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from housespend.schemas.category import CategoryResponse
from housespend.schemas.receipt import (
    LineItemResponse,
    ReceiptAnalysisResponse,
    ReceiptDetailResponse,
    ReceiptResponse,
)
from housespend.schemas.stock import (
    StockItemCreate,
    StockItemResponse,
    StockItemUpdate,
    StockQuantityChange,
    StockTransactionResponse,
)

__all__ = [
    "UserRegister",
    "UserLogin",
    "AuthResponse",
    "UserResponse",
    "CategoryResponse",
    "LineItemResponse",
    "ReceiptResponse",
    "ReceiptDetailResponse",
    "ReceiptAnalysisResponse",
    "StockItemCreate",
    "StockItemUpdate",
    "StockQuantityChange",
    "StockItemResponse",
    "StockTransactionResponse",
]
