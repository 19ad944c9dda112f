"""SQLAlchemy models."""

from housespend.models.app_config import AppConfig
from housespend.models.category import Category
from housespend.models.receipt import LineItem, Receipt
from housespend.models.stock import StockItem, StockTransaction
from housespend.models.user import User

__all__ = [
    "User",
    "Category",
    "Receipt",
    "LineItem",
    "StockItem",
    "StockTransaction",
    "AppConfig",
]
