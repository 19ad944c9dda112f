"""Analytics schemas."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel


class StoreStat(BaseModel):
    """Spending at one store."""

    store_name: str
    receipt_count: int
    total_spent: Decimal
    average_amount: Decimal
    last_purchase_date: date | None = None


class StoreAnalyticsResponse(BaseModel):
    """Spending grouped by store."""

    stores: list[StoreStat]
    total_stores: int
    total_spent: Decimal
    total_receipts: int


class MonthlyExpense(BaseModel):
    """Spending in one month."""

    year: int
    month: int
    total_amount: Decimal
    receipt_count: int


class CategoryExpense(BaseModel):
    """Spending in one category."""

    category_name: str
    category_color: str
    total_amount: Decimal
    line_item_count: int
