"""Stock schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from housespend.schemas.category import CategoryResponse


class StockItemCreate(BaseModel):
    """Create a stock item."""

    product_name: str = Field(..., min_length=1, max_length=500)
    category_id: int | None = None
    current_quantity: Decimal = Field(Decimal("0"), ge=0)
    unit: str | None = Field(None, min_length=1, max_length=50)
    min_quantity: Decimal | None = Field(None, ge=0)
    max_quantity: Decimal | None = Field(None, ge=0)
    notes: str | None = None


class StockItemUpdate(BaseModel):
    """Update a stock item. Omitted fields are left unchanged."""

    product_name: str | None = Field(None, min_length=1, max_length=500)
    category_id: int | None = None
    current_quantity: Decimal | None = Field(None, ge=0)
    unit: str | None = Field(None, min_length=1, max_length=50)
    min_quantity: Decimal | None = Field(None, ge=0)
    max_quantity: Decimal | None = Field(None, ge=0)
    notes: str | None = None


class StockQuantityChange(BaseModel):
    """Quantity for adjust, consume and expire operations."""

    quantity: Decimal
    notes: str | None = Field(None, max_length=1000)


class StockItemResponse(BaseModel):
    """Stock item response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    product_name: str
    normalized_name: str
    category_id: int | None = None
    category: CategoryResponse | None = None
    current_quantity: Decimal
    unit: str
    min_quantity: Decimal | None = None
    max_quantity: Decimal | None = None
    last_updated: datetime
    notes: str | None = None
    is_low_stock: bool


class StockTransactionResponse(BaseModel):
    """Stock ledger entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    stock_item_id: int
    receipt_id: int | None = None
    transaction_type: str
    quantity: Decimal
    occurred_at: datetime
    notes: str | None = None
