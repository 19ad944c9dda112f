"""Receipt schemas."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from housespend.schemas.category import CategoryResponse


class LineItemResponse(BaseModel):
    """Line item read from a receipt."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    category: CategoryResponse | None = None
    is_discount: bool


class ReceiptResponse(BaseModel):
    """Receipt summary for listings."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    store_name: str | None = None
    total_amount: Decimal | None = None
    purchase_date: date | None = None
    is_analyzed: bool
    status: str
    created_at: datetime
    line_item_count: int = 0


class ReceiptDetailResponse(BaseModel):
    """Receipt with its line items."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    store_name: str | None = None
    total_amount: Decimal | None = None
    purchase_date: date | None = None
    is_analyzed: bool
    status: str
    analysis_error: str | None = None
    created_at: datetime
    line_items: list[LineItemResponse] = Field(default_factory=list)


class ReceiptAnalysisResponse(ReceiptDetailResponse):
    """Result of analyzing a receipt."""

    warnings: list[str] = Field(default_factory=list)
    stock_updated: int = 0
    stock_failed: list[str] = Field(default_factory=list)
