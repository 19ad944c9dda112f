"""Shapes of the structured data returned by the receipt analysis model."""

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


class AnalyzedLineItem(BaseModel):
    """A candidate line item as reported by the model. Nothing here is trusted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str | None = None
    quantity: Decimal | None = None
    unit_price: Decimal | None = None
    total_price: Decimal | None = None
    category_name: str | None = None
    is_discount: bool = False

    @field_validator("name", "category_name", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str | None:
        if value is None:
            return None
        return str(value)

    @field_validator("is_discount", mode="before")
    @classmethod
    def coerce_flag(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes")
        return bool(value)


class ReceiptAnalysis(BaseModel):
    """Normalized result of analyzing one receipt image."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    store_name: str | None = None
    purchase_date: date | None = None
    total_amount: Decimal | None = None
    items: list[AnalyzedLineItem | None] = Field(
        default_factory=list,
        validation_alias=AliasChoices("items", "products", "lineItems", "line_items"),
    )

    @field_validator("store_name", mode="before")
    @classmethod
    def clean_store_name(cls, value: Any) -> str | None:
        if not isinstance(value, str):
            return None
        return value.strip() or None

    @field_validator("purchase_date", mode="before")
    @classmethod
    def parse_purchase_date(cls, value: Any) -> date | None:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str) and value.strip():
            try:
                return date.fromisoformat(value.strip()[:10])
            except ValueError:
                logger.info(f"Ignoring unparseable purchase date: {value!r}")
        return None

    @field_validator("total_amount", mode="before")
    @classmethod
    def parse_total_amount(cls, value: Any) -> Decimal | None:
        return _to_decimal(value)

    @field_validator("items", mode="before")
    @classmethod
    def parse_items(cls, value: Any) -> list[AnalyzedLineItem | None]:
        """Parse each item on its own so one bad row cannot sink the receipt."""
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("items must be a list")

        items: list[AnalyzedLineItem | None] = []
        for raw in value:
            if isinstance(raw, AnalyzedLineItem):
                items.append(raw)
                continue
            if not isinstance(raw, dict):
                items.append(None)
                continue
            try:
                items.append(AnalyzedLineItem.model_validate(raw))
            except ValidationError as e:
                logger.info(f"Unparseable line item {raw!r}: {e}")
                items.append(None)
        return items
