"""Validation and repair of line items returned by the receipt analysis model."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from housespend.models.category import Category
from housespend.schemas.analysis import AnalyzedLineItem
from housespend.services.category_service import FALLBACK_CATEGORY

logger = logging.getLogger(__name__)

QUANTITY_QUANT = Decimal("0.001")
MONEY_QUANT = Decimal("0.01")
ZERO = Decimal("0")

# Largest magnitudes that fit Numeric(18, 3) and Numeric(18, 2)
MAX_QUANTITY = Decimal("1e15")
MAX_MONEY = Decimal("1e16")


def round_quantity(value: Decimal) -> Decimal:
    """Round a quantity to 3 decimals, half away from zero."""
    return value.quantize(QUANTITY_QUANT, rounding=ROUND_HALF_UP)


def round_money(value: Decimal) -> Decimal:
    """Round an amount to 2 decimals, half away from zero."""
    return value.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def fits(value: Decimal, limit: Decimal) -> bool:
    """True when the value is finite and below the column limit in magnitude."""
    return value.is_finite() and abs(value) < limit


@dataclass
class ValidatedLineItem:
    """A line item that is safe to persist."""

    name: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    category_id: int | None = None
    is_discount: bool = False


def _invalid_quantity(name: str, quantity: Decimal | None) -> str:
    return f"Discarded '{name}' due to invalid quantity ({quantity})."


def _invalid_prices(name: str) -> str:
    return f"Discarded '{name}' due to invalid prices."


def _rejection_reason(item: AnalyzedLineItem | None) -> str | None:
    """Return a warning for the first rule the item breaks, or None if it passes."""
    if item is None:
        return "Discarded an invalid item returned by the analysis."

    name = (item.name or "").strip()
    if not name:
        return "Discarded an item without a name."

    quantity = item.quantity if item.quantity is not None else ZERO
    if not fits(quantity, MAX_QUANTITY) or quantity <= 0:
        return _invalid_quantity(name, quantity)

    unit_price = item.unit_price if item.unit_price is not None else ZERO
    total_price = item.total_price if item.total_price is not None else ZERO
    if not fits(unit_price, MAX_MONEY) or not fits(total_price, MAX_MONEY):
        return _invalid_prices(name)
    if unit_price < 0 or total_price < 0:
        return f"Discarded '{name}' due to negative prices."

    return None


def _resolve_category(label: str | None, categories: Mapping[str, Category]) -> int | None:
    """Exact-match the model's label; fall back to the catch-all when it gave none."""
    if label is None or not label.strip():
        category = categories.get(FALLBACK_CATEGORY)
    else:
        category = categories.get(label)
    return category.id if category else None


def normalize_line_item(
    item: AnalyzedLineItem, categories: Mapping[str, Category]
) -> ValidatedLineItem | None:
    """Round and reconcile the numbers of an item that passed validation.

    Returns None when a repaired price no longer fits the money column.
    """
    quantity = round_quantity(item.quantity)
    unit_price = round_money(item.unit_price if item.unit_price is not None else ZERO)
    total_price = round_money(item.total_price if item.total_price is not None else ZERO)

    # The model often reads only one of the two prices reliably
    if total_price <= 0 and unit_price > 0 and quantity > 0:
        repaired = unit_price * quantity
        if not fits(repaired, MAX_MONEY):
            return None
        total_price = round_money(repaired)
    elif unit_price <= 0 and total_price > 0 and quantity > 0:
        unit_price = round_money(total_price / quantity)

    # Rounding can push a value just under the limit over it
    if not fits(quantity, MAX_QUANTITY):
        return None
    if not (fits(unit_price, MAX_MONEY) and fits(total_price, MAX_MONEY)):
        return None

    return ValidatedLineItem(
        name=item.name.strip(),
        quantity=quantity,
        unit_price=unit_price,
        total_price=total_price,
        category_id=_resolve_category(item.category_name, categories),
        is_discount=item.is_discount,
    )


def validate_line_items(
    candidates: Iterable[AnalyzedLineItem | None],
    categories: Mapping[str, Category],
) -> tuple[list[ValidatedLineItem], list[str]]:
    """Filter and repair candidate line items.

    Invalid items are discarded with a warning instead of failing the whole
    receipt. The caller decides what an empty result means.

    Args:
        candidates: Line items as parsed from the model response
        categories: Categories keyed by exact name

    Returns:
        (surviving items, warnings)
    """
    items: list[ValidatedLineItem] = []
    warnings: list[str] = []

    for candidate in candidates:
        reason = _rejection_reason(candidate)
        if reason:
            warnings.append(reason)
            continue

        item = normalize_line_item(candidate, categories)
        if item is None:
            warnings.append(_invalid_prices(candidate.name.strip()))
            continue
        if item.quantity <= 0:
            # e.g. 0.0004 rounds to 0.000
            warnings.append(_invalid_quantity(item.name, candidate.quantity))
            continue

        items.append(item)

    if warnings:
        logger.info(f"Line item validation kept {len(items)} item(s), warnings: {warnings}")

    return items, warnings
