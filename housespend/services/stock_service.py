"""Stock ledger: per-user product quantities and their transaction history."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from housespend.config import Settings, get_settings
from housespend.models.category import Category
from housespend.models.enums import TransactionType
from housespend.models.stock import StockItem, StockTransaction
from housespend.schemas.stock import StockItemCreate, StockItemUpdate
from housespend.services.errors import (
    ConflictError,
    InsufficientStockError,
    InvalidInputError,
    NotFoundError,
)
from housespend.services.receipt_validation import (
    MAX_QUANTITY,
    ValidatedLineItem,
    fits,
    round_quantity,
)

logger = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    """Normalize a product name for matching."""
    return name.lower().strip()


@dataclass
class ReconciliationResult:
    """Outcome of applying a receipt's line items to stock."""

    updated: int = 0
    failed: list[str] = field(default_factory=list)


class StockService:
    """Service for stock items and their ledger.

    Every change to ``current_quantity`` is written in the same database
    transaction as the ledger entry describing it, so the sum of an item's
    transactions always equals its current quantity.
    """

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    # --- Reads ---

    def list_items(self, user_id: int) -> list[StockItem]:
        """List the user's stock items by name."""
        return (
            self.db.query(StockItem)
            .filter(StockItem.user_id == user_id)
            .order_by(StockItem.product_name)
            .all()
        )

    def get_item(self, stock_item_id: int, user_id: int, for_update: bool = False) -> StockItem:
        """Get a stock item that belongs to the user."""
        query = self.db.query(StockItem).filter(
            StockItem.id == stock_item_id,
            StockItem.user_id == user_id,
        )
        if for_update:
            query = query.with_for_update()
        item = query.first()
        if not item:
            raise NotFoundError("Stock item not found")
        return item

    def low_stock_items(self, user_id: int) -> list[StockItem]:
        """Items at or below their minimum quantity, lowest first."""
        return (
            self.db.query(StockItem)
            .filter(
                StockItem.user_id == user_id,
                StockItem.min_quantity.isnot(None),
                StockItem.current_quantity <= StockItem.min_quantity,
            )
            .order_by(StockItem.current_quantity, StockItem.product_name)
            .all()
        )

    def list_transactions(
        self, stock_item_id: int, user_id: int, page: int = 1, page_size: int = 50
    ) -> list[StockTransaction]:
        """Ledger entries for an item, newest first."""
        if page < 1 or page_size < 1:
            raise InvalidInputError("page and page_size must be positive")

        item = self.get_item(stock_item_id, user_id)
        return (
            self.db.query(StockTransaction)
            .filter(StockTransaction.stock_item_id == item.id)
            .order_by(StockTransaction.occurred_at.desc(), StockTransaction.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

    # --- Receipt reconciliation ---

    def reconcile_receipt(
        self, user_id: int, receipt_id: int, items: Iterable[ValidatedLineItem]
    ) -> ReconciliationResult:
        """Record each purchased line item in stock.

        Each product is committed on its own. A failure is logged and skipped
        so the remaining products are still applied.
        """
        result = ReconciliationResult()
        for item in items:
            try:
                self._apply_purchase(user_id, receipt_id, item)
                result.updated += 1
            except Exception as e:
                self.db.rollback()
                logger.warning(
                    f"Failed to update stock for '{item.name}' from receipt {receipt_id}: {e}",
                    exc_info=True,
                )
                result.failed.append(item.name)

        logger.info(
            f"Stock reconciliation for receipt {receipt_id}: "
            f"{result.updated} updated, {len(result.failed)} failed"
        )
        return result

    def _apply_purchase(self, user_id: int, receipt_id: int, item: ValidatedLineItem) -> StockItem:
        """Upsert the stock item and append its Purchase entry in one transaction."""
        normalized = normalize_name(item.name)
        now = datetime.now(UTC)

        stock_item = self._find_for_update(user_id, normalized)
        if stock_item is None:
            stock_item = StockItem(
                user_id=user_id,
                product_name=item.name,
                normalized_name=normalized,
                category_id=item.category_id,
                current_quantity=item.quantity,
                unit=self.settings.default_stock_unit,
                last_updated=now,
            )
            self.db.add(stock_item)
            try:
                self.db.flush()
            except IntegrityError:
                # Created concurrently; fall back to updating that row
                self.db.rollback()
                stock_item = self._find_for_update(user_id, normalized)
                if stock_item is None:
                    raise
                stock_item.current_quantity += item.quantity
                stock_item.last_updated = now
        else:
            stock_item.current_quantity += item.quantity
            stock_item.last_updated = now

        self._append_transaction(
            stock_item,
            TransactionType.PURCHASE,
            item.quantity,
            receipt_id=receipt_id,
            notes=f"Purchase from receipt #{receipt_id}",
        )
        self.db.commit()
        return stock_item

    def _find_for_update(self, user_id: int, normalized_name: str) -> StockItem | None:
        return (
            self.db.query(StockItem)
            .filter(
                StockItem.user_id == user_id,
                StockItem.normalized_name == normalized_name,
            )
            .with_for_update()
            .first()
        )

    # --- Manual operations ---

    def create_item(self, user_id: int, data: StockItemCreate) -> StockItem:
        """Create a stock item. The starting quantity is recorded as an adjustment."""
        normalized = normalize_name(data.product_name)
        if not normalized:
            raise InvalidInputError("Product name cannot be blank")

        existing = (
            self.db.query(StockItem)
            .filter(StockItem.user_id == user_id, StockItem.normalized_name == normalized)
            .first()
        )
        if existing:
            raise ConflictError(f"Item '{existing.product_name}' already exists in stock")

        _check_quantity(data.current_quantity, "current_quantity")
        _check_quantity(data.min_quantity, "min_quantity")
        _check_quantity(data.max_quantity, "max_quantity")
        self._check_category(data.category_id)
        self._check_thresholds(data.min_quantity, data.max_quantity)

        item = StockItem(
            user_id=user_id,
            product_name=data.product_name.strip(),
            normalized_name=normalized,
            category_id=data.category_id,
            current_quantity=round_quantity(data.current_quantity),
            unit=data.unit or self.settings.default_stock_unit,
            min_quantity=data.min_quantity,
            max_quantity=data.max_quantity,
            notes=data.notes,
            last_updated=datetime.now(UTC),
        )
        self.db.add(item)
        self._append_transaction(
            item, TransactionType.ADJUSTMENT, item.current_quantity, notes="Initial stock"
        )
        self._commit_or_conflict()
        self.db.refresh(item)
        return item

    def update_item(self, stock_item_id: int, user_id: int, data: StockItemUpdate) -> StockItem:
        """Update item details. A new quantity is applied as a ledgered adjustment."""
        _check_quantity(data.current_quantity, "current_quantity")
        _check_quantity(data.min_quantity, "min_quantity")
        _check_quantity(data.max_quantity, "max_quantity")
        item = self.get_item(stock_item_id, user_id, for_update=True)

        if data.product_name is not None:
            normalized = normalize_name(data.product_name)
            if not normalized:
                raise InvalidInputError("Product name cannot be blank")
            if normalized != item.normalized_name:
                duplicate = (
                    self.db.query(StockItem)
                    .filter(
                        StockItem.user_id == user_id,
                        StockItem.id != item.id,
                        StockItem.normalized_name == normalized,
                    )
                    .first()
                )
                if duplicate:
                    raise ConflictError(f"Item '{duplicate.product_name}' already exists in stock")
            item.product_name = data.product_name.strip()
            item.normalized_name = normalized
        if data.category_id is not None:
            self._check_category(data.category_id)
            item.category_id = data.category_id
        if data.unit is not None:
            item.unit = data.unit
        if data.min_quantity is not None:
            item.min_quantity = data.min_quantity
        if data.max_quantity is not None:
            item.max_quantity = data.max_quantity
        if data.notes is not None:
            item.notes = data.notes or None
        self._check_thresholds(item.min_quantity, item.max_quantity)

        if data.current_quantity is not None:
            self._set_quantity(item, round_quantity(data.current_quantity), notes=None)

        item.last_updated = datetime.now(UTC)
        self._commit_or_conflict()
        self.db.refresh(item)
        return item

    def delete_item(self, stock_item_id: int, user_id: int) -> None:
        """Delete a stock item together with its ledger."""
        item = self.get_item(stock_item_id, user_id)
        self.db.delete(item)
        self.db.commit()

    def adjust(
        self, stock_item_id: int, user_id: int, quantity: Decimal, notes: str | None = None
    ) -> StockItem:
        """Set an absolute quantity, recording the difference as an Adjustment."""
        _check_quantity(quantity)
        if quantity < 0:
            raise InvalidInputError("Quantity cannot be negative")

        item = self.get_item(stock_item_id, user_id, for_update=True)
        self._set_quantity(item, round_quantity(quantity), notes)
        self.db.commit()
        self.db.refresh(item)
        return item

    def consume(
        self, stock_item_id: int, user_id: int, quantity: Decimal, notes: str | None = None
    ) -> StockItem:
        """Subtract a used amount, recording a Consumption."""
        return self._decrease(
            stock_item_id, user_id, quantity, TransactionType.CONSUMPTION, notes or "Manual consumption"
        )

    def expire(
        self, stock_item_id: int, user_id: int, quantity: Decimal, notes: str | None = None
    ) -> StockItem:
        """Subtract a spoiled or lost amount, recording an Expiration."""
        return self._decrease(
            stock_item_id, user_id, quantity, TransactionType.EXPIRATION, notes or "Expired or discarded"
        )

    def _decrease(
        self,
        stock_item_id: int,
        user_id: int,
        quantity: Decimal,
        transaction_type: TransactionType,
        notes: str,
    ) -> StockItem:
        _check_quantity(quantity)
        quantity = round_quantity(quantity)
        if quantity <= 0:
            raise InvalidInputError("Quantity must be greater than zero")

        item = self.get_item(stock_item_id, user_id, for_update=True)
        if item.current_quantity < quantity:
            available = item.current_quantity
            self.db.rollback()
            raise InsufficientStockError(
                f"Not enough stock available ({available} on hand)",
                available=str(available),
            )

        item.current_quantity -= quantity
        item.last_updated = datetime.now(UTC)
        self._append_transaction(item, transaction_type, -quantity, notes=notes)
        self.db.commit()
        self.db.refresh(item)
        return item

    def _set_quantity(self, item: StockItem, new_quantity: Decimal, notes: str | None) -> None:
        old_quantity = item.current_quantity
        if new_quantity == old_quantity:
            return
        item.current_quantity = new_quantity
        item.last_updated = datetime.now(UTC)
        self._append_transaction(
            item,
            TransactionType.ADJUSTMENT,
            new_quantity - old_quantity,
            notes=notes or f"Manual adjustment: {old_quantity} → {new_quantity}",
        )

    def _append_transaction(
        self,
        stock_item: StockItem,
        transaction_type: TransactionType,
        quantity: Decimal,
        receipt_id: int | None = None,
        notes: str | None = None,
    ) -> StockTransaction:
        transaction = StockTransaction(
            stock_item=stock_item,
            receipt_id=receipt_id,
            transaction_type=transaction_type.value,
            quantity=quantity,
            occurred_at=datetime.now(UTC),
            notes=notes,
        )
        self.db.add(transaction)
        return transaction

    def _check_category(self, category_id: int | None) -> None:
        if category_id is not None and self.db.get(Category, category_id) is None:
            raise InvalidInputError(f"Unknown category {category_id}")

    def _check_thresholds(self, min_quantity: Decimal | None, max_quantity: Decimal | None) -> None:
        if min_quantity is not None and max_quantity is not None and min_quantity > max_quantity:
            raise InvalidInputError("min_quantity cannot be greater than max_quantity")

    def _commit_or_conflict(self) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("An item with this name already exists in your stock") from None


def _check_quantity(value: Decimal | None, field_name: str = "quantity") -> None:
    """Reject quantities the ledger columns cannot hold."""
    if value is not None and not fits(value, MAX_QUANTITY):
        raise InvalidInputError(f"{field_name} is out of range")
