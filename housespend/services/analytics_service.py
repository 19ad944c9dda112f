"""Spending analytics over analyzed receipts."""

from collections import defaultdict
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session, joinedload

from housespend.models.receipt import LineItem, Receipt
from housespend.schemas.analytics import (
    CategoryExpense,
    MonthlyExpense,
    StoreAnalyticsResponse,
    StoreStat,
)
from housespend.services.errors import InvalidInputError
from housespend.services.receipt_validation import round_money

UNCATEGORIZED_NAME = "Sin categoría"
UNCATEGORIZED_COLOR = "#6B7280"
UNKNOWN_STORE = "Desconocido"
ZERO = Decimal("0")


class AnalyticsService:
    """Aggregates receipt totals by store, month and category."""

    def __init__(self, db: Session):
        self.db = db

    def _analyzed_receipts(self, user_id: int):
        return self.db.query(Receipt).filter(
            Receipt.user_id == user_id,
            Receipt.is_analyzed.is_(True),
            Receipt.total_amount.isnot(None),
        )

    def store_stats(self, user_id: int) -> StoreAnalyticsResponse:
        """Spending per store, largest first."""
        grouped: dict[str, list[Receipt]] = defaultdict(list)
        for receipt in self._analyzed_receipts(user_id).all():
            grouped[receipt.store_name or UNKNOWN_STORE].append(receipt)

        stores = []
        for store_name, receipts in grouped.items():
            total = sum((r.total_amount for r in receipts), ZERO)
            dates = [r.purchase_date or r.created_at.date() for r in receipts]
            stores.append(
                StoreStat(
                    store_name=store_name,
                    receipt_count=len(receipts),
                    total_spent=round_money(total),
                    average_amount=round_money(total / len(receipts)),
                    last_purchase_date=max(dates),
                )
            )
        stores.sort(key=lambda s: (-s.total_spent, s.store_name))

        return StoreAnalyticsResponse(
            stores=stores,
            total_stores=len(stores),
            total_spent=round_money(sum((s.total_spent for s in stores), ZERO)),
            total_receipts=sum(s.receipt_count for s in stores),
        )

    def monthly(self, user_id: int, year: int) -> list[MonthlyExpense]:
        """Twelve entries for the year, months without receipts included as zero."""
        _check_year(year)
        totals = defaultdict(lambda: ZERO)
        counts: dict[int, int] = defaultdict(int)

        receipts = self._analyzed_receipts(user_id).filter(
            Receipt.purchase_date >= date(year, 1, 1),
            Receipt.purchase_date < date(year + 1, 1, 1),
        )
        for receipt in receipts:
            month = receipt.purchase_date.month
            totals[month] += receipt.total_amount
            counts[month] += 1

        return [
            MonthlyExpense(
                year=year,
                month=month,
                total_amount=round_money(totals[month]),
                receipt_count=counts[month],
            )
            for month in range(1, 13)
        ]

    def by_category(self, user_id: int, year: int, month: int | None = None) -> list[CategoryExpense]:
        """Line item spending per category for a year or one month of it."""
        _check_year(year)
        if month is None:
            start, end = date(year, 1, 1), date(year + 1, 1, 1)
        elif 1 <= month <= 12:
            start = date(year, month, 1)
            end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        else:
            raise InvalidInputError("month must be between 1 and 12")

        items = (
            self.db.query(LineItem)
            .join(Receipt, LineItem.receipt_id == Receipt.id)
            .options(joinedload(LineItem.category))
            .filter(
                Receipt.user_id == user_id,
                Receipt.is_analyzed.is_(True),
                Receipt.purchase_date >= start,
                Receipt.purchase_date < end,
            )
            .all()
        )

        groups: dict[tuple[str, str], list[LineItem]] = defaultdict(list)
        for item in items:
            if item.category:
                key = (item.category.name, item.category.color or UNCATEGORIZED_COLOR)
            else:
                key = (UNCATEGORIZED_NAME, UNCATEGORIZED_COLOR)
            groups[key].append(item)

        result = [
            CategoryExpense(
                category_name=name,
                category_color=color,
                total_amount=round_money(sum((i.total_price for i in group), ZERO)),
                line_item_count=len(group),
            )
            for (name, color), group in groups.items()
        ]
        result.sort(key=lambda c: (-c.total_amount, c.category_name))
        return result


def _check_year(year: int) -> None:
    if year < 1900 or year > 9998:
        raise InvalidInputError("year is out of range")
