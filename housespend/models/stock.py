"""Stock ledger models."""

from datetime import UTC, datetime

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import backref, relationship

from housespend.database import Base
from housespend.models.mixins import TimestampMixin


class StockItem(Base, TimestampMixin):
    """Running quantity of one product a user keeps at home."""

    __tablename__ = "stock_items"
    __table_args__ = (
        UniqueConstraint("user_id", "normalized_name", name="uq_stock_user_normalized_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_name = Column(String(500), nullable=False)  # Display name
    normalized_name = Column(String(500), nullable=False)  # Lowercase, trimmed for matching
    category_id = Column(
        Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    current_quantity = Column(Numeric(18, 3), nullable=False, default=0)
    unit = Column(String(50), nullable=False, default="unidad")  # unidad, kg, litro...
    min_quantity = Column(Numeric(18, 3), nullable=True)  # Alert threshold
    max_quantity = Column(Numeric(18, 3), nullable=True)
    last_updated = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    notes = Column(Text, nullable=True)

    # Relationships
    user = relationship("User", backref=backref("stock_items", cascade="all, delete-orphan"))
    category = relationship("Category")
    transactions = relationship(
        "StockTransaction",
        back_populates="stock_item",
        cascade="all, delete-orphan",
    )

    @property
    def is_low_stock(self) -> bool:
        """Check if the item is at or below its alert threshold."""
        return self.min_quantity is not None and self.current_quantity <= self.min_quantity


class StockTransaction(Base):
    """Immutable ledger entry changing a stock item's quantity."""

    __tablename__ = "stock_transactions"

    id = Column(Integer, primary_key=True, index=True)
    stock_item_id = Column(
        Integer, ForeignKey("stock_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    receipt_id = Column(
        Integer, ForeignKey("receipts.id", ondelete="SET NULL"), nullable=True, index=True
    )
    transaction_type = Column(String(20), nullable=False)  # see TransactionType
    quantity = Column(Numeric(18, 3), nullable=False)  # Positive increases, negative decreases
    occurred_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), index=True
    )
    notes = Column(Text, nullable=True)

    # Relationships
    stock_item = relationship("StockItem", back_populates="transactions")
    receipt = relationship("Receipt", back_populates="stock_transactions")
