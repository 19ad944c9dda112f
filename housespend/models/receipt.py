"""Receipt and line item models."""

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import backref, relationship

from housespend.database import Base
from housespend.models.enums import ReceiptStatus
from housespend.models.mixins import TimestampMixin


class Receipt(Base, TimestampMixin):
    """An uploaded proof of purchase and the data extracted from it."""

    __tablename__ = "receipts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    store_name = Column(String(255), nullable=True)
    total_amount = Column(Numeric(18, 2), nullable=True)
    purchase_date = Column(Date, nullable=True)

    image_data = Column(LargeBinary, nullable=True)
    image_content_type = Column(String(100), nullable=True)

    is_analyzed = Column(Boolean, nullable=False, default=False)
    status = Column(
        String(20), nullable=False, default=ReceiptStatus.UPLOADED.value
    )  # uploaded, analyzing, analyzed, failed
    analysis_started_at = Column(DateTime(timezone=True), nullable=True)
    analysis_error = Column(Text, nullable=True)

    # Relationships
    user = relationship("User", backref=backref("receipts", cascade="all, delete-orphan"))
    line_items = relationship(
        "LineItem",
        back_populates="receipt",
        cascade="all, delete-orphan",
        order_by="LineItem.id",
    )
    stock_transactions = relationship("StockTransaction", back_populates="receipt")


class LineItem(Base):
    """One product or discount row read from a receipt."""

    __tablename__ = "line_items"

    id = Column(Integer, primary_key=True, index=True)
    receipt_id = Column(
        Integer, ForeignKey("receipts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(500), nullable=False)
    quantity = Column(Numeric(18, 3), nullable=False)
    unit_price = Column(Numeric(18, 2), nullable=False)
    total_price = Column(Numeric(18, 2), nullable=False)
    category_id = Column(
        Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    is_discount = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    # Relationships
    receipt = relationship("Receipt", back_populates="line_items")
    category = relationship("Category")
