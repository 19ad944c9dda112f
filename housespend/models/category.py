"""Category model."""

from sqlalchemy import Column, Integer, String

from housespend.database import Base


class Category(Base):
    """Fixed spending category shared by line items and stock items."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String(500), nullable=False, default="")
    color = Column(String(7), nullable=False, default="#3B82F6")
