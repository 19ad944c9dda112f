"""Key/value application configuration."""

from sqlalchemy import Column, Integer, String, Text

from housespend.database import Base
from housespend.models.mixins import TimestampMixin


class AppConfig(Base, TimestampMixin):
    """Application-wide setting. Secret values are stored encrypted."""

    __tablename__ = "app_config"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), unique=True, nullable=False)
    value = Column(Text, nullable=False)
