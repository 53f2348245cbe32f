import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Enum as SAEnum, Integer, String, Text, Uuid

from shared.config.database import Base
from shared.config.settings import DB_TABLE_PREFIX


class AttributeType(str, enum.Enum):
    DATE = "Date"
    VARCHAR = "Varchar"
    TEXT = "Text"
    INT = "Int"
    DECIMAL = "Decimal"


class ProductAttribute(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}product_attributes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String(255), unique=True, nullable=False, index=True)
    data_type = Column(
        SAEnum(AttributeType, name="attribute_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    label = Column(String(255), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    visibility = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_required = Column(Boolean, nullable=False, default=False)
    is_unique = Column(Boolean, nullable=False, default=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    created_by = Column(String(255), nullable=True)
