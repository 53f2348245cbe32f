import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from services.attribute_service.models import AttributeType
from shared.config.database import Base
from shared.config.settings import DB_TABLE_PREFIX


def _utcnow():
    return datetime.now(timezone.utc)


class ProductType(str, enum.Enum):
    SINGLE = "Single"
    GROUPED = "Grouped"
    CONFIGURABLE = "Configurable"
    BUNDLE = "Bundle"
    VIRTUAL = "Virtual"


class Product(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}products"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_product_stock_non_negative"),
        CheckConstraint("sell_price >= 0", name="ck_product_price_non_negative"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(250), nullable=False)
    code = Column(String(250), unique=True, nullable=False, index=True)
    sku = Column(String(50), unique=True, nullable=False, index=True)
    slug = Column(String(250), nullable=False, index=True)
    product_type = Column(
        SAEnum(ProductType, name="product_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ProductType.SINGLE,
    )
    sell_price = Column(Numeric(18, 2), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    visibility = Column(Boolean, nullable=False, default=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    created_by = Column(String(255), nullable=True)

    tags = relationship(
        "Tag",
        secondary=f"{DB_TABLE_PREFIX}product_tags",
        lazy="selectin",
        order_by="Tag.name",
        viewonly=True,
    )


class Tag(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}tags"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False, index=True)


class ProductTag(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}product_tags"

    product_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}products.id"), primary_key=True)
    tag_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}tags.id"), primary_key=True)


class ProductLink(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}product_links"

    product_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}products.id"), primary_key=True)
    linked_product_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}products.id"), primary_key=True)


# --- Typed attribute values: one table per AttributeType ---

class ProductAttributeDecimal(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}product_attribute_decimals"
    __table_args__ = (UniqueConstraint("product_id", "attribute_id", name="uq_attr_decimal_product"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    attribute_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}product_attributes.id"), nullable=False)
    product_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}products.id"), nullable=False, index=True)
    value = Column(Numeric(18, 4), nullable=False)


class ProductAttributeInt(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}product_attribute_ints"
    __table_args__ = (UniqueConstraint("product_id", "attribute_id", name="uq_attr_int_product"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    attribute_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}product_attributes.id"), nullable=False)
    product_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}products.id"), nullable=False, index=True)
    value = Column(Integer, nullable=False)


class ProductAttributeVarchar(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}product_attribute_varchars"
    __table_args__ = (UniqueConstraint("product_id", "attribute_id", name="uq_attr_varchar_product"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    attribute_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}product_attributes.id"), nullable=False)
    product_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}products.id"), nullable=False, index=True)
    value = Column(String(500), nullable=False)


class ProductAttributeText(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}product_attribute_texts"
    __table_args__ = (UniqueConstraint("product_id", "attribute_id", name="uq_attr_text_product"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    attribute_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}product_attributes.id"), nullable=False)
    product_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}products.id"), nullable=False, index=True)
    value = Column(Text, nullable=False)


class ProductAttributeDateTime(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}product_attribute_datetimes"
    __table_args__ = (UniqueConstraint("product_id", "attribute_id", name="uq_attr_datetime_product"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    attribute_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}product_attributes.id"), nullable=False)
    product_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}products.id"), nullable=False, index=True)
    value = Column(DateTime, nullable=False)


ATTRIBUTE_VALUE_MODELS = {
    AttributeType.DECIMAL: ProductAttributeDecimal,
    AttributeType.INT: ProductAttributeInt,
    AttributeType.VARCHAR: ProductAttributeVarchar,
    AttributeType.TEXT: ProductAttributeText,
    AttributeType.DATE: ProductAttributeDateTime,
}
