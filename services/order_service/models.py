import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship

from shared.config.database import Base
from shared.config.settings import DB_TABLE_PREFIX

from .lifecycle import OrderStatus, TransactionType, allowed_transactions


def _utcnow():
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


ORDER_STATUS_TYPE = SAEnum(OrderStatus, name="order_status", values_callable=_enum_values)


class Order(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String(50), unique=True, nullable=False, index=True)
    status = Column(ORDER_STATUS_TYPE, nullable=False, default=OrderStatus.NEW)
    customer_name = Column(String(250), nullable=False)
    customer_phone = Column(String(50), nullable=True)
    customer_address = Column(String(500), nullable=True)
    shipping_fee = Column(Numeric(18, 2), nullable=False, default=0)
    subtotal = Column(Numeric(18, 2), nullable=False, default=0)
    discount = Column(Numeric(18, 2), nullable=False, default=0)
    grand_total = Column(Numeric(18, 2), nullable=False, default=0)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    created_by = Column(String(255), nullable=True)

    items = relationship("OrderItem", back_populates="order", lazy="selectin", cascade="all, delete-orphan")
    transactions = relationship(
        "OrderTransaction",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderTransaction.created_at",
    )

    @property
    def allowed_transactions(self) -> list[TransactionType]:
        return allowed_transactions(self.status)


class OrderItem(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_item_quantity_positive"),
    )

    order_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}orders.id"), primary_key=True)
    product_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}products.id"), primary_key=True)
    sku = Column(String(50), nullable=False)
    product_name = Column(String(250), nullable=False)
    price = Column(Numeric(18, 2), nullable=False)
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")


class OrderTransaction(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}order_transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}orders.id"), nullable=False, index=True)
    # NULL for the Processing -> Shipping step issued by inventory
    transaction_type = Column(
        SAEnum(TransactionType, name="transaction_type", values_callable=_enum_values),
        nullable=True,
    )
    from_status = Column(ORDER_STATUS_TYPE, nullable=False)
    to_status = Column(ORDER_STATUS_TYPE, nullable=False)
    note = Column(Text, nullable=True)
    user_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    order = relationship("Order", back_populates="transactions")
