import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Enum as SAEnum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from shared.config.database import Base
from shared.config.settings import DB_TABLE_PREFIX


class InventoryTicketType(str, enum.Enum):
    STOCK_IN = "StockIn"
    STOCK_OUT = "StockOut"


class InventoryTicket(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}inventory_tickets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String(50), unique=True, nullable=False, index=True)
    ticket_type = Column(
        SAEnum(InventoryTicketType, name="inventory_ticket_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    order_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}orders.id"), nullable=True, index=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    created_by = Column(String(255), nullable=True)

    items = relationship(
        "InventoryTicketItem", back_populates="ticket", lazy="selectin", cascade="all, delete-orphan"
    )


class InventoryTicketItem(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}inventory_ticket_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_inventory_item_quantity_positive"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}inventory_tickets.id"), nullable=False, index=True)
    product_id = Column(Uuid, ForeignKey(f"{DB_TABLE_PREFIX}products.id"), nullable=False)
    sku = Column(String(50), nullable=False)
    quantity = Column(Integer, nullable=False)

    ticket = relationship("InventoryTicket", back_populates="items")
