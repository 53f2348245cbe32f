import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .models import InventoryTicketType


class InventoryTicketItemCreate(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(gt=0)


class InventoryTicketCreate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=50, pattern=r"^[\x21-\x7E]+$")
    ticket_type: InventoryTicketType
    order_id: Optional[uuid.UUID] = None
    note: Optional[str] = None
    # May be empty for a stock-out ticket that ships a whole order
    items: List[InventoryTicketItemCreate] = []


class InventoryTicketItemResponse(BaseModel):
    product_id: uuid.UUID
    sku: str
    quantity: int

    class Config:
        from_attributes = True


class InventoryTicketResponse(BaseModel):
    id: uuid.UUID
    code: str
    ticket_type: InventoryTicketType
    order_id: Optional[uuid.UUID]
    note: Optional[str]
    created_at: Optional[datetime]
    created_by: Optional[str]
    items: List[InventoryTicketItemResponse] = []

    class Config:
        from_attributes = True
