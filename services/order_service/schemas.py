import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from .lifecycle import OrderStatus, TransactionType


class OrderItemCreate(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(gt=0)


class OrderCreate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=50, pattern=r"^[\x21-\x7E]+$")
    customer_name: str = Field(min_length=1, max_length=250)
    customer_phone: Optional[str] = Field(default=None, max_length=50)
    customer_address: Optional[str] = Field(default=None, max_length=500)
    shipping_fee: Decimal = Field(default=Decimal("0"), ge=0, max_digits=18, decimal_places=2)
    discount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=18, decimal_places=2)
    note: Optional[str] = None
    items: List[OrderItemCreate] = Field(min_length=1)


class OrderItemResponse(BaseModel):
    product_id: uuid.UUID
    sku: str
    product_name: str
    price: Decimal
    quantity: int

    class Config:
        from_attributes = True


class OrderTransactionCreate(BaseModel):
    transaction_type: TransactionType
    note: Optional[str] = None


class OrderTransactionResponse(BaseModel):
    id: uuid.UUID
    transaction_type: Optional[TransactionType]
    from_status: OrderStatus
    to_status: OrderStatus
    note: Optional[str]
    user_id: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: uuid.UUID
    code: str
    status: OrderStatus
    customer_name: str
    customer_phone: Optional[str]
    customer_address: Optional[str]
    shipping_fee: Decimal
    subtotal: Decimal
    discount: Decimal
    grand_total: Decimal
    note: Optional[str]
    created_at: Optional[datetime]
    created_by: Optional[str]
    items: List[OrderItemResponse] = []
    allowed_transactions: List[TransactionType] = []

    class Config:
        from_attributes = True
