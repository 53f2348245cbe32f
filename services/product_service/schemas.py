import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from services.attribute_service.models import AttributeType

from .models import ProductType

# Printable ASCII without spaces, as SKUs and codes are stored non-unicode
ASCII_CODE_PATTERN = r"^[\x21-\x7E]+$"


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=250)
    code: str = Field(min_length=1, max_length=250)
    sku: str = Field(min_length=1, max_length=50, pattern=ASCII_CODE_PATTERN)
    slug: Optional[str] = Field(default=None, max_length=250)
    product_type: ProductType = ProductType.SINGLE
    sell_price: Decimal = Field(ge=0, max_digits=18, decimal_places=2)
    stock_quantity: int = Field(default=0, ge=0)
    is_active: bool = True
    visibility: bool = True
    description: Optional[str] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=250)
    code: Optional[str] = Field(default=None, min_length=1, max_length=250)
    sku: Optional[str] = Field(default=None, min_length=1, max_length=50, pattern=ASCII_CODE_PATTERN)
    slug: Optional[str] = Field(default=None, max_length=250)
    product_type: Optional[ProductType] = None
    sell_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=18, decimal_places=2)
    is_active: Optional[bool] = None
    visibility: Optional[bool] = None
    description: Optional[str] = None


class TagResponse(BaseModel):
    id: uuid.UUID
    name: str

    class Config:
        from_attributes = True


class ProductResponse(BaseModel):
    id: uuid.UUID
    name: str
    code: str
    sku: str
    slug: str
    product_type: ProductType
    sell_price: Decimal
    stock_quantity: int
    is_active: bool
    visibility: bool
    description: Optional[str]
    created_at: Optional[datetime]
    created_by: Optional[str]
    tags: List[TagResponse] = []

    class Config:
        from_attributes = True


class AttributeValueSet(BaseModel):
    attribute_id: uuid.UUID
    value: Any


class AttributeValueResponse(BaseModel):
    attribute_id: uuid.UUID
    code: str
    label: str
    data_type: AttributeType
    value: Any


class TagAssign(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class LinkCreate(BaseModel):
    linked_product_id: uuid.UUID
