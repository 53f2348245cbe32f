import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .models import AttributeType


class AttributeCreate(BaseModel):
    code: str = Field(min_length=1, max_length=255)
    data_type: AttributeType
    label: str = Field(min_length=1, max_length=255)
    sort_order: int = 0
    visibility: bool = True
    is_active: bool = True
    is_required: bool = False
    is_unique: bool = False
    note: Optional[str] = None


class AttributeUpdate(BaseModel):
    label: Optional[str] = Field(default=None, min_length=1, max_length=255)
    sort_order: Optional[int] = None
    visibility: Optional[bool] = None
    is_active: Optional[bool] = None
    is_required: Optional[bool] = None
    is_unique: Optional[bool] = None
    note: Optional[str] = None


class AttributeResponse(BaseModel):
    id: uuid.UUID
    code: str
    data_type: AttributeType
    label: str
    sort_order: int
    visibility: bool
    is_active: bool
    is_required: bool
    is_unique: bool
    note: Optional[str]
    created_at: Optional[datetime]
    created_by: Optional[str]

    class Config:
        from_attributes = True
