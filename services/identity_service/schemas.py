import uuid
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: Optional[str] = None


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: Optional[str]
    is_active: bool

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    scope: Optional[str] = None
    refresh_token: Optional[str] = None


class ScopeResponse(BaseModel):
    name: str
    display_name: Optional[str]
    resources: List[str] = Field(validation_alias="resource_list")

    class Config:
        from_attributes = True


class ApplicationResponse(BaseModel):
    client_id: str
    client_type: str
    consent_type: Optional[str]
    display_name: Optional[str]
    client_uri: Optional[str]
    redirect_uris: List[str] = Field(validation_alias="redirect_uri_list")
    post_logout_redirect_uris: List[str] = Field(validation_alias="post_logout_redirect_uri_list")
    permissions: List[str] = Field(validation_alias="permission_list")

    class Config:
        from_attributes = True


class SeedResultResponse(BaseModel):
    kind: str
    name: str
    action: str

    class Config:
        from_attributes = True
