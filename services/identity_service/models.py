import json
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, String, Text, UniqueConstraint, Uuid

from shared.config.database import Base
from shared.config.settings import DB_TABLE_PREFIX


def _utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class OpenIddictScope(Base):
    __tablename__ = "openiddict_scopes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), unique=True, nullable=False, index=True)
    display_name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    resources = Column(Text, nullable=False, default="[]")  # JSON array

    @property
    def resource_list(self) -> list[str]:
        return json.loads(self.resources or "[]")


class OpenIddictApplication(Base):
    __tablename__ = "openiddict_applications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(String(100), unique=True, nullable=False, index=True)
    client_type = Column(String(50), nullable=False)
    consent_type = Column(String(50), nullable=True)
    display_name = Column(String(255), nullable=True)
    client_secret = Column(String(255), nullable=True)  # bcrypt hash
    client_uri = Column(String(500), nullable=True)
    # JSON arrays, serialized the same way on every write so they compare as text
    redirect_uris = Column(Text, nullable=False, default="[]")
    post_logout_redirect_uris = Column(Text, nullable=False, default="[]")
    permissions = Column(Text, nullable=False, default="[]")
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    @property
    def permission_list(self) -> list[str]:
        return json.loads(self.permissions or "[]")

    @property
    def redirect_uri_list(self) -> list[str]:
        return json.loads(self.redirect_uris or "[]")

    @property
    def post_logout_redirect_uri_list(self) -> list[str]:
        return json.loads(self.post_logout_redirect_uris or "[]")


class ClientPermissionGrant(Base):
    __tablename__ = f"{DB_TABLE_PREFIX}permission_grants"
    __table_args__ = (
        UniqueConstraint("name", "provider_name", "provider_key", name="uq_permission_grant"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(128), nullable=False)
    provider_name = Column(String(64), nullable=False)
    provider_key = Column(String(64), nullable=False)
