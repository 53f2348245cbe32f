import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.exceptions import ConflictException, EntityNotFoundException
from shared.observability import eshop_token_requests_total
from shared.security.jwt_handler import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    create_refresh_token,
    verify_refresh_token,
)
from shared.security.passwords import hash_secret, verify_secret

from .models import OpenIddictApplication, User
from .permissions import GrantTypes, Permissions, Scopes, is_confidential, is_public, scope_permission
from .repository import ApplicationRepository, UserRepository
from .schemas import TokenResponse, UserCreate

logger = structlog.get_logger(__name__)

SUPPORTED_GRANT_TYPES = (GrantTypes.PASSWORD, GrantTypes.CLIENT_CREDENTIALS, GrantTypes.REFRESH_TOKEN)


class OAuthError(Exception):
    """Token endpoint failure rendered as an RFC 6749 error response."""

    def __init__(self, error: str, description: str, status_code: int = 400):
        super().__init__(description)
        self.error = error
        self.description = description
        self.status_code = status_code


class AuthService:

    @staticmethod
    async def register(db: AsyncSession, data: UserCreate) -> User:
        existing = await UserRepository.get_by_email(db, data.email)
        if existing:
            raise ConflictException("EmailAlreadyRegistered", "Email already registered")
        user = User(
            email=data.email.lower(),
            name=data.name,
            hashed_password=hash_secret(data.password),
        )
        user = await UserRepository.create(db, user)
        logger.info("user_registered", user_id=str(user.id))
        return user

    @staticmethod
    async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[User]:
        user = await UserRepository.get_by_email(db, email)
        if not user or not verify_secret(password, user.hashed_password):
            return None
        return user

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: str) -> User:
        try:
            key = uuid.UUID(user_id)
        except ValueError:
            raise EntityNotFoundException("User", user_id) from None
        user = await UserRepository.get_by_id(db, key)
        if not user:
            raise EntityNotFoundException("User", user_id)
        return user


class TokenService:

    @staticmethod
    async def exchange(
        db: AsyncSession,
        grant_type: str,
        client_id: str,
        client_secret: str | None = None,
        scope: str | None = None,
        username: str | None = None,
        password: str | None = None,
        refresh_token: str | None = None,
    ) -> TokenResponse:
        label = grant_type if grant_type in SUPPORTED_GRANT_TYPES else "unsupported"
        try:
            response = await TokenService._exchange(
                db, grant_type, client_id, client_secret, scope, username, password, refresh_token
            )
        except OAuthError as exc:
            eshop_token_requests_total.labels(grant_type=label, outcome=exc.error).inc()
            logger.warning("token_request_rejected", client_id=client_id, grant_type=grant_type, error=exc.error)
            raise
        eshop_token_requests_total.labels(grant_type=label, outcome="issued").inc()
        logger.info("token_issued", client_id=client_id, grant_type=grant_type)
        return response

    @staticmethod
    async def _exchange(db, grant_type, client_id, client_secret, scope, username, password, refresh_token):
        if grant_type not in SUPPORTED_GRANT_TYPES:
            raise OAuthError("unsupported_grant_type", f"The grant type '{grant_type}' is not supported.")

        application = await TokenService._authenticate_client(db, client_id, client_secret)
        permissions = set(application.permission_list)
        if Permissions.Endpoints.TOKEN not in permissions or f"gt:{grant_type}" not in permissions:
            raise OAuthError("unauthorized_client", "This client application is not allowed to use the grant type.")

        requested = scope.split() if scope else []

        if grant_type == GrantTypes.CLIENT_CREDENTIALS:
            if is_public(application.client_type):
                raise OAuthError("unauthorized_client", "Public clients cannot use client credentials.")
            if Scopes.OFFLINE_ACCESS in requested:
                raise OAuthError("invalid_scope", "offline_access cannot be requested with client credentials.")
            TokenService._validate_scopes(requested, permissions)
            return TokenService._issue(client_id, client_id, requested, with_refresh=False)

        if grant_type == GrantTypes.PASSWORD:
            TokenService._validate_scopes(requested, permissions)
            user = await AuthService.authenticate(db, username or "", password or "")
            if user is None:
                raise OAuthError("invalid_grant", "The username/password couple is invalid.")
            if not user.is_active:
                raise OAuthError("invalid_grant", "The user account is disabled.")
            return TokenService._issue(
                client_id, str(user.id), requested, with_refresh=Scopes.OFFLINE_ACCESS in requested
            )

        # refresh_token
        payload = verify_refresh_token(refresh_token or "")
        if payload is None or payload.get("client_id") != client_id:
            raise OAuthError("invalid_grant", "The specified refresh token is invalid.")
        granted = payload.get("scope", "").split()
        if requested and not set(requested) <= set(granted):
            raise OAuthError("invalid_scope", "The requested scopes exceed the original grant.")
        scopes = requested or granted
        TokenService._validate_scopes(scopes, permissions)

        user = await UserRepository.get_by_id(db, uuid.UUID(payload["sub"]))
        if user is None or not user.is_active:
            raise OAuthError("invalid_grant", "The user is no longer allowed to sign in.")
        return TokenService._issue(client_id, payload["sub"], scopes, with_refresh=Scopes.OFFLINE_ACCESS in scopes)

    @staticmethod
    async def _authenticate_client(db, client_id: str, client_secret: str | None) -> OpenIddictApplication:
        application = await ApplicationRepository.find_by_client_id(db, client_id)
        if application is None:
            raise OAuthError("invalid_client", "The specified client_id is unknown.", status_code=401)
        if is_confidential(application.client_type) and not verify_secret(client_secret or "", application.client_secret):
            raise OAuthError("invalid_client", "The specified client credentials are invalid.", status_code=401)
        return application

    @staticmethod
    def _validate_scopes(requested: list[str], permissions: set[str]) -> None:
        for name in requested:
            if name == Scopes.OPENID:
                continue
            if name == Scopes.OFFLINE_ACCESS:
                if Permissions.GrantTypes.REFRESH_TOKEN not in permissions:
                    raise OAuthError("invalid_scope", "This client is not allowed to request offline_access.")
                continue
            if scope_permission(name) not in permissions:
                raise OAuthError("invalid_scope", f"This client is not allowed to request the '{name}' scope.")

    @staticmethod
    def _issue(client_id: str, subject: str, scopes: list[str], with_refresh: bool) -> TokenResponse:
        claims = {"sub": subject, "client_id": client_id, "scope": " ".join(scopes)}
        return TokenResponse(
            access_token=create_access_token(data=claims),
            expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            scope=" ".join(scopes) or None,
            refresh_token=create_refresh_token(claims) if with_refresh else None,
        )
