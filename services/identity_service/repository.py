import uuid
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ClientPermissionGrant, OpenIddictApplication, OpenIddictScope, User


class UserRepository:

    @staticmethod
    async def create(db: AsyncSession, user: User) -> User:
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalars().first()


class ScopeRepository:

    @staticmethod
    async def find_by_name(db: AsyncSession, name: str) -> Optional[OpenIddictScope]:
        result = await db.execute(select(OpenIddictScope).where(OpenIddictScope.name == name))
        return result.scalars().first()

    @staticmethod
    async def create(db: AsyncSession, scope: OpenIddictScope) -> OpenIddictScope:
        db.add(scope)
        await db.commit()
        await db.refresh(scope)
        return scope

    @staticmethod
    async def list_all(db: AsyncSession) -> Sequence[OpenIddictScope]:
        result = await db.execute(select(OpenIddictScope).order_by(OpenIddictScope.name))
        return result.scalars().all()


class ApplicationRepository:

    @staticmethod
    async def find_by_client_id(db: AsyncSession, client_id: str) -> Optional[OpenIddictApplication]:
        result = await db.execute(
            select(OpenIddictApplication).where(OpenIddictApplication.client_id == client_id)
        )
        return result.scalars().first()

    @staticmethod
    async def create(db: AsyncSession, application: OpenIddictApplication) -> OpenIddictApplication:
        db.add(application)
        await db.commit()
        await db.refresh(application)
        return application

    @staticmethod
    async def update(db: AsyncSession, application: OpenIddictApplication) -> OpenIddictApplication:
        db.add(application)
        await db.commit()
        await db.refresh(application)
        return application

    @staticmethod
    async def list_all(db: AsyncSession) -> Sequence[OpenIddictApplication]:
        result = await db.execute(select(OpenIddictApplication).order_by(OpenIddictApplication.client_id))
        return result.scalars().all()


class PermissionGrantRepository:

    @staticmethod
    async def list_for_provider(
        db: AsyncSession, provider_name: str, provider_key: str
    ) -> Sequence[ClientPermissionGrant]:
        result = await db.execute(
            select(ClientPermissionGrant).where(
                ClientPermissionGrant.provider_name == provider_name,
                ClientPermissionGrant.provider_key == provider_key,
            )
        )
        return result.scalars().all()

    @staticmethod
    async def add_many(db: AsyncSession, grants: list[ClientPermissionGrant]) -> None:
        db.add_all(grants)
        await db.commit()
