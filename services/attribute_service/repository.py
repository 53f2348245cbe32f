import uuid
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ProductAttribute


class AttributeRepository:

    @staticmethod
    async def create(db: AsyncSession, attribute: ProductAttribute) -> ProductAttribute:
        db.add(attribute)
        await db.commit()
        await db.refresh(attribute)
        return attribute

    @staticmethod
    async def get_by_id(db: AsyncSession, attribute_id: uuid.UUID) -> Optional[ProductAttribute]:
        result = await db.execute(select(ProductAttribute).where(ProductAttribute.id == attribute_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_code(db: AsyncSession, code: str) -> Optional[ProductAttribute]:
        result = await db.execute(select(ProductAttribute).where(ProductAttribute.code == code))
        return result.scalars().first()

    @staticmethod
    async def list_all(db: AsyncSession, active_only: bool = False) -> Sequence[ProductAttribute]:
        stmt = select(ProductAttribute).order_by(ProductAttribute.sort_order, ProductAttribute.code)
        if active_only:
            stmt = stmt.where(ProductAttribute.is_active.is_(True))
        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def update(db: AsyncSession, attribute: ProductAttribute) -> ProductAttribute:
        db.add(attribute)
        await db.commit()
        await db.refresh(attribute)
        return attribute

    @staticmethod
    async def delete(db: AsyncSession, attribute: ProductAttribute) -> None:
        await db.delete(attribute)
        await db.commit()
