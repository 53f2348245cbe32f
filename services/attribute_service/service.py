import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.product_service.repository import AttributeValueRepository
from shared.exceptions import ConflictException, EntityNotFoundException

from .models import ProductAttribute
from .repository import AttributeRepository
from .schemas import AttributeCreate, AttributeUpdate

logger = structlog.get_logger(__name__)


class AttributeService:

    @staticmethod
    async def create_attribute(db: AsyncSession, data: AttributeCreate, user_id: str | None = None):
        if await AttributeRepository.get_by_code(db, data.code):
            raise ConflictException("AttributeCodeExists", f"Attribute code '{data.code}' already exists")

        attribute = ProductAttribute(**data.model_dump(), created_by=user_id)
        attribute = await AttributeRepository.create(db, attribute)
        logger.info("attribute_created", attribute_id=str(attribute.id), code=attribute.code)
        return attribute

    @staticmethod
    async def get_attribute(db: AsyncSession, attribute_id: uuid.UUID):
        return await AttributeRepository.get_by_id(db, attribute_id)

    @staticmethod
    async def list_attributes(db: AsyncSession, active_only: bool = False):
        return await AttributeRepository.list_all(db, active_only=active_only)

    @staticmethod
    async def update_attribute(db: AsyncSession, attribute_id: uuid.UUID, data: AttributeUpdate):
        attribute = await AttributeRepository.get_by_id(db, attribute_id)
        if not attribute:
            raise EntityNotFoundException("Attribute", attribute_id)

        # Nulls mean "leave as is"; every stored column except note is NOT NULL
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None or field == "note":
                setattr(attribute, field, value)
        return await AttributeRepository.update(db, attribute)

    @staticmethod
    async def delete_attribute(db: AsyncSession, attribute_id: uuid.UUID) -> None:
        attribute = await AttributeRepository.get_by_id(db, attribute_id)
        if not attribute:
            raise EntityNotFoundException("Attribute", attribute_id)

        # Typed values reference the attribute; drop them in the same unit of work
        await AttributeValueRepository.delete_for_attribute(db, attribute_id)
        await AttributeRepository.delete(db, attribute)
        logger.info("attribute_deleted", attribute_id=str(attribute_id))
