import re
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.attribute_service.models import AttributeType
from services.attribute_service.repository import AttributeRepository
from shared.exceptions import BusinessException, ConflictException, EntityNotFoundException

from .models import ATTRIBUTE_VALUE_MODELS, Product, ProductLink
from .repository import AttributeValueRepository, LinkRepository, ProductRepository, TagRepository
from .schemas import AttributeValueResponse, ProductCreate, ProductUpdate

logger = structlog.get_logger(__name__)

VARCHAR_MAX_LENGTH = 500


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "product"


def _parse_datetime(raw) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)
    text = str(raw).strip()
    # fromisoformat only understands the Z suffix from Python 3.11
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _to_naive_utc(value: datetime) -> datetime:
    """Date attribute values are stored as naive UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def coerce_attribute_value(data_type: AttributeType, raw):
    """Converts a raw JSON value into the Python type stored for `data_type`."""
    if raw is None or isinstance(raw, bool):
        raise BusinessException("InvalidAttributeValue", f"A {data_type.value} value is required")

    try:
        if data_type == AttributeType.INT:
            if isinstance(raw, float) and not raw.is_integer():
                raise ValueError(raw)
            return int(raw)
        if data_type == AttributeType.DECIMAL:
            value = Decimal(str(raw))
            if not value.is_finite():
                raise ValueError(raw)
            return value
        if data_type == AttributeType.DATE:
            return _to_naive_utc(_parse_datetime(raw))
    except (TypeError, ValueError, InvalidOperation):
        raise BusinessException(
            "InvalidAttributeValue", f"'{raw}' is not a valid {data_type.value} value"
        )

    if not isinstance(raw, str):
        raise BusinessException("InvalidAttributeValue", f"A {data_type.value} value must be a string")
    if data_type == AttributeType.VARCHAR and len(raw) > VARCHAR_MAX_LENGTH:
        raise BusinessException(
            "InvalidAttributeValue", f"Varchar values are limited to {VARCHAR_MAX_LENGTH} characters"
        )
    return raw


class ProductService:

    @staticmethod
    async def create_product(db: AsyncSession, data: ProductCreate, user_id: str | None = None):
        if await ProductRepository.get_product_by_code(db, data.code):
            raise ConflictException("ProductCodeExists", f"Product code '{data.code}' already exists")
        if await ProductRepository.get_product_by_sku(db, data.sku):
            raise ConflictException("ProductSkuExists", f"SKU '{data.sku}' already exists")

        values = data.model_dump()
        values["slug"] = data.slug or slugify(data.name)
        product = Product(**values, created_by=user_id)
        product = await ProductRepository.create_product(db, product)
        logger.info("product_created", product_id=str(product.id), sku=product.sku)
        return product

    @staticmethod
    async def list_products(
        db: AsyncSession,
        query: str | None = None,
        active_only: bool = False,
        skip: int = 0,
        limit: int = 100,
    ):
        products = await ProductRepository.get_all_products(db, active_only=active_only)

        if query:
            query_words = set(query.lower().split())
            products = [p for p in products if query_words & set(p.name.lower().split())]

        return list(products)[skip:skip + limit]

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: uuid.UUID):
        return await ProductRepository.get_product_by_id(db, product_id)

    @staticmethod
    async def update_product(db: AsyncSession, product_id: uuid.UUID, data: ProductUpdate):
        product = await ProductService._require_product(db, product_id)
        changes = data.model_dump(exclude_unset=True)

        if "code" in changes and changes["code"] != product.code:
            if await ProductRepository.get_product_by_code(db, changes["code"]):
                raise ConflictException("ProductCodeExists", f"Product code '{changes['code']}' already exists")
        if "sku" in changes and changes["sku"] != product.sku:
            if await ProductRepository.get_product_by_sku(db, changes["sku"]):
                raise ConflictException("ProductSkuExists", f"SKU '{changes['sku']}' already exists")
        # A cleared slug is derived again from the (possibly new) name
        if "slug" in changes and not changes["slug"]:
            changes["slug"] = slugify(changes.get("name") or product.name)

        for field, value in changes.items():
            if value is not None:
                setattr(product, field, value)
        return await ProductRepository.update_product(db, product)

    @staticmethod
    async def delete_product(db: AsyncSession, product_id: uuid.UUID) -> None:
        product = await ProductService._require_product(db, product_id)
        if await ProductRepository.is_referenced(db, product_id):
            raise ConflictException(
                "ProductInUse", f"Product '{product.sku}' is used by orders or inventory tickets; deactivate it instead"
            )
        await ProductRepository.delete_product(db, product)
        logger.info("product_deleted", product_id=str(product_id))

    # --- Attribute values ---

    @staticmethod
    async def set_attribute_value(db: AsyncSession, product_id: uuid.UUID, attribute_id: uuid.UUID, raw):
        await ProductService._require_product(db, product_id)
        attribute = await AttributeRepository.get_by_id(db, attribute_id)
        if not attribute:
            raise EntityNotFoundException("Attribute", attribute_id)
        if not attribute.is_active:
            raise BusinessException("AttributeInactive", f"Attribute '{attribute.code}' is not active")

        value = coerce_attribute_value(attribute.data_type, raw)
        model = ATTRIBUTE_VALUE_MODELS[attribute.data_type]

        if attribute.is_unique and await AttributeValueRepository.value_taken_by_other(
            db, model, attribute_id, value, product_id
        ):
            raise ConflictException(
                "AttributeValueNotUnique",
                f"Value '{raw}' of attribute '{attribute.code}' is already used by another product",
            )

        row = await AttributeValueRepository.get_value(db, model, product_id, attribute_id)
        if row is None:
            row = model(product_id=product_id, attribute_id=attribute_id, value=value)
        else:
            row.value = value
        row = await AttributeValueRepository.save(db, row)

        return AttributeValueResponse(
            attribute_id=attribute.id,
            code=attribute.code,
            label=attribute.label,
            data_type=attribute.data_type,
            value=row.value,
        )

    @staticmethod
    async def list_attribute_values(db: AsyncSession, product_id: uuid.UUID):
        await ProductService._require_product(db, product_id)
        rows = await AttributeValueRepository.list_for_product(db, product_id)
        attributes = {a.id: a for a in await AttributeRepository.list_all(db)}

        values = [
            AttributeValueResponse(
                attribute_id=row.attribute_id,
                code=attributes[row.attribute_id].code,
                label=attributes[row.attribute_id].label,
                data_type=attributes[row.attribute_id].data_type,
                value=row.value,
            )
            for row in rows
            if row.attribute_id in attributes
        ]
        order = {attribute_id: index for index, attribute_id in enumerate(attributes)}
        return sorted(values, key=lambda v: order[v.attribute_id])

    @staticmethod
    async def missing_required_attributes(db: AsyncSession, product_id: uuid.UUID):
        """Active required attributes the product has no value for."""
        await ProductService._require_product(db, product_id)
        rows = await AttributeValueRepository.list_for_product(db, product_id)
        present = {row.attribute_id for row in rows}
        return [
            attribute
            for attribute in await AttributeRepository.list_all(db, active_only=True)
            if attribute.is_required and attribute.id not in present
        ]

    # --- Tags ---

    @staticmethod
    async def assign_tag(db: AsyncSession, product_id: uuid.UUID, name: str):
        await ProductService._require_product(db, product_id)
        tag = await TagRepository.get_or_create(db, name.strip())
        if await TagRepository.get_product_tag(db, product_id, tag.id) is None:
            await TagRepository.add_product_tag(db, product_id, tag.id)
        return await ProductRepository.get_product_by_id(db, product_id)

    @staticmethod
    async def remove_tag(db: AsyncSession, product_id: uuid.UUID, name: str):
        await ProductService._require_product(db, product_id)
        tag = await TagRepository.get_by_name(db, name)
        product_tag = await TagRepository.get_product_tag(db, product_id, tag.id) if tag else None
        if product_tag is None:
            raise EntityNotFoundException("ProductTag", name)
        await TagRepository.remove_product_tag(db, product_tag)
        return await ProductRepository.get_product_by_id(db, product_id)

    # --- Links ---

    @staticmethod
    async def link_products(db: AsyncSession, product_id: uuid.UUID, linked_product_id: uuid.UUID):
        if product_id == linked_product_id:
            raise BusinessException("ProductSelfLink", "A product cannot be linked to itself")
        await ProductService._require_product(db, product_id)
        await ProductService._require_product(db, linked_product_id)

        if await LinkRepository.get_link(db, product_id, linked_product_id) is None:
            await LinkRepository.add_link(
                db, ProductLink(product_id=product_id, linked_product_id=linked_product_id)
            )
        return await LinkRepository.get_linked_products(db, product_id)

    @staticmethod
    async def unlink_products(db: AsyncSession, product_id: uuid.UUID, linked_product_id: uuid.UUID):
        link = await LinkRepository.get_link(db, product_id, linked_product_id)
        if link is None:
            raise EntityNotFoundException("ProductLink", linked_product_id)
        await LinkRepository.remove_link(db, link)

    @staticmethod
    async def list_linked_products(db: AsyncSession, product_id: uuid.UUID):
        await ProductService._require_product(db, product_id)
        return await LinkRepository.get_linked_products(db, product_id)

    @staticmethod
    async def _require_product(db: AsyncSession, product_id: uuid.UUID) -> Product:
        product = await ProductRepository.get_product_by_id(db, product_id)
        if not product:
            raise EntityNotFoundException("Product", product_id)
        return product
