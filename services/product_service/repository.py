import uuid
from typing import Iterable, Optional, Sequence

from sqlalchemy import delete, exists, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from services.inventory_service.models import InventoryTicketItem
from services.order_service.models import OrderItem

from .models import ATTRIBUTE_VALUE_MODELS, Product, ProductLink, ProductTag, Tag


class ProductRepository:

    @staticmethod
    async def create_product(db: AsyncSession, product: Product):
        db.add(product)
        await db.commit()
        return await ProductRepository.get_product_by_id(db, product.id)

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: uuid.UUID) -> Optional[Product]:
        result = await db.execute(
            select(Product)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def get_products_by_ids(db: AsyncSession, product_ids: Iterable[uuid.UUID]) -> dict:
        ids = list(product_ids)
        if not ids:
            return {}
        result = await db.execute(
            select(Product).where(Product.id.in_(ids)).execution_options(populate_existing=True)
        )
        return {product.id: product for product in result.scalars().all()}

    @staticmethod
    async def get_product_by_code(db: AsyncSession, code: str) -> Optional[Product]:
        result = await db.execute(select(Product).where(Product.code == code))
        return result.scalars().first()

    @staticmethod
    async def get_product_by_sku(db: AsyncSession, sku: str) -> Optional[Product]:
        result = await db.execute(select(Product).where(Product.sku == sku))
        return result.scalars().first()

    @staticmethod
    async def get_all_products(db: AsyncSession, active_only: bool = False) -> Sequence[Product]:
        stmt = select(Product).order_by(Product.name)
        if active_only:
            stmt = stmt.where(Product.is_active.is_(True))
        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def update_product(db: AsyncSession, product: Product):
        db.add(product)
        await db.commit()
        return await ProductRepository.get_product_by_id(db, product.id)

    @staticmethod
    async def adjust_stock(db: AsyncSession, product_id: uuid.UUID, delta: int) -> bool:
        """
        Applies `delta` to the stock level in a single UPDATE guarded by the
        resulting quantity, so concurrent stock-outs cannot oversell. Returns
        False when the product has too little stock. Does not commit.
        """
        table = Product.__table__
        result = await db.execute(
            update(table)
            .where(table.c.id == product_id, table.c.stock_quantity + delta >= 0)
            .values(stock_quantity=table.c.stock_quantity + delta)
        )
        return result.rowcount == 1

    @staticmethod
    async def is_referenced(db: AsyncSession, product_id: uuid.UUID) -> bool:
        """True when an order line or an inventory ticket line points at the product."""
        result = await db.execute(
            select(
                or_(
                    exists().where(OrderItem.product_id == product_id),
                    exists().where(InventoryTicketItem.product_id == product_id),
                )
            )
        )
        return bool(result.scalar())

    @staticmethod
    async def delete_product(db: AsyncSession, product: Product) -> None:
        await db.execute(delete(ProductTag).where(ProductTag.product_id == product.id))
        await db.execute(
            delete(ProductLink).where(
                or_(
                    ProductLink.product_id == product.id,
                    ProductLink.linked_product_id == product.id,
                )
            )
        )
        await AttributeValueRepository.delete_for_product(db, product.id)
        await db.delete(product)
        await db.commit()


class TagRepository:

    @staticmethod
    async def get_by_name(db: AsyncSession, name: str) -> Optional[Tag]:
        result = await db.execute(select(Tag).where(Tag.name == name))
        return result.scalars().first()

    @staticmethod
    async def get_or_create(db: AsyncSession, name: str) -> Tag:
        tag = await TagRepository.get_by_name(db, name)
        if tag is None:
            tag = Tag(name=name)
            db.add(tag)
            await db.flush()
        return tag

    @staticmethod
    async def get_product_tag(db: AsyncSession, product_id: uuid.UUID, tag_id: uuid.UUID):
        return await db.get(ProductTag, (product_id, tag_id))

    @staticmethod
    async def add_product_tag(db: AsyncSession, product_id: uuid.UUID, tag_id: uuid.UUID) -> None:
        db.add(ProductTag(product_id=product_id, tag_id=tag_id))
        await db.commit()

    @staticmethod
    async def remove_product_tag(db: AsyncSession, product_tag: ProductTag) -> None:
        await db.delete(product_tag)
        await db.commit()


class LinkRepository:

    @staticmethod
    async def get_link(db: AsyncSession, product_id: uuid.UUID, linked_product_id: uuid.UUID):
        return await db.get(ProductLink, (product_id, linked_product_id))

    @staticmethod
    async def add_link(db: AsyncSession, link: ProductLink) -> None:
        db.add(link)
        await db.commit()

    @staticmethod
    async def remove_link(db: AsyncSession, link: ProductLink) -> None:
        await db.delete(link)
        await db.commit()

    @staticmethod
    async def get_linked_products(db: AsyncSession, product_id: uuid.UUID) -> Sequence[Product]:
        result = await db.execute(
            select(Product)
            .join(ProductLink, ProductLink.linked_product_id == Product.id)
            .where(ProductLink.product_id == product_id)
            .order_by(Product.name)
        )
        return result.scalars().all()


class AttributeValueRepository:

    @staticmethod
    async def get_value(db: AsyncSession, model, product_id: uuid.UUID, attribute_id: uuid.UUID):
        result = await db.execute(
            select(model).where(model.product_id == product_id, model.attribute_id == attribute_id)
        )
        return result.scalars().first()

    @staticmethod
    async def value_taken_by_other(db: AsyncSession, model, attribute_id, value, product_id) -> bool:
        result = await db.execute(
            select(model.id).where(
                model.attribute_id == attribute_id,
                model.value == value,
                model.product_id != product_id,
            )
        )
        return result.first() is not None

    @staticmethod
    async def save(db: AsyncSession, value_row):
        db.add(value_row)
        await db.commit()
        await db.refresh(value_row)
        return value_row

    @staticmethod
    async def list_for_product(db: AsyncSession, product_id: uuid.UUID) -> list:
        rows = []
        for model in ATTRIBUTE_VALUE_MODELS.values():
            result = await db.execute(select(model).where(model.product_id == product_id))
            rows.extend(result.scalars().all())
        return rows

    @staticmethod
    async def delete_for_product(db: AsyncSession, product_id: uuid.UUID) -> None:
        for model in ATTRIBUTE_VALUE_MODELS.values():
            await db.execute(delete(model).where(model.product_id == product_id))

    @staticmethod
    async def delete_for_attribute(db: AsyncSession, attribute_id: uuid.UUID) -> None:
        for model in ATTRIBUTE_VALUE_MODELS.values():
            await db.execute(delete(model).where(model.attribute_id == attribute_id))
