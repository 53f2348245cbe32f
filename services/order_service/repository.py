import uuid
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .lifecycle import OrderStatus
from .models import Order, OrderTransaction

class OrderRepository:
    @staticmethod
    async def create_order(db: AsyncSession, order: Order):
        db.add(order)
        await db.commit()
        return await OrderRepository.get_order(db, order.id)

    @staticmethod
    async def get_order(db: AsyncSession, order_id: uuid.UUID) -> Optional[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def get_order_by_code(db: AsyncSession, code: str) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.code == code))
        return result.scalars().first()

    @staticmethod
    async def list_orders(
        db: AsyncSession, status: OrderStatus | None = None, skip: int = 0, limit: int = 100
    ) -> Sequence[Order]:
        stmt = select(Order).order_by(Order.created_at.desc()).offset(skip).limit(limit)
        if status is not None:
            stmt = stmt.where(Order.status == status)
        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def save_order(db: AsyncSession, order: Order):
        db.add(order)
        await db.commit()
        return await OrderRepository.get_order(db, order.id)

    @staticmethod
    async def list_transactions(db: AsyncSession, order_id: uuid.UUID) -> Sequence[OrderTransaction]:
        result = await db.execute(
            select(OrderTransaction)
            .where(OrderTransaction.order_id == order_id)
            .order_by(OrderTransaction.created_at)
        )
        return result.scalars().all()
