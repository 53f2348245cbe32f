import uuid
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import InventoryTicket, InventoryTicketType


class InventoryTicketRepository:

    @staticmethod
    async def create_ticket(db: AsyncSession, ticket: InventoryTicket) -> InventoryTicket:
        # Commits every pending change of the unit of work (stock levels, order status)
        db.add(ticket)
        await db.commit()
        return await InventoryTicketRepository.get_ticket(db, ticket.id)

    @staticmethod
    async def get_ticket(db: AsyncSession, ticket_id: uuid.UUID) -> Optional[InventoryTicket]:
        result = await db.execute(
            select(InventoryTicket)
            .where(InventoryTicket.id == ticket_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def get_ticket_by_code(db: AsyncSession, code: str) -> Optional[InventoryTicket]:
        result = await db.execute(select(InventoryTicket).where(InventoryTicket.code == code))
        return result.scalars().first()

    @staticmethod
    async def list_tickets(
        db: AsyncSession, ticket_type: InventoryTicketType | None = None
    ) -> Sequence[InventoryTicket]:
        stmt = select(InventoryTicket).order_by(InventoryTicket.created_at.desc())
        if ticket_type is not None:
            stmt = stmt.where(InventoryTicket.ticket_type == ticket_type)
        result = await db.execute(stmt)
        return result.scalars().all()
