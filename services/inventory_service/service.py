import secrets
import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from services.order_service.lifecycle import can_ship
from services.order_service.repository import OrderRepository
from services.order_service.service import OrderService
from services.product_service.repository import ProductRepository
from shared.exceptions import (
    BusinessException,
    ConflictException,
    EntityNotFoundException,
    InvalidTransitionException,
)
from shared.observability import eshop_inventory_tickets_total

from .models import InventoryTicket, InventoryTicketItem, InventoryTicketType
from .repository import InventoryTicketRepository
from .schemas import InventoryTicketCreate

logger = structlog.get_logger(__name__)


def generate_ticket_code() -> str:
    return f"IT-{datetime.now(timezone.utc):%Y%m%d}-{secrets.token_hex(3).upper()}"


class InventoryService:

    @staticmethod
    async def create_ticket(db: AsyncSession, data: InventoryTicketCreate, user_id: str | None = None):
        code = data.code or generate_ticket_code()
        if await InventoryTicketRepository.get_ticket_by_code(db, code):
            raise ConflictException("InventoryTicketCodeExists", f"Inventory ticket code '{code}' already exists")

        lines = [(line.product_id, line.quantity) for line in data.items]

        order = None
        if data.order_id is not None:
            order = await OrderRepository.get_order(db, data.order_id)
            if not order:
                raise EntityNotFoundException("Order", data.order_id)
            if data.ticket_type != InventoryTicketType.STOCK_OUT:
                raise BusinessException(
                    "OrderTicketMustBeStockOut", "Only stock-out tickets can reference an order"
                )
            if not can_ship(order.status):
                raise InvalidTransitionException(
                    "InvalidOrderTransition",
                    f"Cannot ship an order in status {order.status.value}",
                )
            if not lines:
                lines = [(item.product_id, item.quantity) for item in order.items]

        if not lines:
            raise BusinessException("InventoryTicketEmpty", "An inventory ticket needs at least one item")

        quantities: dict[uuid.UUID, int] = {}
        for product_id, quantity in lines:
            quantities[product_id] = quantities.get(product_id, 0) + quantity

        products = await ProductRepository.get_products_by_ids(db, quantities)
        for product_id in quantities:
            if product_id not in products:
                raise EntityNotFoundException("Product", product_id)

        # Validate every line before touching any stock level
        if data.ticket_type == InventoryTicketType.STOCK_OUT:
            for product_id, quantity in quantities.items():
                product = products[product_id]
                if product.stock_quantity < quantity:
                    raise BusinessException(
                        "InsufficientStock",
                        f"Insufficient stock for product {product.sku}: "
                        f"{product.stock_quantity} available, {quantity} requested",
                    )

        sign = 1 if data.ticket_type == InventoryTicketType.STOCK_IN else -1
        items = []
        for product_id, quantity in quantities.items():
            sku = products[product_id].sku
            if not await ProductRepository.adjust_stock(db, product_id, sign * quantity):
                # Another ticket took the stock after the check above
                await db.rollback()
                raise BusinessException("InsufficientStock", f"Insufficient stock for product {sku}")
            items.append(InventoryTicketItem(product_id=product_id, sku=sku, quantity=quantity))

        ticket = InventoryTicket(
            code=code,
            ticket_type=data.ticket_type,
            order_id=data.order_id,
            note=data.note,
            created_by=user_id,
            items=items,
        )

        if order is not None:
            OrderService.mark_shipping(order, note=f"Shipped by inventory ticket {code}", user_id=user_id)

        try:
            ticket = await InventoryTicketRepository.create_ticket(db, ticket)
        except IntegrityError:
            # A concurrent request committed the same code first
            await db.rollback()
            raise ConflictException(
                "InventoryTicketCodeExists", f"Inventory ticket code '{code}' already exists"
            ) from None

        eshop_inventory_tickets_total.labels(ticket_type=data.ticket_type.value).inc()
        logger.info(
            "inventory_ticket_created",
            ticket_id=str(ticket.id),
            code=code,
            ticket_type=data.ticket_type.value,
            order_id=str(data.order_id) if data.order_id else None,
        )
        return ticket

    @staticmethod
    async def get_ticket(db: AsyncSession, ticket_id: uuid.UUID):
        return await InventoryTicketRepository.get_ticket(db, ticket_id)

    @staticmethod
    async def list_tickets(db: AsyncSession, ticket_type: InventoryTicketType | None = None):
        return await InventoryTicketRepository.list_tickets(db, ticket_type)
