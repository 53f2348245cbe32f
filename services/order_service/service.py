import secrets
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from services.product_service.repository import ProductRepository
from shared.exceptions import (
    BusinessException,
    ConflictException,
    EntityNotFoundException,
    InvalidTransitionException,
)
from shared.observability import eshop_order_transitions_total, eshop_orders_created_total

from .lifecycle import OrderStatus, TransactionType, can_ship, resolve_transition
from .models import Order, OrderItem, OrderTransaction
from .repository import OrderRepository
from .schemas import OrderCreate

logger = structlog.get_logger(__name__)


def generate_order_code() -> str:
    return f"ORD-{datetime.now(timezone.utc):%Y%m%d}-{secrets.token_hex(3).upper()}"


class OrderService:
    @staticmethod
    async def create_order(db: AsyncSession, data: OrderCreate, user_id: str | None = None):
        code = data.code or generate_order_code()
        if await OrderRepository.get_order_by_code(db, code):
            raise ConflictException("OrderCodeExists", f"Order code '{code}' already exists")

        # Merge repeated lines for the same product
        quantities: dict[uuid.UUID, int] = {}
        for line in data.items:
            quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity

        products = await ProductRepository.get_products_by_ids(db, quantities)
        items = []
        for product_id, quantity in quantities.items():
            product = products.get(product_id)
            if product is None:
                raise EntityNotFoundException("Product", product_id)
            if not product.is_active:
                raise BusinessException("ProductInactive", f"Product '{product.name}' is not active")
            items.append(
                OrderItem(
                    product_id=product.id,
                    sku=product.sku,
                    product_name=product.name,
                    price=product.sell_price,
                    quantity=quantity,
                )
            )

        subtotal = sum((Decimal(item.price) * item.quantity for item in items), Decimal("0"))
        grand_total = subtotal + data.shipping_fee - data.discount
        if grand_total < 0:
            raise BusinessException("DiscountExceedsTotal", "Discount cannot exceed the order total")

        order = Order(
            code=code,
            status=OrderStatus.NEW,
            customer_name=data.customer_name,
            customer_phone=data.customer_phone,
            customer_address=data.customer_address,
            shipping_fee=data.shipping_fee,
            subtotal=subtotal,
            discount=data.discount,
            grand_total=grand_total,
            note=data.note,
            created_by=user_id,
            items=items,
        )
        try:
            order = await OrderRepository.create_order(db, order)
        except IntegrityError:
            # A concurrent request committed the same code first
            await db.rollback()
            raise ConflictException("OrderCodeExists", f"Order code '{code}' already exists") from None

        eshop_orders_created_total.inc()
        logger.info("order_created", order_id=str(order.id), code=order.code, grand_total=str(grand_total))
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: uuid.UUID):
        return await OrderRepository.get_order(db, order_id)

    @staticmethod
    async def list_orders(db: AsyncSession, status: OrderStatus | None = None, skip: int = 0, limit: int = 100):
        return await OrderRepository.list_orders(db, status, skip, limit)

    @staticmethod
    async def apply_transaction(
        db: AsyncSession,
        order_id: uuid.UUID,
        transaction_type: TransactionType,
        note: str | None = None,
        user_id: str | None = None,
    ):
        order = await OrderRepository.get_order(db, order_id)
        if not order:
            raise EntityNotFoundException("Order", order_id)

        try:
            target = resolve_transition(order.status, transaction_type)
        except InvalidTransitionException:
            eshop_order_transitions_total.labels(
                transaction_type=transaction_type.value, outcome="rejected"
            ).inc()
            raise

        OrderService._record(order, target, transaction_type, note, user_id)
        order = await OrderRepository.save_order(db, order)

        eshop_order_transitions_total.labels(transaction_type=transaction_type.value, outcome="applied").inc()
        logger.info(
            "order_transition_applied",
            order_id=str(order_id),
            transaction_type=transaction_type.value,
            status=target.value,
        )
        return order

    @staticmethod
    def mark_shipping(order: Order, note: str | None = None, user_id: str | None = None) -> None:
        """
        Moves a Processing order to Shipping. Does not commit: the caller owns
        the unit of work (the inventory ticket that ships the goods).
        """
        if not can_ship(order.status):
            raise InvalidTransitionException(
                "InvalidOrderTransition",
                f"Cannot ship an order in status {order.status.value}",
            )
        OrderService._record(order, OrderStatus.SHIPPING, None, note, user_id)
        logger.info("order_shipping", order_id=str(order.id))

    @staticmethod
    async def list_transactions(db: AsyncSession, order_id: uuid.UUID):
        if not await OrderRepository.get_order(db, order_id):
            raise EntityNotFoundException("Order", order_id)
        return await OrderRepository.list_transactions(db, order_id)

    @staticmethod
    def _record(order: Order, target: OrderStatus, transaction_type, note, user_id) -> None:
        order.transactions.append(
            OrderTransaction(
                transaction_type=transaction_type,
                from_status=order.status,
                to_status=target,
                note=note,
                user_id=user_id,
            )
        )
        order.status = target
