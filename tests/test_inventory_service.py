"""Service-level tests for inventory tickets and order shipping."""
import uuid

import pytest

from services.inventory_service.models import InventoryTicketType
from services.inventory_service.repository import InventoryTicketRepository
from services.inventory_service.schemas import InventoryTicketCreate, InventoryTicketItemCreate
from services.inventory_service.service import InventoryService
from services.order_service.lifecycle import OrderStatus, TransactionType
from services.order_service.schemas import OrderCreate, OrderItemCreate
from services.order_service.service import OrderService
from services.product_service.repository import ProductRepository
from shared.exceptions import (
    BusinessException,
    ConflictException,
    EntityNotFoundException,
    InvalidTransitionException,
)


def ticket(ticket_type, *lines, **fields):
    return InventoryTicketCreate(
        ticket_type=ticket_type,
        items=[InventoryTicketItemCreate(product_id=p.id, quantity=q) for p, q in lines],
        **fields,
    )


async def processing_order(db, product, quantity=2):
    order = await OrderService.create_order(
        db,
        OrderCreate(customer_name="Jane", items=[OrderItemCreate(product_id=product.id, quantity=quantity)]),
    )
    await OrderService.apply_transaction(db, order.id, TransactionType.CONFIRM_ORDER)
    return await OrderService.apply_transaction(db, order.id, TransactionType.START_PROCESSING)


class TestStockMovements:

    async def test_stock_in(self, db, make_product):
        product = await make_product(stock=5)

        created = await InventoryService.create_ticket(
            db, ticket(InventoryTicketType.STOCK_IN, (product, 7)), user_id="u-1"
        )

        assert created.code.startswith("IT-")
        assert created.created_by == "u-1"
        assert [(i.sku, i.quantity) for i in created.items] == [(product.sku, 7)]
        assert (await ProductRepository.get_product_by_id(db, product.id)).stock_quantity == 12

    async def test_stock_out(self, db, make_product):
        product = await make_product(stock=5)

        await InventoryService.create_ticket(db, ticket(InventoryTicketType.STOCK_OUT, (product, 5)))

        assert (await ProductRepository.get_product_by_id(db, product.id)).stock_quantity == 0

    async def test_insufficient_stock_changes_nothing(self, db, make_product):
        plenty = await make_product("Plenty", stock=10)
        scarce = await make_product("Scarce", stock=1)

        with pytest.raises(BusinessException) as exc_info:
            await InventoryService.create_ticket(
                db, ticket(InventoryTicketType.STOCK_OUT, (plenty, 3), (scarce, 2))
            )

        assert exc_info.value.code == "InsufficientStock"
        assert (await ProductRepository.get_product_by_id(db, plenty.id)).stock_quantity == 10
        assert await InventoryService.list_tickets(db) == []

    async def test_empty_ticket(self, db):
        with pytest.raises(BusinessException) as exc_info:
            await InventoryService.create_ticket(db, ticket(InventoryTicketType.STOCK_IN))
        assert exc_info.value.code == "InventoryTicketEmpty"

    async def test_unknown_product(self, db):
        payload = InventoryTicketCreate(
            ticket_type=InventoryTicketType.STOCK_IN,
            items=[InventoryTicketItemCreate(product_id=uuid.uuid4(), quantity=1)],
        )
        with pytest.raises(EntityNotFoundException):
            await InventoryService.create_ticket(db, payload)

    async def test_duplicate_code(self, db, make_product):
        product = await make_product()
        await InventoryService.create_ticket(db, ticket(InventoryTicketType.STOCK_IN, (product, 1), code="IT-1"))

        with pytest.raises(ConflictException):
            await InventoryService.create_ticket(
                db, ticket(InventoryTicketType.STOCK_IN, (product, 1), code="IT-1")
            )

    async def test_code_taken_by_concurrent_ticket(self, db, make_product, monkeypatch):
        product = await make_product(stock=10)
        product_id = product.id
        await InventoryService.create_ticket(db, ticket(InventoryTicketType.STOCK_IN, (product, 1), code="IT-1"))

        async def not_found(db, code):
            return None

        # The other request commits between the lookup and the insert
        monkeypatch.setattr(InventoryTicketRepository, "get_ticket_by_code", staticmethod(not_found))
        with pytest.raises(ConflictException) as exc_info:
            await InventoryService.create_ticket(
                db, ticket(InventoryTicketType.STOCK_IN, (product, 5), code="IT-1")
            )

        assert exc_info.value.code == "InventoryTicketCodeExists"
        assert (await ProductRepository.get_product_by_id(db, product_id)).stock_quantity == 11

    async def test_list_by_type(self, db, make_product):
        product = await make_product(stock=5)
        await InventoryService.create_ticket(db, ticket(InventoryTicketType.STOCK_IN, (product, 1)))
        await InventoryService.create_ticket(db, ticket(InventoryTicketType.STOCK_OUT, (product, 1)))

        stock_in = await InventoryService.list_tickets(db, InventoryTicketType.STOCK_IN)

        assert [t.ticket_type for t in stock_in] == [InventoryTicketType.STOCK_IN]


class TestShippingOrders:
    """Stock-out tickets that reference an order."""

    async def test_stock_out_ships_processing_order(self, db, make_product):
        product = await make_product(stock=10)
        order = await processing_order(db, product, quantity=3)

        created = await InventoryService.create_ticket(
            db, ticket(InventoryTicketType.STOCK_OUT, order_id=order.id), user_id="u-1"
        )

        assert created.order_id == order.id
        assert [(i.product_id, i.quantity) for i in created.items] == [(product.id, 3)]
        assert (await ProductRepository.get_product_by_id(db, product.id)).stock_quantity == 7

        order = await OrderService.get_order(db, order.id)
        assert order.status == OrderStatus.SHIPPING
        shipping = order.transactions[-1]
        assert shipping.transaction_type is None
        assert shipping.from_status == OrderStatus.PROCESSING
        assert shipping.to_status == OrderStatus.SHIPPING
        assert created.code in shipping.note

    async def test_shipped_order_can_finish(self, db, make_product):
        product = await make_product(stock=10)
        order = await processing_order(db, product)
        await InventoryService.create_ticket(db, ticket(InventoryTicketType.STOCK_OUT, order_id=order.id))

        order = await OrderService.apply_transaction(db, order.id, TransactionType.FINISH_ORDER)

        assert order.status == OrderStatus.FINISHED

    async def test_shipped_order_cannot_be_canceled(self, db, make_product):
        product = await make_product(stock=10)
        order = await processing_order(db, product)
        await InventoryService.create_ticket(db, ticket(InventoryTicketType.STOCK_OUT, order_id=order.id))

        with pytest.raises(InvalidTransitionException):
            await OrderService.apply_transaction(db, order.id, TransactionType.CANCEL_ORDER)

    async def test_order_must_be_processing(self, db, make_product):
        product = await make_product(stock=10)
        order = await OrderService.create_order(
            db, OrderCreate(customer_name="Jane", items=[OrderItemCreate(product_id=product.id, quantity=1)])
        )

        with pytest.raises(InvalidTransitionException):
            await InventoryService.create_ticket(db, ticket(InventoryTicketType.STOCK_OUT, order_id=order.id))
        assert (await ProductRepository.get_product_by_id(db, product.id)).stock_quantity == 10

    async def test_order_ticket_must_be_stock_out(self, db, make_product):
        product = await make_product(stock=10)
        order = await processing_order(db, product)

        with pytest.raises(BusinessException) as exc_info:
            await InventoryService.create_ticket(db, ticket(InventoryTicketType.STOCK_IN, order_id=order.id))
        assert exc_info.value.code == "OrderTicketMustBeStockOut"

    async def test_unknown_order(self, db):
        with pytest.raises(EntityNotFoundException):
            await InventoryService.create_ticket(
                db, ticket(InventoryTicketType.STOCK_OUT, order_id=uuid.uuid4())
            )

    async def test_shipping_needs_stock(self, db, make_product):
        product = await make_product(stock=1)
        order = await processing_order(db, product, quantity=2)

        with pytest.raises(BusinessException) as exc_info:
            await InventoryService.create_ticket(db, ticket(InventoryTicketType.STOCK_OUT, order_id=order.id))

        assert exc_info.value.code == "InsufficientStock"
        assert (await OrderService.get_order(db, order.id)).status == OrderStatus.PROCESSING


class TestAdjustStock:

    async def test_decrement_below_zero_is_refused(self, db, make_product):
        product = await make_product(stock=5)
        product_id = product.id

        assert await ProductRepository.adjust_stock(db, product_id, -6) is False
        await db.commit()

        assert (await ProductRepository.get_product_by_id(db, product_id)).stock_quantity == 5

    async def test_decrement_to_zero(self, db, make_product):
        product = await make_product(stock=5)
        product_id = product.id

        assert await ProductRepository.adjust_stock(db, product_id, -5) is True
        await db.commit()

        assert (await ProductRepository.get_product_by_id(db, product_id)).stock_quantity == 0

    async def test_stale_check_does_not_oversell(self, db, make_product):
        product = await make_product(stock=3)
        product_id = product.id
        # Another ticket empties the shelf after this one read the stock level
        await ProductRepository.adjust_stock(db, product_id, -3)
        await db.commit()

        assert await ProductRepository.adjust_stock(db, product_id, -1) is False
