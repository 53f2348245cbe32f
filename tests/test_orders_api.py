"""API tests for orders and inventory tickets."""
import uuid
from decimal import Decimal


async def create_order(client, headers, *lines, **fields):
    body = {
        "customer_name": "Jane Doe",
        "customer_address": "1 Main Street",
        "items": [{"product_id": str(p.id), "quantity": q} for p, q in lines],
    }
    body.update(fields)
    return await client.post("/orders/", json=body, headers=headers)


async def apply(client, headers, order_id, transaction_type, note=None):
    return await client.post(
        f"/orders/{order_id}/transactions",
        json={"transaction_type": transaction_type, "note": note},
        headers=headers,
    )


class TestOrderEndpoints:
    """Tests for /orders/ and /orders/{id}/transactions"""

    async def test_requires_token(self, client):
        response = await client.post("/orders/", json={})
        assert response.status_code == 401

    async def test_rejects_tampered_token(self, client, auth_headers):
        headers = {"Authorization": auth_headers["Authorization"] + "x"}
        response = await client.get("/orders/", headers=headers)
        assert response.status_code == 401

    async def test_create(self, client, auth_headers, admin_user, make_product):
        shirt = await make_product("Shirt", price="15.00")

        response = await create_order(client, auth_headers, (shirt, 2), shipping_fee="5.00")

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "New"
        assert Decimal(data["grand_total"]) == Decimal("35.00")
        assert data["created_by"] == str(admin_user.id)
        assert data["allowed_transactions"] == ["ConfirmOrder", "CancelOrder"]
        assert data["items"][0]["sku"] == shirt.sku

    async def test_order_needs_items(self, client, auth_headers):
        response = await create_order(client, auth_headers)
        assert response.status_code == 422

    async def test_zero_quantity_rejected(self, client, auth_headers, make_product):
        shirt = await make_product()
        response = await create_order(client, auth_headers, (shirt, 0))
        assert response.status_code == 422

    async def test_unknown_product(self, client, auth_headers):
        body = {"customer_name": "Jane", "items": [{"product_id": str(uuid.uuid4()), "quantity": 1}]}
        response = await client.post("/orders/", json=body, headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "ProductNotFound"

    async def test_lifecycle(self, client, auth_headers, admin_user, make_product):
        shirt = await make_product()
        order_id = (await create_order(client, auth_headers, (shirt, 1))).json()["id"]

        response = await apply(client, auth_headers, order_id, "ConfirmOrder", note="ok")
        assert response.json()["status"] == "Confirmed"
        response = await apply(client, auth_headers, order_id, "StartProcessing")
        assert response.json()["status"] == "Processing"
        response = await apply(client, auth_headers, order_id, "FinishOrder")
        assert response.json()["status"] == "Finished"
        assert response.json()["allowed_transactions"] == []

        history = (await client.get(f"/orders/{order_id}/transactions", headers=auth_headers)).json()
        assert [t["transaction_type"] for t in history] == ["ConfirmOrder", "StartProcessing", "FinishOrder"]
        assert history[0]["from_status"] == "New"
        assert history[0]["note"] == "ok"
        assert history[0]["user_id"] == str(admin_user.id)

    async def test_invalid_transition(self, client, auth_headers, make_product):
        shirt = await make_product()
        order_id = (await create_order(client, auth_headers, (shirt, 1))).json()["id"]

        response = await apply(client, auth_headers, order_id, "FinishOrder")

        assert response.status_code == 409
        assert response.json()["code"] == "InvalidOrderTransition"
        order = (await client.get(f"/orders/{order_id}", headers=auth_headers)).json()
        assert order["status"] == "New"

    async def test_unknown_transaction_type(self, client, auth_headers, make_product):
        shirt = await make_product()
        order_id = (await create_order(client, auth_headers, (shirt, 1))).json()["id"]

        response = await apply(client, auth_headers, order_id, "ShipOrder")
        assert response.status_code == 422

    async def test_filter_by_status(self, client, auth_headers, make_product):
        shirt = await make_product()
        first = (await create_order(client, auth_headers, (shirt, 1))).json()["id"]
        await create_order(client, auth_headers, (shirt, 1))
        await apply(client, auth_headers, first, "CancelOrder")

        response = await client.get("/orders/", params={"status": "Canceled"}, headers=auth_headers)

        assert [o["id"] for o in response.json()] == [first]

    async def test_unknown_order(self, client, auth_headers):
        response = await client.get(f"/orders/{uuid.uuid4()}", headers=auth_headers)
        assert response.status_code == 404

    async def test_transactions_of_unknown_order(self, client, auth_headers):
        response = await client.get(f"/orders/{uuid.uuid4()}/transactions", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "OrderNotFound"

    async def test_new_order_has_no_transactions(self, client, auth_headers, make_product):
        shirt = await make_product()
        order_id = (await create_order(client, auth_headers, (shirt, 1))).json()["id"]

        response = await client.get(f"/orders/{order_id}/transactions", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == []



class TestInventoryEndpoints:
    """Tests for /inventory/tickets/"""

    async def test_stock_in(self, client, auth_headers, make_product):
        shirt = await make_product(stock=0)
        body = {"ticket_type": "StockIn", "items": [{"product_id": str(shirt.id), "quantity": 12}]}

        response = await client.post("/inventory/tickets/", json=body, headers=auth_headers)

        assert response.status_code == 201
        assert response.json()["ticket_type"] == "StockIn"
        product = (await client.get(f"/products/{shirt.id}", headers=auth_headers)).json()
        assert product["stock_quantity"] == 12

    async def test_insufficient_stock(self, client, auth_headers, make_product):
        shirt = await make_product(stock=1)
        body = {"ticket_type": "StockOut", "items": [{"product_id": str(shirt.id), "quantity": 2}]}

        response = await client.post("/inventory/tickets/", json=body, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "InsufficientStock"

    async def test_ship_order(self, client, auth_headers, make_product):
        shirt = await make_product(stock=5)
        order_id = (await create_order(client, auth_headers, (shirt, 2))).json()["id"]
        await apply(client, auth_headers, order_id, "ConfirmOrder")
        await apply(client, auth_headers, order_id, "StartProcessing")

        response = await client.post(
            "/inventory/tickets/", json={"ticket_type": "StockOut", "order_id": order_id}, headers=auth_headers
        )
        assert response.status_code == 201
        ticket_id = response.json()["id"]

        order = (await client.get(f"/orders/{order_id}", headers=auth_headers)).json()
        assert order["status"] == "Shipping"
        assert order["allowed_transactions"] == ["FinishOrder"]

        history = (await client.get(f"/orders/{order_id}/transactions", headers=auth_headers)).json()
        assert history[-1]["transaction_type"] is None
        assert history[-1]["to_status"] == "Shipping"

        fetched = await client.get(f"/inventory/tickets/{ticket_id}", headers=auth_headers)
        assert fetched.json()["order_id"] == order_id

    async def test_ship_order_twice(self, client, auth_headers, make_product):
        shirt = await make_product(stock=5)
        order_id = (await create_order(client, auth_headers, (shirt, 1))).json()["id"]
        await apply(client, auth_headers, order_id, "ConfirmOrder")
        await apply(client, auth_headers, order_id, "StartProcessing")
        body = {"ticket_type": "StockOut", "order_id": order_id}
        await client.post("/inventory/tickets/", json=body, headers=auth_headers)

        response = await client.post("/inventory/tickets/", json=body, headers=auth_headers)

        assert response.status_code == 409

    async def test_unknown_ticket(self, client, auth_headers):
        response = await client.get(f"/inventory/tickets/{uuid.uuid4()}", headers=auth_headers)
        assert response.status_code == 404
