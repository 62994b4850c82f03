import uuid

import pytest

from conftest import create_order, create_quotation, submit_order, ti_order

ORDERS_PATH = "/v2/backlog/orders/test"
CHANGE_PATH = "/v2/backlog/orders/changeByCustomerPurchaseOrderNumber/test"


async def test_create_prices_at_quoted_ti_price(client):
    order = await create_order(client)
    first, second = order["components"]
    assert first["id"] == "c1"
    assert first["unit_price"] == pytest.approx(0.12)
    assert first["quote_number"] == "Q-100"
    assert second["unit_price"] == 2.0
    assert order["total_amount"] == pytest.approx(32.0)
    assert order["order_number"] == "PO-1001"
    assert order["ti_order_number"] is None
    assert order["api_logs"] == []


async def test_create_generates_component_ids(client):
    order = await create_order(client, components=[{"name": "LM358DR", "quantity": 1}])
    component = order["components"][0]
    assert len(component["id"]) == 32
    assert component["unit_price"] == 0.0


async def test_create_requires_purchase_order_number(client):
    resp = await client.post("/api/v1/orders", json={"customer": "Acme", "components": []})
    assert resp.status_code == 422


async def test_delivery_dates_must_be_iso(client):
    components = [{"name": "LM358DR", "quantity": 1, "delivery_date": "06/01/2024"}]
    resp = await client.post("/api/v1/orders", json={"customer": "Acme", "purchase_order_number": "PO-X", "components": components})
    assert resp.status_code == 422
    assert resp.json()["error"]["type"] == "validation_error"

    order = await create_order(client, components=[{"name": "LM358DR", "quantity": 1, "delivery_date": "2024-06-01T08:00:00Z"}])
    assert order["components"][0]["delivery_date"] == "2024-06-01"

    component_id = order["components"][0]["id"]
    resp = await client.put(f"/api/v1/orders/{order['id']}/components/{component_id}", json={"delivery_date": "2024/06/02"})
    assert resp.status_code == 422


async def test_list_filters_and_paginates(client):
    await create_order(client, purchase_order_number="PO-A", customer="Northwind", date="2024-01-01")
    await create_order(client, purchase_order_number="PO-B", status="Closed", date="2024-03-01")
    await create_order(
        client,
        purchase_order_number="PO-C",
        date="2024-02-01",
        components=[{"name": "LM358DR", "quantity": 1, "status": "Shipped"}],
    )

    body = (await client.get("/api/v1/orders")).json()
    assert body["total_pages"] == 1
    assert [o["purchase_order_number"] for o in body["orders"]] == ["PO-B", "PO-C", "PO-A"]

    body = (await client.get("/api/v1/orders", params={"search_term": "north"})).json()
    assert [o["purchase_order_number"] for o in body["orders"]] == ["PO-A"]

    body = (await client.get("/api/v1/orders", params={"order_status": "Closed"})).json()
    assert [o["purchase_order_number"] for o in body["orders"]] == ["PO-B"]

    body = (await client.get("/api/v1/orders", params={"component_status": "Shipped"})).json()
    assert [o["purchase_order_number"] for o in body["orders"]] == ["PO-C"]
    assert body["total_pages"] == 1

    body = (await client.get("/api/v1/orders", params={"page": 2})).json()
    assert body["orders"] == []


async def test_total_pages_counts_ten_per_page(client):
    for i in range(11):
        await create_order(client, purchase_order_number=f"PO-{i}", components=[])
    body = (await client.get("/api/v1/orders")).json()
    assert body["total_pages"] == 2
    assert len(body["orders"]) == 10


async def test_get_and_delete(client):
    order = await create_order(client)
    assert (await client.get(f"/api/v1/orders/{order['id']}")).status_code == 200
    resp = await client.delete(f"/api/v1/orders/{order['id']}")
    assert resp.json()["message"] == "Order deleted"
    assert (await client.get(f"/api/v1/orders/{order['id']}")).status_code == 404
    assert (await client.delete(f"/api/v1/orders/{uuid.uuid4()}")).status_code == 404


async def test_add_component_defaults_quote_number(client):
    order = await create_order(client)
    resp = await client.post(
        f"/api/v1/orders/{order['id']}/components",
        json={"name": "SN74LVC1G08DBVR", "quantity": 10, "ti_price": 0.3},
    )
    body = resp.json()
    added = body["components"][-1]
    assert added["quote_number"] == "Q-100"
    assert added["unit_price"] == pytest.approx(0.3)
    assert body["total_amount"] == pytest.approx(35.0)


async def test_update_component_returns_component_and_updates_total(client):
    order = await create_order(client)
    resp = await client.put(
        f"/api/v1/orders/{order['id']}/components/c2",
        json={"quantity": 5, "invoice_number": "INV-9"},
    )
    assert resp.status_code == 200
    component = resp.json()
    assert component["id"] == "c2"
    assert component["quantity"] == 5
    assert component["invoice_number"] == "INV-9"

    stored = (await client.get(f"/api/v1/orders/{order['id']}")).json()
    assert stored["total_amount"] == pytest.approx(22.0)

    resp = await client.put(f"/api/v1/orders/{order['id']}/components/nope", json={"quantity": 1})
    assert resp.status_code == 404


async def test_purchase_order_number_can_change_before_submission(client, fake_ti):
    order = await create_order(client)
    resp = await client.put(
        f"/api/v1/orders/{order['id']}/purchase-order-number",
        json={"purchase_order_number": "PO-2002"},
    )
    body = resp.json()
    assert body["purchase_order_number"] == "PO-2002"
    assert body["order_number"] == "PO-2002"

    submitted = await submit_order(client, fake_ti, purchase_order_number="PO-3003")
    resp = await client.put(
        f"/api/v1/orders/{submitted['id']}/purchase-order-number",
        json={"purchase_order_number": "PO-4004"},
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "invalid_state"


async def test_submit_records_ti_order(client, fake_ti):
    order = await submit_order(client, fake_ti)
    assert order["ti_order_number"] == "TI-5001"
    assert order["status"] == "Processing"
    assert [c["ti_line_item_number"] for c in order["components"]] == ["10", "20"]
    assert [c["status"] for c in order["components"]] == ["Open", "Open"]
    assert [log["operation_type"] for log in order["api_logs"]] == ["submit"]

    sent = fake_ti.last_json()["order"]
    assert sent["customerPurchaseOrderNumber"] == "PO-1001"
    first_line = sent["lineItems"][0]
    assert first_line["customerLineItemNumber"] == 1
    assert first_line["quoteNumber"] == "Q-100"
    assert first_line["customerPartNumber"] == "K3-001"
    assert first_line["schedules"] == [{"requestedQuantity": 100, "requestedDeliveryDate": "2024-06-01"}]


async def test_submit_twice_is_rejected(client, fake_ti):
    order = await submit_order(client, fake_ti)
    resp = await client.post(f"/api/v1/orders/{order['id']}/submit")
    assert resp.status_code == 400
    assert len(fake_ti.calls(ORDERS_PATH)) == 1


async def test_submit_empty_order_is_rejected(client, fake_ti):
    order = await create_order(client, components=[])
    resp = await client.post(f"/api/v1/orders/{order['id']}/submit")
    assert resp.status_code == 400
    assert fake_ti.requests == []


async def test_query_reconciles_every_returned_order(client, fake_ti):
    order = await submit_order(client, fake_ti)
    fake_ti.add(
        "GET",
        ORDERS_PATH,
        {
            "orders": [
                ti_order(
                    status="Scheduled",
                    line_items=[
                        {
                            "tiPartNumber": "LM358DR",
                            "tiLineItemNumber": 10,
                            "status": "Scheduled",
                            "tiTotalOrderItemQuantity": 100,
                            "schedules": [
                                {"confirmations": [{"tiScheduleLineNumber": 1, "estimatedShipDate": "2024-06-03"}]},
                                {"confirmations": [{"tiScheduleLineNumber": 2, "estimatedShipDate": "2024-06-17"}]},
                            ],
                        }
                    ],
                ),
                ti_order(
                    order_number="TI-5002",
                    line_items=[{"tiPartNumber": "TPS7A4700RGWR", "status": "Backordered"}],
                ),
            ]
        },
    )
    resp = await client.get(f"/api/v1/orders/{order['id']}/query")
    assert resp.status_code == 200, resp.text
    assert fake_ti.last_params() == {"customerPurchaseOrderNumber": "PO-1001"}
    updated = resp.json()["order"]
    assert updated["status"] == "Scheduled"
    first, second = updated["components"]
    assert first["status"] == "Scheduled"
    assert [c["estimated_ship_date"] for c in first["confirmations"]] == ["2024-06-03", "2024-06-17"]
    assert second["status"] == "Backordered"
    assert updated["api_logs"] == order["api_logs"]


async def test_query_requires_submission(client, fake_ti):
    order = await create_order(client)
    resp = await client.get(f"/api/v1/orders/{order['id']}/query")
    assert resp.status_code == 400


async def test_modify_prices_from_quote_and_logs(client, fake_ti):
    await create_quotation(
        client,
        quote_number="Q-200",
        components=[{"name": "LM358DR", "quantity": 100, "unit_price": 0.5, "ti_price": 0.1}],
    )
    order = await submit_order(client, fake_ti)
    fake_ti.add(
        "POST",
        CHANGE_PATH,
        {
            "orders": [
                {
                    "orderStatus": "Changed",
                    "lineItems": [
                        {
                            "tiPartNumber": "LM358DR",
                            "tiLineItemNumber": 10,
                            "status": "Open",
                            "quoteNumber": "Q-200",
                            "schedules": [{"requestedQuantity": 150, "requestedDeliveryDate": "2024-06-20"}],
                        }
                    ],
                }
            ]
        },
    )
    payload = {
        "components": [
            {"id": "c1", "name": "LM358DR", "quote_number": "Q-200", "quantity": 150, "delivery_date": "2024-06-20"}
        ]
    }
    resp = await client.post(f"/api/v1/orders/{order['id']}/modify", json=payload)
    assert resp.status_code == 200, resp.text

    line = fake_ti.last_json()["order"]["lineItems"][0]
    assert line["lineItemChangeIndicator"] == "U"
    assert line["customerAnticipatedUnitPrice"] == pytest.approx(0.1)
    assert line["customerLineItemNumber"] == 1
    assert line["quoteNumber"] == "Q-200"

    updated = resp.json()["order"]
    assert updated["status"] == "Changed"
    first = updated["components"][0]
    assert first["quantity"] == 150
    assert first["unit_price"] == pytest.approx(0.1)
    assert first["quote_number"] == "Q-200"
    assert first["delivery_date"] == "2024-06-20"
    assert updated["total_amount"] == pytest.approx(35.0)
    assert [log["operation_type"] for log in updated["api_logs"]] == ["submit", "modify"]


async def test_modify_cancellation_drops_line_from_total(client, fake_ti):
    await create_quotation(
        client,
        quote_number="Q-200",
        components=[{"name": "TPS7A4700RGWR", "quantity": 10, "unit_price": 3.0, "ti_price": 1.9}],
    )
    order = await submit_order(client, fake_ti)
    fake_ti.add("POST", CHANGE_PATH, {})
    payload = {
        "components": [
            {
                "id": "c2",
                "name": "TPS7A4700RGWR",
                "quote_number": "Q-200",
                "quantity": 10,
                "delivery_date": "2024-06-15",
                "is_deleted": True,
            }
        ]
    }
    resp = await client.post(f"/api/v1/orders/{order['id']}/modify", json=payload)
    assert resp.status_code == 200, resp.text
    assert fake_ti.last_json()["order"]["lineItems"][0]["lineItemChangeIndicator"] == "X"
    updated = resp.json()["order"]
    assert updated["components"][1]["status"] == "deleted"
    assert updated["total_amount"] == pytest.approx(12.0)


async def test_modify_rejects_component_outside_order(client, fake_ti):
    order = await submit_order(client, fake_ti)
    payload = {
        "components": [
            {"id": "zz", "name": "LM358DR", "quote_number": "Q-100", "quantity": 1, "delivery_date": "2024-06-01"}
        ]
    }
    resp = await client.post(f"/api/v1/orders/{order['id']}/modify", json=payload)
    assert resp.status_code == 400
    assert resp.json()["error"]["details"]["component_id"] == "zz"
    assert fake_ti.calls(CHANGE_PATH) == []


async def test_modify_rejects_unquoted_component(client, fake_ti):
    order = await submit_order(client, fake_ti)
    payload = {
        "components": [
            {"id": "c1", "name": "LM358DR", "quote_number": "Q-missing", "quantity": 1, "delivery_date": "2024-06-01"}
        ]
    }
    resp = await client.post(f"/api/v1/orders/{order['id']}/modify", json=payload)
    assert resp.status_code == 400
    assert resp.json()["error"]["details"] == {"component_name": "LM358DR", "quote_number": "Q-missing"}


async def test_modify_requires_submission_and_components(client, fake_ti):
    order = await create_order(client)
    payload = {
        "components": [
            {"id": "c1", "name": "LM358DR", "quote_number": "Q-100", "quantity": 1, "delivery_date": "2024-06-01"}
        ]
    }
    resp = await client.post(f"/api/v1/orders/{order['id']}/modify", json=payload)
    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "invalid_state"

    resp = await client.post(f"/api/v1/orders/{order['id']}/modify", json={"components": []})
    assert resp.status_code == 422


async def test_modify_rejects_non_iso_delivery_date(client, fake_ti):
    order = await submit_order(client, fake_ti)
    payload = {
        "components": [
            {"id": "c1", "name": "LM358DR", "quote_number": "Q-100", "quantity": 1, "delivery_date": "2024/06/01"}
        ]
    }
    resp = await client.post(f"/api/v1/orders/{order['id']}/modify", json=payload)
    assert resp.status_code == 422
    assert fake_ti.calls(CHANGE_PATH) == []
