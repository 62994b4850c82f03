import pytest

from conftest import submit_order

AUTH = ("ti-hook", "hook-secret")


def _update(status="Shipped", line_status="Shipped"):
    return {
        "orders": [
            {
                "orderNumber": "TI-5001",
                "orderStatus": status,
                "lineItems": [
                    {
                        "tiPartNumber": "lm358dr",
                        "tiLineItemNumber": 10,
                        "status": line_status,
                        "schedules": [
                            {
                                "confirmations": [
                                    {"tiScheduleLineNumber": 1, "estimatedDeliveryDate": "2024-06-09"}
                                ]
                            }
                        ],
                    }
                ],
            }
        ]
    }


@pytest.mark.parametrize("path", ["/ti-order-update", "/ti-logistics-update", "/ti-invoice-update"])
async def test_webhooks_require_basic_auth(client, path):
    resp = await client.post(f"/api/v1{path}", json={})
    assert resp.status_code == 401
    assert resp.headers["WWW-Authenticate"] == 'Basic realm="Secure Area"'

    resp = await client.post(f"/api/v1{path}", json={}, auth=("ti-hook", "wrong"))
    assert resp.status_code == 401


async def test_order_update_applies_status_and_confirmation(client, fake_ti):
    order = await submit_order(client, fake_ti)
    resp = await client.post("/api/v1/ti-order-update", json=_update(), auth=AUTH)
    assert resp.status_code == 200, resp.text
    assert resp.json() == {"success": True, "message": "Order PO-1001 updated"}

    stored = (await client.get(f"/api/v1/orders/{order['id']}")).json()
    assert stored["status"] == "Shipped"
    first, second = stored["components"]
    assert first["status"] == "Shipped"
    assert first["confirmations"][0]["estimated_delivery_date"] == "2024-06-09"
    assert first["confirmations"][0]["ti_schedule_line_number"] == "1"
    assert second["status"] == "Open"


async def test_order_update_for_unknown_order_is_404(client):
    resp = await client.post("/api/v1/ti-order-update", json=_update(), auth=AUTH)
    assert resp.status_code == 404


async def test_order_update_without_orders_is_400(client):
    resp = await client.post("/api/v1/ti-order-update", json={"orders": []}, auth=AUTH)
    assert resp.status_code == 400
    resp = await client.post("/api/v1/ti-order-update", json=[{"orderNumber": "TI-5001"}], auth=AUTH)
    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "validation_failed"


async def test_logistics_and_invoice_updates_are_acknowledged(client):
    resp = await client.post("/api/v1/ti-logistics-update", json={"shipment": 1}, auth=AUTH)
    assert resp.json() == {"success": True, "message": "Logistics update received"}
    resp = await client.post("/api/v1/ti-invoice-update", json={"invoice": 1}, auth=AUTH)
    assert resp.json() == {"success": True, "message": "Invoice update received"}
