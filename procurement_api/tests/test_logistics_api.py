import httpx

from conftest import create_order, submit_order

ASN_PATH = "/v2/backlog/advanced-shipment-notices/test"


def _asn(parts, shipping_date="2024-06-03", arrival="2024-06-08", tracking="1Z999"):
    return {
        "data": {
            "consolidatedInformation": [
                {
                    "shippingDate": shipping_date,
                    "estimatedDateOfArrival": arrival,
                    "carrierShipmentMasterTrackingNumber": tracking,
                    "bookingOrderDetails": [
                        {"packageDetails": [{"itemDetails": [{"tiPartNumber": p} for p in parts]}]}
                    ],
                }
            ]
        }
    }


async def test_refresh_one_merges_shipment(client, fake_ti):
    await submit_order(client, fake_ti)
    fake_ti.add("GET", ASN_PATH, _asn(["LM358DR"]))

    resp = await client.get("/api/v1/logistics/refresh/PO-1001")
    assert resp.status_code == 200, resp.text
    assert fake_ti.last_params()["customerPurchaseOrderNumber"] == "PO-1001"
    body = resp.json()
    assert body["success"] is True
    shipped, pending = body["components"]
    assert shipped["shipping_date"] == "2024-06-03"
    assert shipped["estimated_date_of_arrival"] == "2024-06-08"
    assert shipped["carrier"] == "1Z999"
    assert pending["carrier"] is None

    listing = (await client.get("/api/v1/logistics")).json()
    info = listing["logistics_info"][0]
    assert info["order_id"] == "PO-1001"
    assert info["shipping_date"] == "2024-06-03"
    assert info["estimated_delivery_date"] == "2024-06-08"
    assert info["ti_order_number"] == "TI-5001"
    assert listing["total_pages"] == 1


async def test_refresh_one_unknown_or_unsubmitted(client, fake_ti):
    resp = await client.get("/api/v1/logistics/refresh/PO-NOPE")
    assert resp.status_code == 404

    await create_order(client, purchase_order_number="PO-DRAFT")
    resp = await client.get("/api/v1/logistics/refresh/PO-DRAFT")
    assert resp.status_code == 400
    assert fake_ti.requests == []


async def test_refresh_one_with_incomplete_notice_is_502(client, fake_ti):
    await submit_order(client, fake_ti)
    fake_ti.add("GET", ASN_PATH, {"data": {"consolidatedInformation": [{"bookingOrderDetails": []}]}})
    resp = await client.get("/api/v1/logistics/refresh/PO-1001")
    assert resp.status_code == 502
    assert "bookingOrderDetails" in resp.json()["error"]["message"]


async def test_bulk_refresh_reports_failures_per_order(client, fake_ti):
    await submit_order(client, fake_ti, purchase_order_number="PO-1")
    await submit_order(client, fake_ti, purchase_order_number="PO-2")
    await create_order(client, purchase_order_number="PO-3")

    def asn(request):
        if request.url.params["customerPurchaseOrderNumber"] == "PO-2":
            return httpx.Response(500, json={"errors": [{"message": "boom"}]})
        return httpx.Response(200, json=_asn(["TPS7A4700RGWR"]))

    fake_ti.add_handler("GET", ASN_PATH, asn)

    resp = await client.post(
        "/api/v1/logistics/refresh",
        json={"order_numbers": ["PO-1", "PO-2", "PO-3", "PO-1"]},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["refreshed"] == ["PO-1"]
    failed = {f["order_number"]: f["error"] for f in body["failed"]}
    assert set(failed) == {"PO-2", "PO-3"}
    assert "not been submitted" in failed["PO-3"]
    assert len(fake_ti.calls(ASN_PATH)) == 2


async def test_bulk_refresh_defaults_to_submitted_orders(client, fake_ti):
    await submit_order(client, fake_ti, purchase_order_number="PO-1")
    await create_order(client, purchase_order_number="PO-DRAFT")
    fake_ti.add("GET", ASN_PATH, _asn(["LM358DR"]))

    resp = await client.post("/api/v1/logistics/refresh")
    body = resp.json()
    assert body == {"refreshed": ["PO-1"], "failed": []}


async def test_list_searches_order_number_and_customer(client):
    await create_order(client, purchase_order_number="PO-A", customer="Northwind")
    await create_order(client, purchase_order_number="PO-B")

    listing = (await client.get("/api/v1/logistics", params={"search_term": "po-b"})).json()
    assert [i["order_id"] for i in listing["logistics_info"]] == ["PO-B"]
    assert listing["logistics_info"][0]["shipping_date"] == ""

    listing = (await client.get("/api/v1/logistics", params={"search_term": "NORTH"})).json()
    assert [i["customer"] for i in listing["logistics_info"]] == ["Northwind"]


async def test_malformed_notices_fail_per_order(client, fake_ti):
    await submit_order(client, fake_ti, purchase_order_number="PO-1")
    await submit_order(client, fake_ti, purchase_order_number="PO-2")
    await submit_order(client, fake_ti, purchase_order_number="PO-3")
    malformed = {
        "PO-2": {"data": {"consolidatedInformation": {"bookingOrderDetails": []}}},
        "PO-3": {"data": {"consolidatedInformation": [{"bookingOrderDetails": ["not-a-booking"]}]}},
    }

    def asn(request):
        number = request.url.params["customerPurchaseOrderNumber"]
        return httpx.Response(200, json=malformed.get(number, _asn(["LM358DR"])))

    fake_ti.add_handler("GET", ASN_PATH, asn)

    resp = await client.post("/api/v1/logistics/refresh", json={"order_numbers": ["PO-1", "PO-2", "PO-3"]})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["refreshed"] == ["PO-1"]
    failed = {f["order_number"]: f["error"] for f in body["failed"]}
    assert "consolidatedInformation" in failed["PO-2"]
    assert "bookingOrderDetails" in failed["PO-3"]

    resp = await client.get("/api/v1/logistics/refresh/PO-2")
    assert resp.status_code == 502
