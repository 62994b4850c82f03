from conftest import create_order

DOCUMENTS_PATH = "/v2/backlog/financial-documents/test"


async def test_list_exposes_component_invoice_fields(client):
    order = await create_order(client, purchase_order_number="PO-INV")
    await client.put(
        f"/api/v1/orders/{order['id']}/components/c1",
        json={"invoice_number": "9001", "invoice_date": "2024-06-05"},
    )
    await create_order(client, purchase_order_number="PO-OTHER", customer="Northwind")

    body = (await client.get("/api/v1/invoices", params={"search_term": "inv"})).json()
    assert body["total_pages"] == 1
    [info] = body["invoice_info"]
    assert info["order_id"] == "PO-INV"
    assert info["components"][0] == {
        "name": "LM358DR",
        "quantity": 100,
        "unit_price": 0.12,
        "invoice_number": "9001",
        "invoice_date": "2024-06-05",
    }
    assert info["components"][1]["invoice_number"] == ""

    body = (await client.get("/api/v1/invoices", params={"search_term": "northwind"})).json()
    assert [i["order_id"] for i in body["invoice_info"]] == ["PO-OTHER"]


async def test_query_returns_pdf_data_url(client, fake_ti):
    fake_ti.add(
        "GET",
        DOCUMENTS_PATH,
        {"documents": [{"financialDocumentNumber": "9001", "documentPDF": "JVBERi0x"}]},
    )
    resp = await client.get("/api/v1/invoices/query", params={"order_number": "PO-INV"})
    assert resp.status_code == 200, resp.text
    assert fake_ti.last_params() == {"customerPurchaseOrderNumber": "PO-INV", "requestInvoicePDF": "true"}
    body = resp.json()
    assert body["pdf_url"] == "data:application/pdf;base64,JVBERi0x"
    assert body["documents"][0]["financialDocumentNumber"] == "9001"


async def test_query_without_pdf(client, fake_ti):
    fake_ti.add("GET", DOCUMENTS_PATH, {"documents": [{"financialDocumentNumber": "9001"}]})
    body = (await client.get("/api/v1/invoices/query", params={"order_number": "PO-INV"})).json()
    assert body["pdf_url"] is None


async def test_query_without_documents_is_404(client, fake_ti):
    fake_ti.add("GET", DOCUMENTS_PATH, {"documents": []})
    resp = await client.get("/api/v1/invoices/query", params={"order_number": "PO-INV"})
    assert resp.status_code == 404


async def test_query_requires_order_number(client):
    resp = await client.get("/api/v1/invoices/query")
    assert resp.status_code == 422
