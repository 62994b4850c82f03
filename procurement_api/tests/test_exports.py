import io
import uuid

import pandas as pd
import pytest

from conftest import create_order, create_quotation


async def test_health(client):
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Healthy"}
    assert "X-Correlation-ID" in resp.headers


async def test_correlation_id_is_echoed(client):
    resp = await client.get("/api/v1/health", headers={"X-Correlation-ID": "abc-123"})
    assert resp.headers["X-Correlation-ID"] == "abc-123"


async def test_quotation_export_json_rows(client):
    quotation = await create_quotation(client, quote_number="Q-1")
    resp = await client.post("/api/v1/quotations/export", json={"ids": [quotation["id"]]})
    assert resp.status_code == 200
    assert "quotations.json" in resp.headers["content-disposition"]
    rows = resp.json()
    assert len(rows) == 2
    assert rows[0]["part_number"] == "LM358DR"
    assert rows[0]["quote_number"] == "Q-1"
    assert rows[0]["subtotal"] == pytest.approx(50.0)
    assert rows[1]["subtotal"] == pytest.approx(22.5)


async def test_quotation_export_csv(client):
    quotation = await create_quotation(client)
    resp = await client.post("/api/v1/quotations/export?format=csv", json={"ids": [quotation["id"]]})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    df = pd.read_csv(io.StringIO(resp.text))
    assert list(df.columns)[:3] == ["date", "customer", "quote_number"]
    assert df["quantity"].tolist() == [100, 10]


async def test_order_export_xlsx_and_pdf(client):
    order = await create_order(client)
    resp = await client.post("/api/v1/orders/export?format=xlsx", json={"ids": [order["id"]]})
    assert resp.status_code == 200
    df = pd.read_excel(io.BytesIO(resp.content), engine="openpyxl")
    assert df["part_number"].tolist() == ["LM358DR", "TPS7A4700RGWR"]
    assert df["purchase_order_number"].tolist() == ["PO-1001", "PO-1001"]

    resp = await client.post("/api/v1/orders/export?format=pdf", json={"ids": [order["id"]]})
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")


async def test_export_with_unknown_ids_keeps_headers(client):
    resp = await client.post(
        "/api/v1/orders/export?format=csv",
        json={"ids": ["00000000-0000-0000-0000-000000000000"]},
    )
    assert resp.status_code == 200
    assert resp.text.strip().split(",")[0] == "date"


async def test_export_validation(client):
    resp = await client.post("/api/v1/orders/export", json={"ids": []})
    assert resp.status_code == 422
    resp = await client.post("/api/v1/orders/export?format=doc", json={"ids": [str(uuid.uuid4())]})
    assert resp.status_code == 422
