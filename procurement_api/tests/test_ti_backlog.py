import httpx
import pytest

from src.clients.errors import BacklogConfigError
from src.clients.ti_backlog import TIBacklogClient, TIBacklogOrders, TIBacklogQuotes, TIBacklogRemittance
from src.core.settings import AppSettings


def test_quote_line_item_validation():
    assert TIBacklogQuotes.build_line_item(" LM358DR ", 5) == {"tiPartNumber": "LM358DR", "quantity": 5}
    with pytest.raises(ValueError):
        TIBacklogQuotes.build_line_item("", 5)
    with pytest.raises(ValueError):
        TIBacklogQuotes.build_line_item("LM358DR", 0)
    with pytest.raises(ValueError):
        TIBacklogQuotes.build_line_item("LM358DR", True)


def test_order_line_item_shape():
    item = TIBacklogOrders.build_line_item(2, "LM358DR", 100, "2024-06-01T00:00:00Z", 0.12, "Q-1", "K3-001")
    assert item["customerLineItemNumber"] == 2
    assert item["customerAnticipatedUnitPrice"] == 0.12
    assert item["customerCurrencyCode"] == "USD"
    assert item["schedules"] == [{"requestedQuantity": 100, "requestedDeliveryDate": "2024-06-01"}]


@pytest.mark.parametrize("value", ["2024/06/01", "06/01/2024", "June 1st"])
def test_order_line_item_rejects_non_iso_delivery_date(value):
    with pytest.raises(ValueError):
        TIBacklogOrders.build_line_item(1, "LM358DR", 10, value, 0.12, "Q-1", None)


def test_remittance_line_item_amount_is_a_string():
    assert TIBacklogRemittance.build_line_item("INV-1", 12.5) == {
        "paymentAmount": "12.5",
        "financialDocumentNumber": "INV-1",
    }
    assert TIBacklogRemittance.build_line_item("INV-2", 100.0)["paymentAmount"] == "100"
    assert TIBacklogRemittance.build_line_item("INV-3", 42.50)["paymentAmount"] == "42.5"
    assert TIBacklogRemittance.build_line_item("INV-4", 0.0)["paymentAmount"] == "0"


async def test_development_endpoints_use_test_suffix(backlog, fake_ti):
    fake_ti.add("GET", "/v2/backlog/quotes/test", {"quotes": []})
    await backlog.quotes.get_quote("Q-1")
    assert fake_ti.last_params() == {"quoteNumber": "Q-1"}
    assert fake_ti.requests[-1].headers["Authorization"] == "Bearer token-1"


async def test_production_endpoints_drop_test_suffix(fake_ti):
    settings = AppSettings(
        TI_SERVER_URL="https://ti.test",
        TI_CLIENT_ID="id",
        TI_CLIENT_SECRET="secret",
        TI_API_ENV="production",
        TI_CHECKOUT_PROFILE_ID="profile-1",
    )
    client = TIBacklogClient.from_settings(settings, transport=httpx.MockTransport(fake_ti.handler))
    fake_ti.add("POST", "/v2/backlog/orders/changeByCustomerPurchaseOrderNumber", {"orders": []})
    await client.orders.change_order("PO-1", [])
    assert fake_ti.requests[-1].url.path == "/v2/backlog/orders/changeByCustomerPurchaseOrderNumber"
    await client.aclose()


async def test_post_quote_body(backlog, fake_ti):
    fake_ti.add("POST", "/v2/backlog/quotes/test", {"quotes": [{"quoteNumber": "Q-1"}]})
    await backlog.quotes.post_quote([{"tiPartNumber": "LM358DR", "quantity": 1}])
    quote = fake_ti.last_json()["quote"]
    assert quote["checkoutProfileId"] == "profile-1"
    assert quote["requestedUnitPriceCurrencyCode"] == "USD"
    assert quote["endCustomerCompanyName"] == "BAIQIANCHENG SHENZHEN"
    assert quote["lineItems"] == [{"tiPartNumber": "LM358DR", "quantity": 1}]


async def test_post_order_body(backlog, fake_ti):
    fake_ti.add("POST", "/v2/backlog/orders/test", {"orders": []})
    await backlog.orders.post_order("PO-1", [])
    order = fake_ti.last_json()["order"]
    assert order["customerPurchaseOrderNumber"] == "PO-1"
    assert order["shipToAccountNumber"] == "ship-to-1"


async def test_missing_checkout_profile_is_a_config_error(fake_ti):
    settings = AppSettings(TI_SERVER_URL="https://ti.test", TI_CHECKOUT_PROFILE_ID=None)
    client = TIBacklogClient.from_settings(settings, transport=httpx.MockTransport(fake_ti.handler))
    with pytest.raises(BacklogConfigError):
        await client.quotes.post_quote([])
    assert fake_ti.token_requests == 0
    await client.aclose()


async def test_asn_and_invoice_flags_are_strings(backlog, fake_ti):
    fake_ti.add("GET", "/v2/backlog/advanced-shipment-notices/test", {})
    await backlog.asn.retrieve_by_customer_number("PO-1")
    assert fake_ti.last_params() == {
        "customerPurchaseOrderNumber": "PO-1",
        "requestCommercialInvoicePDF": "true",
        "requestWaybillPDF": "false",
    }
    await backlog.asn.retrieve_by_order_number("TI-1")
    assert fake_ti.last_params()["requestCommercialInvoicePDF"] == "false"

    fake_ti.add("GET", "/v2/backlog/financial-documents/test", {})
    await backlog.invoices.retrieve_by_document_number("INV-1", request_pdf=True)
    assert fake_ti.last_params() == {"financialDocumentNumber": "INV-1", "requestInvoicePDF": "true"}


async def test_token_is_shared_across_resources(backlog, fake_ti):
    fake_ti.add("GET", "/v2/backlog/quotes/test", {})
    fake_ti.add("GET", "/v2/backlog/orders/test", {})
    await backlog.quotes.get_quote("Q-1")
    await backlog.orders.retrieve_by_supplier_number("TI-1")
    assert fake_ti.token_requests == 1
