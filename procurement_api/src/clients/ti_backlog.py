from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

import httpx

from src.core.formatting import amount_string, iso_date
from src.core.settings import AppSettings, get_app_settings

from .api_accessor import APIAccessor
from .errors import BacklogConfigError

logger = logging.getLogger(__name__)


def _flag(value: bool) -> str:
    return "true" if value else "false"


class _BacklogResource:
    """Shared endpoint construction for one TI backlog API family."""

    resource: str = ""

    def __init__(self, api: APIAccessor, *, production: bool = False) -> None:
        self.api = api
        self.production = production

    def endpoint(self, path: Optional[str] = None) -> str:
        url = f"{self.api.server}/v2/backlog/{path or self.resource}"
        return url if self.production else f"{url}/test"


class TIBacklogQuotes(_BacklogResource):
    """Quotes API: request quotes for part numbers and read them back."""

    resource = "quotes"

    def __init__(
        self,
        api: APIAccessor,
        *,
        production: bool = False,
        checkout_profile_id: Optional[str] = None,
        end_customer_company_name: str = "",
        currency_code: str = "USD",
    ) -> None:
        super().__init__(api, production=production)
        self.checkout_profile_id = checkout_profile_id
        self.end_customer_company_name = end_customer_company_name
        self.currency_code = currency_code

    # PUBLIC_INTERFACE
    @staticmethod
    def build_line_item(part_number: str, quantity: int) -> Dict[str, Any]:
        """
        Build a quote line item.

        Raises:
            ValueError: empty part number or a quantity that is not a positive integer.
        """
        if not part_number or not str(part_number).strip():
            raise ValueError("Part number cannot be empty")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValueError("Quantity must be a positive integer")
        return {"tiPartNumber": str(part_number).strip(), "quantity": quantity}

    # PUBLIC_INTERFACE
    async def post_quote(self, line_items: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Create a quote upstream for the given line items."""
        if not self.checkout_profile_id:
            raise BacklogConfigError("TI_CHECKOUT_PROFILE_ID is not configured")
        data = {
            "quote": {
                "endCustomerCompanyName": self.end_customer_company_name,
                "checkoutProfileId": self.checkout_profile_id,
                "requestedUnitPriceCurrencyCode": self.currency_code,
                "lineItems": line_items,
            }
        }
        logger.info("Posting quote with %d line item(s)", len(line_items))
        return await self.api.post(self.endpoint(), data)

    # PUBLIC_INTERFACE
    async def get_quote(self, quote_number: str) -> Dict[str, Any]:
        return await self.api.get(self.endpoint(), params={"quoteNumber": quote_number})


class TIBacklogOrders(_BacklogResource):
    """Orders API: place, change and retrieve purchase orders."""

    resource = "orders"

    def __init__(
        self,
        api: APIAccessor,
        *,
        production: bool = False,
        checkout_profile_id: Optional[str] = None,
        end_customer_company_name: str = "",
        ship_to: Optional[str] = None,
        currency_code: str = "USD",
    ) -> None:
        super().__init__(api, production=production)
        self.checkout_profile_id = checkout_profile_id
        self.end_customer_company_name = end_customer_company_name
        self.ship_to = ship_to
        self.currency_code = currency_code

    # PUBLIC_INTERFACE
    @staticmethod
    def build_line_item(
        line_number: int,
        part_number: str,
        quantity: int,
        delivery_date: Union[str, date, datetime, None],
        unit_price: float,
        quote_number: Optional[str],
        customer_part_number: Optional[str],
        currency: str = "USD",
    ) -> Dict[str, Any]:
        """
        Build an order line item with a single delivery schedule.

        Raises:
            ValueError: the delivery date is not an ISO 8601 date.
        """
        return {
            "customerLineItemNumber": line_number,
            "tiPartNumber": part_number,
            "customerAnticipatedUnitPrice": unit_price,
            "quoteNumber": quote_number,
            "customerCurrencyCode": currency,
            "customerPartNumber": customer_part_number,
            "schedules": [
                {
                    "requestedQuantity": quantity,
                    "requestedDeliveryDate": iso_date(delivery_date),
                }
            ],
        }

    def _order_body(self, customer_order_number: str, line_items: List[Dict[str, Any]]) -> Dict[str, Any]:
        if not self.checkout_profile_id:
            raise BacklogConfigError("TI_CHECKOUT_PROFILE_ID is not configured")
        return {
            "order": {
                "endCustomerCompanyName": self.end_customer_company_name,
                "checkoutProfileId": self.checkout_profile_id,
                "customerPurchaseOrderNumber": customer_order_number,
                "shipToAccountNumber": self.ship_to,
                "lineItems": line_items,
            }
        }

    # PUBLIC_INTERFACE
    async def post_order(self, customer_order_number: str, line_items: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Place a new order keyed by the customer purchase order number."""
        logger.info("Posting order %s with %d line item(s)", customer_order_number, len(line_items))
        return await self.api.post(self.endpoint(), self._order_body(customer_order_number, line_items))

    # PUBLIC_INTERFACE
    async def change_order(self, customer_order_number: str, line_items: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Change lines of an existing order; lines carry `lineItemChangeIndicator`."""
        logger.info("Changing order %s (%d line item(s))", customer_order_number, len(line_items))
        return await self.api.post(
            self.endpoint("orders/changeByCustomerPurchaseOrderNumber"),
            self._order_body(customer_order_number, line_items),
        )

    # PUBLIC_INTERFACE
    async def retrieve_by_supplier_number(self, order_number: str) -> Dict[str, Any]:
        return await self.api.get(self.endpoint(), params={"orderNumber": order_number})

    # PUBLIC_INTERFACE
    async def retrieve_by_customer_number(self, customer_order_number: str) -> Dict[str, Any]:
        return await self.api.get(
            self.endpoint(), params={"customerPurchaseOrderNumber": customer_order_number}
        )


class TIBacklogASN(_BacklogResource):
    """Advance shipment notices."""

    resource = "advanced-shipment-notices"

    async def _retrieve(self, key: str, value: str, invoice_pdf: bool, waybill_pdf: bool) -> Dict[str, Any]:
        params = {
            key: value,
            "requestCommercialInvoicePDF": _flag(invoice_pdf),
            "requestWaybillPDF": _flag(waybill_pdf),
        }
        return await self.api.get(self.endpoint(), params=params)

    # PUBLIC_INTERFACE
    async def retrieve_by_order_number(
        self, order_number: str, request_invoice_pdf: bool = False, request_waybill_pdf: bool = False
    ) -> Dict[str, Any]:
        return await self._retrieve("orderNumber", order_number, request_invoice_pdf, request_waybill_pdf)

    # PUBLIC_INTERFACE
    async def retrieve_by_customer_number(
        self, customer_order_number: str, request_invoice_pdf: bool = True, request_waybill_pdf: bool = False
    ) -> Dict[str, Any]:
        return await self._retrieve(
            "customerPurchaseOrderNumber", customer_order_number, request_invoice_pdf, request_waybill_pdf
        )

    # PUBLIC_INTERFACE
    async def retrieve_by_waybill_number(
        self, waybill_number: str, request_invoice_pdf: bool = True, request_waybill_pdf: bool = False
    ) -> Dict[str, Any]:
        return await self._retrieve("wayBillNumber", waybill_number, request_invoice_pdf, request_waybill_pdf)


class TIBacklogInvoice(_BacklogResource):
    """Financial documents (invoices)."""

    resource = "financial-documents"

    async def _retrieve(self, key: str, value: str, request_pdf: bool) -> Dict[str, Any]:
        return await self.api.get(self.endpoint(), params={key: value, "requestInvoicePDF": _flag(request_pdf)})

    # PUBLIC_INTERFACE
    async def retrieve_by_order_number(self, order_number: str, request_pdf: bool = False) -> Dict[str, Any]:
        return await self._retrieve("orderNumber", order_number, request_pdf)

    # PUBLIC_INTERFACE
    async def retrieve_by_customer_number(self, customer_order_number: str, request_pdf: bool = False) -> Dict[str, Any]:
        return await self._retrieve("customerPurchaseOrderNumber", customer_order_number, request_pdf)

    # PUBLIC_INTERFACE
    async def retrieve_by_delivery_number(self, delivery_number: str, request_pdf: bool = False) -> Dict[str, Any]:
        return await self._retrieve("deliveryNumber", delivery_number, request_pdf)

    # PUBLIC_INTERFACE
    async def retrieve_by_document_number(self, document_number: str, request_pdf: bool = False) -> Dict[str, Any]:
        return await self._retrieve("financialDocumentNumber", document_number, request_pdf)


class TIBacklogRemittance(_BacklogResource):
    """Remittance advice."""

    resource = "remittance-advice"

    # PUBLIC_INTERFACE
    @staticmethod
    def build_line_item(invoice_number: str, amount: float) -> Dict[str, Any]:
        return {"paymentAmount": amount_string(amount), "financialDocumentNumber": invoice_number}

    # PUBLIC_INTERFACE
    async def post_remittance(
        self, advice_number: str, line_items: List[Dict[str, Any]], currency: str = "USD"
    ) -> Dict[str, Any]:
        data = {
            "remittanceAdviceNumber": advice_number,
            "currencyCode": currency,
            "lineItems": line_items,
        }
        logger.info("Posting remittance advice %s (%d line item(s))", advice_number, len(line_items))
        return await self.api.post(self.endpoint(), data)


class TIBacklogClient:
    """
    Facade over all TI backlog resources sharing one APIAccessor, so a single
    bearer token and connection pool serve every call.
    """

    def __init__(
        self,
        api: APIAccessor,
        *,
        production: bool = False,
        checkout_profile_id: Optional[str] = None,
        end_customer_company_name: str = "",
        ship_to: Optional[str] = None,
        currency_code: str = "USD",
    ) -> None:
        self.api = api
        self.currency_code = currency_code
        self.quotes = TIBacklogQuotes(
            api,
            production=production,
            checkout_profile_id=checkout_profile_id,
            end_customer_company_name=end_customer_company_name,
            currency_code=currency_code,
        )
        self.orders = TIBacklogOrders(
            api,
            production=production,
            checkout_profile_id=checkout_profile_id,
            end_customer_company_name=end_customer_company_name,
            ship_to=ship_to,
            currency_code=currency_code,
        )
        self.asn = TIBacklogASN(api, production=production)
        self.invoices = TIBacklogInvoice(api, production=production)
        self.remittance = TIBacklogRemittance(api, production=production)

    # PUBLIC_INTERFACE
    @classmethod
    def from_settings(
        cls,
        settings: Optional[AppSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "TIBacklogClient":
        """Build a client from application settings (TI_* variables)."""
        settings = settings or get_app_settings()
        api = APIAccessor(
            settings.TI_SERVER_URL,
            settings.TI_CLIENT_ID,
            settings.TI_CLIENT_SECRET,
            timeout=settings.TI_TIMEOUT_SECONDS,
            expiry_margin=settings.TI_TOKEN_EXPIRY_MARGIN_SECONDS,
            transport=transport,
        )
        return cls(
            api,
            production=settings.ti_is_production,
            checkout_profile_id=settings.TI_CHECKOUT_PROFILE_ID,
            end_customer_company_name=settings.TI_END_CUSTOMER_COMPANY_NAME,
            ship_to=settings.TI_SHIP_TO,
            currency_code=settings.TI_CURRENCY_CODE,
        )

    async def aclose(self) -> None:
        await self.api.aclose()
