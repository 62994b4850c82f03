"""
API route modules.

This package contains subrouters for:
- Quotations, Orders, Logistics, Invoices, Remittances
- TI webhooks (Basic-Auth protected push notifications)

Routers are included from src.api.main (under the /api/v1 prefix).
"""
