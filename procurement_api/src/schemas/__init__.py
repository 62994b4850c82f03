"""
Public Pydantic schemas used by FastAPI routes, services, and tests.

Schemas are grouped by document type (quotation, order, remittance, ...) and
also include common reusable models such as the error envelope.
"""

from .common import MessageResponse  # noqa: F401
