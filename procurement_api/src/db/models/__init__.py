"""
ORM models for the procurement documents: quotations, orders and remittance
notifications.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .quotation import Quotation  # noqa: F401
from .order import Order  # noqa: F401
from .remittance import RemittanceNotification  # noqa: F401
