"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries for quotations, orders and
remittance notifications. Services own the business rules and call into them
with the request-scoped AsyncSession.
"""
