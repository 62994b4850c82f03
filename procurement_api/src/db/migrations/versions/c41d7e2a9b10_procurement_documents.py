"""Procurement document tables.

- quotations
- orders
- remittance_notifications

Line items, confirmations and upstream call logs are embedded JSON documents
(JSONB on PostgreSQL).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "c41d7e2a9b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_DOC = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "quotations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("customer", sa.Text(), nullable=False),
        sa.Column("total_amount", sa.Numeric(18, 6), nullable=False),
        sa.Column("quote_status", sa.Text(), nullable=False),
        sa.Column("quote_number", sa.Text(), nullable=False),
        sa.Column("customer_quote_number", sa.Text(), nullable=True),
        sa.Column("quote_start_date", sa.Text(), nullable=False),
        sa.Column("quote_end_date", sa.Text(), nullable=False),
        sa.Column("components", JSON_DOC, nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_quotations"),
    )
    op.create_index("ix_quotations_quote_number", "quotations", ["quote_number"])
    op.create_index("ix_quotations_customer_quote_number", "quotations", ["customer_quote_number"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("customer", sa.Text(), nullable=False),
        sa.Column("total_amount", sa.Numeric(18, 6), nullable=False),
        sa.Column("status", sa.Text(), nullable=True),
        sa.Column("order_number", sa.Text(), nullable=True),
        sa.Column("purchase_order_number", sa.Text(), nullable=True),
        sa.Column("ti_order_number", sa.Text(), nullable=True),
        sa.Column("quotation_id", sa.Text(), nullable=True),
        sa.Column("quote_number", sa.Text(), nullable=True),
        sa.Column("components", JSON_DOC, nullable=False),
        sa.Column("api_logs", JSON_DOC, nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_orders"),
    )
    op.create_index("ix_orders_order_number", "orders", ["order_number"])
    op.create_index("ix_orders_ti_order_number", "orders", ["ti_order_number"])

    op.create_table(
        "remittance_notifications",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("remittance_number", sa.Text(), nullable=False),
        sa.Column("currency", sa.Text(), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=True),
        sa.Column("items", JSON_DOC, nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_remittance_notifications"),
    )
    op.create_index(
        "ix_remittance_notifications_remittance_number",
        "remittance_notifications",
        ["remittance_number"],
    )


def downgrade() -> None:
    op.drop_index("ix_remittance_notifications_remittance_number", table_name="remittance_notifications")
    op.drop_table("remittance_notifications")
    op.drop_index("ix_orders_ti_order_number", table_name="orders")
    op.drop_index("ix_orders_order_number", table_name="orders")
    op.drop_table("orders")
    op.drop_index("ix_quotations_customer_quote_number", table_name="quotations")
    op.drop_index("ix_quotations_quote_number", table_name="quotations")
    op.drop_table("quotations")
