"""initial schema: billboards, contracts, pricing, sizes, shared ledger

Revision ID: 5b1c2e7a9d40
Revises:
Create Date: 2026-10-19 10:12:41.118230
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1c2e7a9d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "billboards",
        sa.Column("ID", sa.Integer, primary_key=True),
        sa.Column("Billboard_Name", sa.String(255), nullable=True),
        sa.Column("City", sa.String(100), nullable=True),
        sa.Column("Size", sa.String(50), nullable=True),
        sa.Column("Level", sa.String(50), nullable=True),
        sa.Column("Faces_Count", sa.Integer, nullable=True),
        sa.Column("price", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("Status", sa.String(50), nullable=True),
        sa.Column("Contract_Number", sa.String(50), nullable=True),
        sa.Column("Customer_Name", sa.String(255), nullable=True),
        sa.Column("Rent_Start_Date", sa.Date, nullable=True),
        sa.Column("Rent_End_Date", sa.Date, nullable=True),
        sa.Column("is_partnership", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("partner_companies", sa.Text, nullable=True),
        sa.Column("capital", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("capital_remaining", sa.Numeric(18, 2), nullable=True),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "capital_remaining IS NULL OR capital_remaining >= 0", name="ck_billboard_capital_remaining"
        ),
    )
    op.create_index("ix_billboards_ID", "billboards", ["ID"], unique=False)
    op.create_index("ix_billboards_Contract_Number", "billboards", ["Contract_Number"], unique=False)
    op.create_index("ix_billboards_partnership", "billboards", ["is_partnership"], unique=False)

    op.create_table(
        "sizes",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(50), nullable=False, unique=True),
        sa.Column("installation_price", sa.Numeric(18, 2), nullable=True),
    )

    op.create_table(
        "contracts",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("Contract_Number", sa.String(50), nullable=False, unique=True),
        sa.Column("Customer Name", sa.String(255), nullable=True),
        sa.Column("customer_category", sa.String(50), nullable=False, server_default="عادي"),
        sa.Column("Ad Type", sa.String(100), nullable=True),
        sa.Column("Contract Date", sa.Date, nullable=True),
        sa.Column("End Date", sa.Date, nullable=True),
        sa.Column("rent_cost", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_type", sa.String(10), nullable=False, server_default="percent"),
        sa.Column("discount_value", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("installation_cost", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("print_cost", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("Total", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("rental_cost_only", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("operating_fee_rate", sa.Numeric(9, 4), nullable=True),
        sa.Column("operating_fee", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("billboard_ids", sa.Text, nullable=True),
        sa.Column("installments_data", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("discount_type IN ('percent','amount')", name="ck_contract_discount_type"),
    )
    op.create_index("ix_contracts_End Date", "contracts", ["End Date"], unique=False)

    op.create_table(
        "pricing",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("size", sa.String(50), nullable=False),
        sa.Column("billboard_level", sa.String(50), nullable=False),
        sa.Column("customer_category", sa.String(50), nullable=False),
        sa.Column("one_month", sa.Numeric(18, 2), nullable=True),
        sa.Column("2_months", sa.Numeric(18, 2), nullable=True),
        sa.Column("3_months", sa.Numeric(18, 2), nullable=True),
        sa.Column("6_months", sa.Numeric(18, 2), nullable=True),
        sa.Column("full_year", sa.Numeric(18, 2), nullable=True),
        sa.Column("one_day", sa.Numeric(18, 2), nullable=True),
        sa.UniqueConstraint("size", "billboard_level", "customer_category", name="uix_pricing_triple"),
    )

    op.create_table(
        "pricing_categories",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(50), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "shared_transactions",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("billboard_id", sa.Integer, nullable=False),
        sa.Column("beneficiary", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["billboard_id"], ["billboards.ID"]),
        sa.CheckConstraint("type IN ('rental_income','capital_deduction')", name="ck_shared_tx_type"),
    )
    op.create_index("ix_shared_tx_billboard", "shared_transactions", ["billboard_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_shared_tx_billboard", table_name="shared_transactions")
    op.drop_table("shared_transactions")
    op.drop_table("pricing_categories")
    op.drop_table("pricing")
    op.drop_index("ix_contracts_End Date", table_name="contracts")
    op.drop_table("contracts")
    op.drop_table("sizes")
    op.drop_index("ix_billboards_partnership", table_name="billboards")
    op.drop_index("ix_billboards_Contract_Number", table_name="billboards")
    op.drop_index("ix_billboards_ID", table_name="billboards")
    op.drop_table("billboards")
