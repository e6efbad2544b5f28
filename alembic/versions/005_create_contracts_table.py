"""create contracts table

Revision ID: 005
Revises: 004
Create Date: 2026-03-05 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BINDING_SALE_CLAUSE = "kind = 'sale' AND status IN ('pending_signatures', 'active')"


def upgrade() -> None:
    op.create_table(
        "contracts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("property_id", sa.Integer(), nullable=False),
        sa.Column("owner_user_id", sa.Integer(), nullable=False),
        sa.Column("counterparty_user_id", sa.Integer(), nullable=False),
        sa.Column("created_by_id", sa.Integer(), nullable=False),
        sa.Column("kind", sa.String(16), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="pending_signatures"),
        sa.Column("contract_text", sa.Text(), nullable=False),
        sa.Column("owner_signed_at", sa.DateTime(), nullable=True),
        sa.Column("owner_signature_image", sa.Text(), nullable=True),
        sa.Column("counterparty_signed_at", sa.DateTime(), nullable=True),
        sa.Column("counterparty_signature_image", sa.Text(), nullable=True),
        sa.Column("owner_confirmed_at", sa.DateTime(), nullable=True),
        sa.Column("counterparty_confirmed_at", sa.DateTime(), nullable=True),
        sa.Column("activated_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"]),
        sa.ForeignKeyConstraint(["owner_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["counterparty_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"]),
        sa.CheckConstraint("amount > 0", name="ck_contracts_amount_positive"),
        sa.CheckConstraint("kind IN ('rental', 'sale')", name="ck_contracts_kind"),
        sa.CheckConstraint(
            "status IN ('pending_signatures', 'active', 'cancelled')", name="ck_contracts_status"
        ),
        sa.CheckConstraint(
            "owner_user_id <> counterparty_user_id", name="ck_contracts_distinct_parties"
        ),
        sa.CheckConstraint(
            "(kind = 'rental' AND end_date IS NOT NULL AND end_date > start_date) "
            "OR (kind = 'sale' AND end_date IS NULL)",
            name="ck_contracts_dates",
        ),
        sa.CheckConstraint(
            "status <> 'active' OR "
            "(owner_confirmed_at IS NOT NULL AND counterparty_confirmed_at IS NOT NULL)",
            name="ck_contracts_active_fully_confirmed",
        ),
    )
    op.create_index("ix_contracts_id", "contracts", ["id"], unique=False)
    op.create_index("ix_contracts_property_id", "contracts", ["property_id"], unique=False)
    op.create_index("ix_contracts_owner_user_id", "contracts", ["owner_user_id"], unique=False)
    op.create_index(
        "ix_contracts_counterparty_user_id", "contracts", ["counterparty_user_id"], unique=False
    )

    # At most one pending or active sale per property
    op.create_index(
        "uq_contracts_binding_sale_property",
        "contracts",
        ["property_id"],
        unique=True,
        sqlite_where=sa.text(BINDING_SALE_CLAUSE),
        postgresql_where=sa.text(BINDING_SALE_CLAUSE),
    )


def downgrade() -> None:
    op.drop_index("uq_contracts_binding_sale_property", table_name="contracts")
    op.drop_index("ix_contracts_counterparty_user_id", table_name="contracts")
    op.drop_index("ix_contracts_owner_user_id", table_name="contracts")
    op.drop_index("ix_contracts_property_id", table_name="contracts")
    op.drop_index("ix_contracts_id", table_name="contracts")
    op.drop_table("contracts")
