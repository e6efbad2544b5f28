"""create visits table

Revision ID: 004
Revises: 003
Create Date: 2026-03-04 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_VISIT_CLAUSE = "status IN ('pending_owner', 'pending_client', 'scheduled')"


def upgrade() -> None:
    op.create_table(
        "visits",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("property_id", sa.Integer(), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("requested_date_time", sa.DateTime(), nullable=False),
        sa.Column("owner_proposed_date_time", sa.DateTime(), nullable=True),
        sa.Column("client_proposed_date_time", sa.DateTime(), nullable=True),
        sa.Column("scheduled_date_time", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="pending_owner"),
        sa.Column("last_action_by", sa.String(16), nullable=True),
        sa.Column("client_message", sa.Text(), nullable=True),
        sa.Column("owner_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"]),
        sa.ForeignKeyConstraint(["client_id"], ["users.id"]),
        sa.CheckConstraint(
            "status IN ('pending_owner', 'pending_client', 'scheduled', "
            "'completed', 'declined', 'cancelled')",
            name="ck_visits_status",
        ),
        sa.CheckConstraint(
            "status NOT IN ('scheduled', 'completed') OR scheduled_date_time IS NOT NULL",
            name="ck_visits_scheduled_has_date",
        ),
    )
    op.create_index("ix_visits_id", "visits", ["id"], unique=False)
    op.create_index("ix_visits_property_id", "visits", ["property_id"], unique=False)
    op.create_index("ix_visits_client_id", "visits", ["client_id"], unique=False)

    # At most one active visit per client and property.
    # Partial indexes are supported by both SQLite and PostgreSQL.
    op.create_index(
        "uq_visits_active_client_property",
        "visits",
        ["client_id", "property_id"],
        unique=True,
        sqlite_where=sa.text(ACTIVE_VISIT_CLAUSE),
        postgresql_where=sa.text(ACTIVE_VISIT_CLAUSE),
    )


def downgrade() -> None:
    op.drop_index("uq_visits_active_client_property", table_name="visits")
    op.drop_index("ix_visits_client_id", table_name="visits")
    op.drop_index("ix_visits_property_id", table_name="visits")
    op.drop_index("ix_visits_id", table_name="visits")
    op.drop_table("visits")
