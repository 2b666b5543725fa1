"""mobile payments and tax rules

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None

MONEY = sa.Numeric(20, 8)


def upgrade():
    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("reference", sa.String(128), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("currency", sa.String(8), nullable=False, server_default="XOF"),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="INITIATED"),
        sa.Column("direction", sa.String(16), nullable=False),
        sa.Column("provider", sa.String(32), nullable=False),
        sa.Column("phone_number", sa.String(32), nullable=False),
        sa.Column("country", sa.String(32), nullable=False),
        sa.Column("provider_transaction_id", sa.String(64)),
        sa.Column("provider_reference", sa.String(128)),
        sa.Column("redirect_url", sa.String(512)),
        sa.Column("refunded_amount", MONEY),
        sa.Column("failure_reason", sa.String(255)),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="SET NULL")),
        sa.Column(
            "supplier_id", sa.Integer(), sa.ForeignKey("suppliers.id", ondelete="SET NULL")
        ),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_payments_reference", "payments", ["reference"])
    op.create_index("ix_payments_status", "payments", ["status"])
    op.create_index("ix_payments_provider", "payments", ["provider"])
    op.create_index("ix_payments_client_id", "payments", ["client_id"])
    op.create_index("ix_payments_supplier_id", "payments", ["supplier_id"])

    op.create_table(
        "tax_rules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tax_type", sa.String(32), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("rate", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("filing_frequency", sa.String(16), nullable=False, server_default="MONTHLY"),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notes", sa.Text()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.UniqueConstraint("name", name="uq_tax_rule_name"),
    )
    op.create_index("ix_tax_rules_tax_type", "tax_rules", ["tax_type"])


def downgrade():
    op.drop_table("tax_rules")
    op.drop_table("payments")
