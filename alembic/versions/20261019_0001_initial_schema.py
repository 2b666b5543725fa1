"""initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(20, 8)


def _timestamps(updated: bool = True):
    cols = [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        )
    ]
    if updated:
        cols.append(
            sa.Column(
                "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
            )
        )
    return cols


def _party_columns():
    return [
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, index=True),
        sa.Column("email", sa.String(255), nullable=False, server_default=""),
        sa.Column("phone", sa.String(64), nullable=False, server_default=""),
        sa.Column("address", sa.String(512), nullable=False, server_default=""),
        sa.Column("city", sa.String(128)),
        sa.Column("postal_code", sa.String(32)),
        sa.Column("country", sa.String(128), nullable=False, server_default=""),
        sa.Column("tax_id", sa.String(64)),
        sa.Column("website", sa.String(255)),
        sa.Column("status", sa.String(16), nullable=False, server_default="actif"),
        sa.Column("last_order_date", sa.Date()),
        sa.Column("contacts", sa.JSON(), nullable=False),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("name", sa.String(255)),
        *_timestamps(updated=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(64), nullable=False),
    )
    op.create_index("ix_roles_name", "roles", ["name"], unique=True)

    op.create_table(
        "user_roles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("user_id", "role_id", name="uq_user_role"),
    )

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("color", sa.String(16)),
        sa.Column("icon", sa.String(64)),
        sa.Column("report_group", sa.String(32), nullable=False, server_default="operating"),
        *_timestamps(updated=False),
        sa.UniqueConstraint("name", "type", name="uq_category_name_type"),
    )
    op.create_index("ix_categories_type", "categories", ["type"])

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(64), nullable=False, unique=True),
        sa.Column("color", sa.String(16)),
    )

    op.create_table(
        "clients",
        *_party_columns(),
        sa.Column("total_sales", MONEY, nullable=False, server_default="0"),
        sa.Column("outstanding_balance", MONEY, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_table(
        "suppliers",
        *_party_columns(),
        sa.Column("category", sa.String(128), nullable=False, server_default=""),
        sa.Column("total_purchases", MONEY, nullable=False, server_default="0"),
        sa.Column("outstanding_payable", MONEY, nullable=False, server_default="0"),
        *_timestamps(),
    )
    for table, fk in (("client_notes", "clients"), ("supplier_notes", "suppliers")):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                f"{fk[:-1]}_id",
                sa.Integer(),
                sa.ForeignKey(f"{fk}.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("created_by", sa.String(255), nullable=False),
            *_timestamps(updated=False),
        )

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="VALIDEE"),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("reference", sa.String(128)),
        sa.Column("currency", sa.String(8), nullable=False, server_default="XOF"),
        sa.Column("notes", sa.Text()),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="SET NULL")),
        sa.Column("supplier_id", sa.Integer(), sa.ForeignKey("suppliers.id", ondelete="SET NULL")),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_transactions_id", "transactions", ["id"])
    op.create_index("ix_transactions_type", "transactions", ["type"])
    op.create_index("ix_transactions_date", "transactions", ["date"])
    op.create_index("ix_transactions_status", "transactions", ["status"])
    op.create_index("ix_transactions_client_id", "transactions", ["client_id"])
    op.create_index("ix_transactions_supplier_id", "transactions", ["supplier_id"])

    op.create_table(
        "transaction_tags",
        sa.Column(
            "transaction_id",
            sa.Integer(),
            sa.ForeignKey("transactions.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("tag_id", sa.Integer(), sa.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "attachments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "transaction_id",
            sa.Integer(),
            sa.ForeignKey("transactions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_type", sa.String(128), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("storage_path", sa.String(512), nullable=False),
        sa.Column(
            "upload_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index("ix_attachments_transaction_id", "attachments", ["transaction_id"])

    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("language", sa.String(8), nullable=False, server_default="fr"),
        sa.Column("date_format", sa.String(32), nullable=False, server_default="DD/MM/YYYY"),
        sa.Column("primary_currency", sa.String(8), nullable=False, server_default="XOF"),
        sa.Column("secondary_currencies", sa.JSON(), nullable=False),
        sa.Column("show_currency_symbol", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("share_capital", MONEY, nullable=False, server_default="0"),
        sa.Column("vat_rate", sa.Numeric(5, 2), nullable=False, server_default="18"),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    )


def downgrade():
    for table in (
        "app_settings",
        "attachments",
        "transaction_tags",
        "transactions",
        "supplier_notes",
        "client_notes",
        "suppliers",
        "clients",
        "tags",
        "categories",
        "user_roles",
        "roles",
        "users",
    ):
        op.drop_table(table)
