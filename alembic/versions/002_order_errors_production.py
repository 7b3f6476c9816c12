"""Add order error log, production board columns; cascade order-scoped vendor approvals

Revision ID: 002_order_errors_production
Revises: 001_initial
Create Date: 2026-10-17
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002_order_errors_production"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# 001 builds from the current models, so a fresh database already has these
def _order_columns() -> list[sa.Column]:
    return [
        sa.Column("current_stage", sa.String(50), nullable=True),
        sa.Column("stages_completed", sa.JSON(), nullable=True),
        sa.Column("stage_data", sa.JSON(), nullable=True),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    existing = {c["name"] for c in inspector.get_columns("orders")}
    for column in _order_columns():
        if column.name not in existing:
            op.add_column("orders", column)

    if not inspector.has_table("order_errors"):
        op.create_table(
            "order_errors",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="SET NULL")),
            sa.Column("error_date", sa.DateTime(), nullable=False),
            sa.Column("project_number", sa.String(100)),
            sa.Column("error_type", sa.String(30), nullable=False),
            sa.Column("client_name", sa.String(255), nullable=False),
            sa.Column("vendor_name", sa.String(255)),
            sa.Column("responsible_party", sa.String(20), nullable=False),
            sa.Column("resolution", sa.String(30), nullable=False),
            sa.Column("cost_to_company", sa.Numeric(12, 2), server_default="0"),
            sa.Column("production_rep", sa.String(255)),
            sa.Column("order_rep", sa.String(255)),
            sa.Column("client_rep", sa.String(255)),
            sa.Column("additional_notes", sa.Text()),
            sa.Column("is_resolved", sa.Boolean(), server_default=sa.false()),
            sa.Column("resolved_at", sa.DateTime()),
            sa.Column("resolved_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
            sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
            sa.Column("created_at", sa.DateTime()),
            sa.Column("updated_at", sa.DateTime()),
        )
        op.create_index("ix_order_errors_order", "order_errors", ["order_id"])
        op.create_index("ix_order_errors_type", "order_errors", ["error_type"])
        op.create_index("ix_order_errors_date", "order_errors", ["error_date"])

    # SQLite deployments are dev-only and rebuilt from 001
    if bind.dialect.name == "postgresql":
        op.drop_constraint("vendor_approval_requests_order_id_fkey", "vendor_approval_requests", type_="foreignkey")
        op.create_foreign_key(
            "vendor_approval_requests_order_id_fkey",
            "vendor_approval_requests",
            "orders",
            ["order_id"],
            ["id"],
            ondelete="CASCADE",
        )


def downgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.drop_constraint("vendor_approval_requests_order_id_fkey", "vendor_approval_requests", type_="foreignkey")
        op.create_foreign_key(
            "vendor_approval_requests_order_id_fkey",
            "vendor_approval_requests",
            "orders",
            ["order_id"],
            ["id"],
            ondelete="SET NULL",
        )
    op.drop_index("ix_order_errors_date", table_name="order_errors")
    op.drop_index("ix_order_errors_type", table_name="order_errors")
    op.drop_index("ix_order_errors_order", table_name="order_errors")
    op.drop_table("order_errors")
    for column in reversed(_order_columns()):
        op.drop_column("orders", column.name)
