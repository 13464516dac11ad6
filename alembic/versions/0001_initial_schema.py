"""Initial schema — suppliers and PDF parsing templates

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from alembic import op

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# JSONB on Postgres, plain JSON elsewhere (matches app.models.base.JSONType)
JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    # ── suppliers ─────────────────────────────────────────────────────────────
    op.create_table(
        "suppliers",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("tax_id", sa.String(32), nullable=True, comment="CUIT / tax identifier"),
        sa.Column("email", sa.String(256), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    # ── pdf_parsing_templates ─────────────────────────────────────────────────
    op.create_table(
        "pdf_parsing_templates",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column(
            "supplier_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("suppliers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "active",
            sa.Boolean,
            nullable=False,
            server_default=sa.true(),
            comment="Inactive templates are never auto-selected",
        ),
        sa.Column(
            "detect_keywords",
            JSONType,
            nullable=False,
            comment="Case-insensitive substrings; any match selects the template",
        ),
        sa.Column("header_config", JSONType, nullable=False),
        sa.Column("products_config", JSONType, nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_pdf_parsing_templates_supplier_id", "pdf_parsing_templates", ["supplier_id"]
    )
    # Selection order: active templates, most recently updated first
    op.create_index(
        "ix_pdf_parsing_templates_active_updated",
        "pdf_parsing_templates",
        ["active", "updated_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_pdf_parsing_templates_active_updated", table_name="pdf_parsing_templates")
    op.drop_index("ix_pdf_parsing_templates_supplier_id", table_name="pdf_parsing_templates")
    op.drop_table("pdf_parsing_templates")
    op.drop_table("suppliers")
