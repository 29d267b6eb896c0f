"""Initial schema: titles

Revision ID: 0001
Revises: None
Create Date: 2026-10-19 00:00:00
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None


def _table_exists(name: str) -> bool:
    """Check whether a table already exists in the database."""
    conn = op.get_bind()
    result = conn.execute(
        sa.text("SELECT 1 FROM sqlite_master WHERE type='table' AND name=:n"),
        {"n": name},
    )
    return result.fetchone() is not None


def upgrade() -> None:
    # Guarded so it is safe against a DB created by SQLModel.metadata.create_all()
    if not _table_exists("titles"):
        op.create_table(
            "titles",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("image_url", sa.String(), nullable=False, server_default=""),
            sa.Column("barcode", sa.String(), unique=True, nullable=False),
            sa.Column("coordinate", sa.String(), nullable=False),
            sa.Column("copies", sa.Integer(), nullable=False, server_default="1"),
            sa.Column("status", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("status_changed_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_titles_barcode", "titles", ["barcode"], unique=True)
        op.create_index("ix_titles_coordinate", "titles", ["coordinate"])


def downgrade() -> None:
    op.drop_index("ix_titles_coordinate", table_name="titles")
    op.drop_index("ix_titles_barcode", table_name="titles")
    op.drop_table("titles")
