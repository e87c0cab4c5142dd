"""external portal tokens

Revision ID: 0002_external_portal_tokens
Revises: 0001_initial
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "0002_external_portal_tokens"
down_revision = "0001_initial"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "external_portal_tokens",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("portal_name", sa.String(length=120), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_external_portal_tokens_portal_name", "external_portal_tokens", ["portal_name"])
    op.create_index("ix_external_portal_tokens_token_hash", "external_portal_tokens", ["token_hash"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_external_portal_tokens_token_hash", table_name="external_portal_tokens")
    op.drop_index("ix_external_portal_tokens_portal_name", table_name="external_portal_tokens")
    op.drop_table("external_portal_tokens")
