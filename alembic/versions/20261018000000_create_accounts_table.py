"""Create accounts table (local, Google and Facebook sign-in in one record).

Revision ID: 20261018000000
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20261018000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("method", sa.String(length=16), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=320), nullable=False, server_default=""),
        sa.Column("avatar_url", sa.String(length=2048), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="user"),
        sa.Column("local_email", sa.String(length=320), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("is_email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("otp_hash", sa.String(length=255), nullable=True),
        sa.Column("otp_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("google_id", sa.String(length=255), nullable=True),
        sa.Column("google_email", sa.String(length=320), nullable=True),
        sa.Column("facebook_id", sa.String(length=255), nullable=True),
        sa.Column("facebook_email", sa.String(length=320), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("local_email"),
        sa.UniqueConstraint("google_id"),
        sa.UniqueConstraint("facebook_id"),
        sa.CheckConstraint(
            "(method = 'local' AND password_hash IS NOT NULL"
            " AND google_id IS NULL AND facebook_id IS NULL)"
            " OR (method = 'google' AND google_id IS NOT NULL"
            " AND password_hash IS NULL AND facebook_id IS NULL)"
            " OR (method = 'facebook' AND facebook_id IS NOT NULL"
            " AND password_hash IS NULL AND google_id IS NULL)",
            name="ck_accounts_one_credential",
        ),
        sa.CheckConstraint("role IN ('user', 'admin')", name="ck_accounts_role"),
    )
    op.create_index(op.f("ix_accounts_email"), "accounts", ["email"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_accounts_email"), table_name="accounts")
    op.drop_table("accounts")
