"""Add notification and privacy preferences to users.

Revision ID: 20260315000000
Revises: 20260301000000
Create Date: 2026-03-15

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20260315000000"
down_revision: Union[str, None] = "20260301000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "users",
        sa.Column("email_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.add_column(
        "users",
        sa.Column("push_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.add_column(
        "users",
        sa.Column("privacy_level", sa.String(length=16), nullable=False, server_default="public"),
    )


def downgrade() -> None:
    op.drop_column("users", "privacy_level")
    op.drop_column("users", "push_notifications")
    op.drop_column("users", "email_notifications")
