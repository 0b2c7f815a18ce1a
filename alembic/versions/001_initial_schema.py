"""Initial schema — accounts, tags, registry_counters.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

tags.tag_index and registry_counters.value hold u64 values shifted by -2**63
(see tag_registry/db/types.py), so the storage type is a plain signed BIGINT.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("account_id", sa.String(64), primary_key=True),
        sa.Column("free", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("reserved", sa.BigInteger, nullable=False, server_default="0"),
        sa.CheckConstraint("free >= 0", name="ck_accounts_free_non_negative"),
        sa.CheckConstraint("reserved >= 0", name="ck_accounts_reserved_non_negative"),
    )

    op.create_table(
        "tags",
        sa.Column("tag_index", sa.BigInteger, primary_key=True, autoincrement=False),
        sa.Column("name", sa.LargeBinary, nullable=False),
        sa.Column("owner", sa.String(64), nullable=False),
        sa.Column("deposit", sa.BigInteger, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_tags_owner", "tags", ["owner"])

    op.create_table(
        "registry_counters",
        sa.Column("name", sa.String(32), primary_key=True),
        sa.Column("value", sa.BigInteger, nullable=False),
    )


def downgrade() -> None:
    op.drop_table("registry_counters")
    op.drop_index("ix_tags_owner", table_name="tags")
    op.drop_table("tags")
    op.drop_table("accounts")
