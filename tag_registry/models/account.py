"""Account ORM — free and reserved balance per account (the SQL ledger).

Invariants:
    - free and reserved are non-negative
    - reserve moves free -> reserved; release moves reserved -> free
    - Total balance (free + reserved) is only changed by the operator funding endpoint

Design Decisions:
    - account_id is the external identity string, not a surrogate key
"""

from sqlalchemy import BigInteger, CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from tag_registry.db.base import Base


class Account(Base):
    """Balances held for one account."""
    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("free >= 0", name="ck_accounts_free_non_negative"),
        CheckConstraint("reserved >= 0", name="ck_accounts_reserved_non_negative"),
    )

    account_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    free: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    reserved: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
