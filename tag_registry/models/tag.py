"""Tag ORM — persists one live tag keyed by its allocated index.

Invariants:
    - tag_index is assigned by the registry counter, never autoincremented by the DB
    - owner and deposit are written once at creation and never updated
    - A destroyed tag's row is deleted; the index is not reused

Design Decisions:
    - name stored as raw bytes: the registry treats it as opaque
    - owner indexed: backs GET /tags?owner=
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column

from tag_registry.db.base import Base
from tag_registry.db.types import UnsignedBigInteger


class TagRecord(Base):
    """A live tag row."""
    __tablename__ = "tags"

    tag_index: Mapped[int] = mapped_column(
        UnsignedBigInteger, primary_key=True, autoincrement=False,
    )
    name: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    owner: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    deposit: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
