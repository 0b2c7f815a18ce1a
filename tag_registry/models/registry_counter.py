"""Registry Counter ORM — named monotonic counters (currently only `tag_index`).

Invariants:
    - value only ever increases
    - A missing row reads as 0

Design Decisions:
    - Row per counter instead of a sequence: the value must roll back with the
      transition that consumed it, and sequences are non-transactional
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from tag_registry.db.base import Base
from tag_registry.db.types import UnsignedBigInteger

TAG_INDEX_COUNTER = "tag_index"


class RegistryCounter(Base):
    __tablename__ = "registry_counters"

    name: Mapped[str] = mapped_column(String(32), primary_key=True)
    value: Mapped[int] = mapped_column(UnsignedBigInteger, nullable=False, default=0)
