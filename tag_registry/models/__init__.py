"""ORM Models — SQLAlchemy declarative models for registry state.

Invariants:
    - All models inherit from Base (db/base.py)
    - Tag rows are keyed by the allocated index, never by content

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all / autogenerate
"""

from tag_registry.models.account import Account  # noqa: F401
from tag_registry.models.tag import TagRecord  # noqa: F401
from tag_registry.models.registry_counter import RegistryCounter  # noqa: F401
