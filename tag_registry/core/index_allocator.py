"""Index Allocator — owned counter that hands out each tag index exactly once.

Invariants:
    - value is the next index to assign; starts at 0
    - advance() increments by exactly one, or raises and leaves value untouched
    - value never decreases, so a destroyed index is never handed out again

Design Decisions:
    - Explicitly owned dataclass instead of ambient global: the service loads it,
      mutates it, and persists it within one transition
    - peek/advance split: the overflow check and the mutation happen in one call
"""

from dataclasses import dataclass

from tag_registry.core.domain_types import MAX_TAG_INDEX, TagIndex
from tag_registry.core.errors import StorageOverflowError


@dataclass
class IndexAllocator:
    """Monotonic u64 counter. Pure — no IO."""

    value: int = 0
    max_value: int = MAX_TAG_INDEX

    def __post_init__(self) -> None:
        if not 0 <= self.value <= self.max_value:
            raise ValueError(
                f"counter value {self.value} outside 0..{self.max_value}",
            )

    def peek(self) -> TagIndex:
        return TagIndex(self.value)

    def advance(self) -> None:
        if self.value >= self.max_value:
            raise StorageOverflowError(self.value)
        self.value += 1
