"""Boundary Protocols — contracts between the registry core and its collaborators.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by infrastructure/ via dependency injection

Contracts:
    - Ledger.reserve deducts from the spendable (free) balance or raises
      InsufficientFundsError with nothing deducted
    - Ledger.release never fails; it restores up to `amount` of reserved balance
    - TagStore.get returns None for absent indices (absence is not an error here)
    - TagStore.remove is a no-op for absent indices
    - EventSink.publish is fire-and-forget and only called after commit

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO, the pure rules they feed are sync
"""

from typing import Protocol

from tag_registry.core.domain_types import (
    AccountId, Balance, Tag, TagEvent, TagIndex,
)


class Ledger(Protocol):
    """Contract for balance reservation — implemented by shell."""
    async def reserve(self, account: AccountId, amount: Balance) -> None: ...
    async def release(self, account: AccountId, amount: Balance) -> None: ...


class TagStore(Protocol):
    """Contract for index -> Tag persistence — implemented by shell."""
    async def insert(self, index: TagIndex, tag: Tag) -> None: ...
    async def get(self, index: TagIndex) -> Tag | None: ...
    async def remove(self, index: TagIndex) -> None: ...
    async def list_by_owner(self, owner: AccountId) -> list[tuple[TagIndex, Tag]]: ...


class IndexCounter(Protocol):
    """Contract for persisting the allocator value between transitions."""
    async def load(self) -> int: ...
    async def store(self, value: int) -> None: ...


class TransactionScope(Protocol):
    """Contract for making one transition's writes visible (or discarding them)."""
    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...


class EventSink(Protocol):
    """Contract for the notification sink — implemented by shell."""
    async def publish(self, event: TagEvent) -> None: ...
