"""In-Memory Backends — dict-based Ledger, TagStore, IndexCounter, and TransactionScope.

Invariants:
    - InMemoryLedger applies reserve/release immediately (it plays the external ledger,
      the registry compensates on failure instead of rolling it back)
    - Store and counter writes are journaled; rollback() undoes them in reverse order
    - commit() only forgets the journal: writes are already in place

Design Decisions:
    - Undo journal over staged copies: reads inside a transition see its own writes
      without a second lookup path
    - Used for embedding the registry without a database and for service tests
"""

from dataclasses import dataclass, field
from typing import Callable

from tag_registry.core.domain_types import AccountId, Balance, Tag, TagIndex
from tag_registry.core.errors import InsufficientFundsError


@dataclass
class AccountBalance:
    free: int = 0
    reserved: int = 0


class InMemoryLedger:
    """Free/reserved balances per account."""

    def __init__(self, balances: dict[str, int] | None = None):
        self.accounts: dict[str, AccountBalance] = {
            account: AccountBalance(free=free)
            for account, free in (balances or {}).items()
        }

    def set_free_balance(self, account: AccountId, amount: int) -> None:
        self.accounts.setdefault(account, AccountBalance()).free = amount

    def free_balance(self, account: AccountId) -> int:
        return self.accounts.get(account, AccountBalance()).free

    def reserved_balance(self, account: AccountId) -> int:
        return self.accounts.get(account, AccountBalance()).reserved

    async def reserve(self, account: AccountId, amount: Balance) -> None:
        balance = self.accounts.get(account)
        if balance is None:
            if amount == 0:
                return
            raise InsufficientFundsError(account, amount)
        if balance.free < amount:
            raise InsufficientFundsError(account, amount)
        balance.free -= amount
        balance.reserved += amount

    async def release(self, account: AccountId, amount: Balance) -> None:
        balance = self.accounts.get(account)
        if balance is None:
            return
        moved = min(amount, balance.reserved)
        balance.reserved -= moved
        balance.free += moved


@dataclass
class InMemoryJournal:
    """Undo log shared by the journaled backends of one registry."""
    undo: list[Callable[[], None]] = field(default_factory=list)

    def record(self, action: Callable[[], None]) -> None:
        self.undo.append(action)


class InMemoryTagStore:
    def __init__(self, journal: InMemoryJournal):
        self.tags: dict[int, Tag] = {}
        self._journal = journal

    async def insert(self, index: TagIndex, tag: Tag) -> None:
        previous = self.tags.get(index)
        self.tags[index] = tag
        self._journal.record(lambda: self._restore(index, previous))

    async def get(self, index: TagIndex) -> Tag | None:
        return self.tags.get(index)

    async def remove(self, index: TagIndex) -> None:
        previous = self.tags.pop(index, None)
        if previous is not None:
            self._journal.record(lambda: self._restore(index, previous))

    async def list_by_owner(self, owner: AccountId) -> list[tuple[TagIndex, Tag]]:
        return [
            (TagIndex(index), tag)
            for index, tag in sorted(self.tags.items())
            if tag.owner == owner
        ]

    def _restore(self, index: int, tag: Tag | None) -> None:
        if tag is None:
            self.tags.pop(index, None)
        else:
            self.tags[index] = tag


class InMemoryIndexCounter:
    def __init__(self, journal: InMemoryJournal, value: int = 0):
        self.value = value
        self._journal = journal

    async def load(self) -> int:
        return self.value

    async def store(self, value: int) -> None:
        previous = self.value
        self.value = value
        self._journal.record(lambda: setattr(self, "value", previous))


class InMemoryTransaction:
    def __init__(self, journal: InMemoryJournal):
        self._journal = journal

    async def commit(self) -> None:
        self._journal.undo.clear()

    async def rollback(self) -> None:
        while self._journal.undo:
            self._journal.undo.pop()()
