"""SQL Backends — AsyncSession-backed Ledger, TagStore, IndexCounter, and TransactionScope.

Invariants:
    - All four share ONE AsyncSession: a transition's reserve, insert, and counter
      write commit together or roll back together
    - Writes are flushed, never committed, by the repositories; SqlTransaction commits
    - SqlLedger locks the account row and SqlIndexCounter.load() the counter row
      (FOR UPDATE) where the dialect supports it
    - An account's free + reserved never exceeds MAX_BALANCE; release saturates at it

Design Decisions:
    - Repository classes over raw session use in services: the registry sees only
      the core Protocols (ADR: dependency arrows point inward)
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tag_registry.core.domain_types import (
    AccountId, Balance, MAX_BALANCE, Tag, TagIndex, TagName,
)
from tag_registry.core.errors import BalanceOverflowError, InsufficientFundsError
from tag_registry.models.account import Account
from tag_registry.models.registry_counter import RegistryCounter, TAG_INDEX_COUNTER
from tag_registry.models.tag import TagRecord

logger = logging.getLogger(__name__)


def _to_tag(record: TagRecord) -> Tag:
    return Tag(
        name=TagName(record.name),
        owner=AccountId(record.owner),
        deposit=Balance(record.deposit),
    )


def _account_for_update(account: AccountId):
    """Row-locking load; populate_existing refreshes a row already in the session."""
    return (
        select(Account)
        .where(Account.account_id == account)
        .with_for_update()
        .execution_options(populate_existing=True)
    )


class SqlLedger:
    """Free/reserved balances in the `accounts` table.

    Every write path loads the account row FOR UPDATE, so a concurrent
    reserve, release, or funding update on the same account waits for this
    transaction instead of overwriting its absolute free/reserved values.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_account(self, account: AccountId) -> Account | None:
        return await self.db.get(Account, account)

    async def _lock_account(self, account: AccountId) -> Account | None:
        result = await self.db.execute(_account_for_update(account))
        return result.scalar_one_or_none()

    async def set_free_balance(self, account: AccountId, amount: int) -> Account:
        row = await self._lock_account(account)
        reserved = row.reserved if row else 0
        if amount > MAX_BALANCE - reserved:
            raise BalanceOverflowError(account, amount, reserved)
        if row is None:
            row = Account(account_id=account, free=amount, reserved=0)
            self.db.add(row)
        else:
            row.free = amount
        await self.db.flush()
        return row

    async def reserve(self, account: AccountId, amount: Balance) -> None:
        if amount == 0:
            return
        row = await self._lock_account(account)
        if row is None or row.free < amount:
            raise InsufficientFundsError(account, amount)
        row.free -= amount
        row.reserved += amount
        await self.db.flush()

    async def release(self, account: AccountId, amount: Balance) -> None:
        row = await self._lock_account(account)
        if row is None:
            logger.warning(
                f"release for unknown account {account}",
                extra={"account": account},
            )
            return
        moved = min(amount, row.reserved)
        row.reserved -= moved
        row.free = min(row.free + moved, MAX_BALANCE - row.reserved)
        await self.db.flush()


class SqlTagStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(self, index: TagIndex, tag: Tag) -> None:
        await self.db.merge(TagRecord(
            tag_index=index, name=tag.name, owner=tag.owner,
            deposit=tag.deposit,
        ))
        await self.db.flush()

    async def get(self, index: TagIndex) -> Tag | None:
        record = await self.db.get(TagRecord, index)
        return _to_tag(record) if record else None

    async def remove(self, index: TagIndex) -> None:
        record = await self.db.get(TagRecord, index)
        if record is None:
            return
        await self.db.delete(record)
        await self.db.flush()

    async def list_by_owner(self, owner: AccountId) -> list[tuple[TagIndex, Tag]]:
        result = await self.db.execute(
            select(TagRecord)
            .where(TagRecord.owner == owner)
            .order_by(TagRecord.tag_index),
        )
        return [
            (TagIndex(r.tag_index), _to_tag(r)) for r in result.scalars().all()
        ]


class SqlIndexCounter:
    def __init__(self, db: AsyncSession, name: str = TAG_INDEX_COUNTER):
        self.db = db
        self.name = name

    async def load(self) -> int:
        result = await self.db.execute(
            select(RegistryCounter)
            .where(RegistryCounter.name == self.name)
            .with_for_update(),
        )
        row = result.scalar_one_or_none()
        return row.value if row else 0

    async def store(self, value: int) -> None:
        row = await self.db.get(RegistryCounter, self.name)
        if row is None:
            self.db.add(RegistryCounter(name=self.name, value=value))
        else:
            row.value = value
        await self.db.flush()


class SqlTransaction:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
