"""Tag Registry — create_tag / destroy_tag orchestration over ledger, store, and counter.

Invariants:
    - create_tag: reserve -> allocate -> insert -> store counter -> commit -> TagCreated
    - destroy_tag: lookup -> ownership check -> release -> remove -> commit -> TagDestroyed
    - On success the counter has advanced by exactly one; on any failure it has not
    - Any failure after a successful reserve releases that reservation before re-raising
    - Events are published only after commit

Concurrency:
    - NOT safe under concurrent multi-writer execution. Ledger.reserve and the
      store/counter writes are separate calls with no cross-system lock, so two
      interleaved creations could both read the same counter value.
    - Transitions are serialized with one asyncio.Lock shared by every registry
      built over the same state (see api/dependencies.py). That covers a single
      process. Across processes the SQL backends lock the account row and then the
      counter row FOR UPDATE; the first write to an empty counter table can still race.

Design Decisions:
    - Pure checks (validate_tag_name, ensure_destroyable, IndexAllocator) live in core/;
      this class only orders the IO calls around them (ADR: impureim sandwich)
    - Deposit and name limit read through providers on every call: a config change
      applies to new tags only, stored tags keep the deposit they were created with
"""

import asyncio
import logging
from typing import Callable

from tag_registry.core.domain_types import (
    AccountId, Balance, Tag, TagCreated, TagDestroyed, TagEvent, TagIndex,
)
from tag_registry.core.enforce_tags import ensure_destroyable, validate_tag_name
from tag_registry.core.errors import TagRegistryError
from tag_registry.core.index_allocator import IndexAllocator
from tag_registry.core.repository_protocols import (
    EventSink, IndexCounter, Ledger, TagStore, TransactionScope,
)

logger = logging.getLogger(__name__)


class TagRegistry:
    """Deposit-backed tag registry. One transition at a time."""

    def __init__(
        self,
        *,
        ledger: Ledger,
        store: TagStore,
        counter: IndexCounter,
        transaction: TransactionScope,
        events: EventSink,
        deposit_amount: Callable[[], int],
        name_limit: Callable[[], int],
        lock: asyncio.Lock | None = None,
    ):
        self._ledger = ledger
        self._store = store
        self._counter = counter
        self._transaction = transaction
        self._events = events
        self._deposit_amount = deposit_amount
        self._name_limit = name_limit
        self._lock = lock or asyncio.Lock()

    async def create_tag(
        self, caller: AccountId, name: bytes,
    ) -> tuple[TagIndex, Tag]:
        """Reserve the configured deposit and store a new tag owned by caller."""
        tag_name = validate_tag_name(name, self._name_limit())

        async with self._lock:
            deposit = Balance(self._deposit_amount())
            try:
                await self._ledger.reserve(caller, deposit)
            except TagRegistryError as e:
                logger.warning(
                    f"create_tag rejected: {e.message}",
                    extra={"account": caller, "error_code": e.code},
                )
                raise

            try:
                allocator = IndexAllocator(await self._counter.load())
                index = allocator.peek()
                allocator.advance()
                tag = Tag(name=tag_name, owner=caller, deposit=deposit)
                await self._store.insert(index, tag)
                await self._counter.store(allocator.value)
                await self._transaction.commit()
            except Exception as e:
                await self._undo_reservation(caller, deposit)
                logger.warning(
                    f"create_tag aborted, reservation released: {e}",
                    extra={
                        "account": caller,
                        "error_code": getattr(e, "code", None),
                    },
                )
                raise

        logger.info(
            f"Tag {index} created",
            extra={"account": caller, "tag_index": index, "deposit": deposit},
        )
        await self._announce(TagCreated(index=index, who=caller, deposit=deposit))
        return index, tag

    async def destroy_tag(self, caller: AccountId, index: TagIndex) -> Tag:
        """Remove caller's tag at index and release its deposit."""
        async with self._lock:
            try:
                tag = ensure_destroyable(
                    await self._store.get(index), index, caller,
                )
            except TagRegistryError as e:
                logger.warning(
                    f"destroy_tag rejected: {e.message}",
                    extra={
                        "account": caller, "tag_index": index,
                        "error_code": e.code,
                    },
                )
                raise

            await self._ledger.release(tag.owner, tag.deposit)
            try:
                await self._store.remove(index)
                await self._transaction.commit()
            except Exception:
                await self._redo_reservation(tag)
                raise

        logger.info(
            f"Tag {index} destroyed",
            extra={"account": caller, "tag_index": index, "deposit": tag.deposit},
        )
        await self._announce(TagDestroyed(index=index, who=caller))
        return tag

    # ─── Reads (no lock: single statements, committed state only) ──

    async def get_tag(self, index: TagIndex) -> Tag | None:
        return await self._store.get(index)

    async def tags_owned_by(self, owner: AccountId) -> list[tuple[TagIndex, Tag]]:
        return await self._store.list_by_owner(owner)

    async def next_index(self) -> TagIndex:
        return IndexAllocator(await self._counter.load()).peek()

    # ─── Compensation ─────────────────────────────────────────────

    # After a failed SQL flush or commit the session needs rollback, so the
    # ledger call here can raise as well. It is logged, the rollback still
    # runs, and the caller re-raises the original error.

    async def _undo_reservation(self, caller: AccountId, deposit: Balance) -> None:
        """Release a reservation whose tag never got stored, then drop staged writes."""
        try:
            await self._ledger.release(caller, deposit)
        except Exception as e:
            logger.error(
                f"Releasing deposit after failed create_tag failed: {e}",
                extra={"account": caller, "deposit": deposit},
                exc_info=True,
            )
        finally:
            await self._transaction.rollback()

    async def _redo_reservation(self, tag: Tag) -> None:
        """Re-reserve a deposit released for a removal that did not commit."""
        try:
            await self._ledger.reserve(tag.owner, tag.deposit)
        except Exception as e:
            logger.error(
                f"Re-reserving deposit after failed destroy_tag failed: {e}",
                extra={"account": tag.owner, "deposit": tag.deposit},
                exc_info=True,
            )
        finally:
            await self._transaction.rollback()

    async def _announce(self, event: TagEvent) -> None:
        """Fire-and-forget: the transition has committed, delivery failures are logged only."""
        try:
            await self._events.publish(event)
        except Exception as e:
            logger.error(
                f"Event delivery failed for {event.kind.value}: {e}",
                extra={"event": event.kind.value, "tag_index": event.index},
                exc_info=True,
            )
