"""Tag Registry — tests for create/destroy orchestration over in-memory backends.

Tests cover:
    - Create/destroy scenario with deposit 10 and balance 100
    - Failure paths leave balance, store, counter, and events untouched
    - Indices advance by exactly one and are never reused after destruction
    - Overflow and late failures release the reservation (scoped rollback)
    - Deposit changes only affect tags created afterwards
    - Transitions are serialized under concurrent callers
    - Event delivery failures never fail a committed transition
    - A failing compensation step never masks the error that triggered it
"""

import asyncio

import pytest

from tag_registry.core.domain_types import (
    AccountId, MAX_TAG_INDEX, Tag, TagCreated, TagDestroyed, TagIndex,
)
from tag_registry.core.errors import (
    InsufficientFundsError, InvalidTagError, NotAllowedError,
    StorageOverflowError, TagNameTooLongError,
)
from tag_registry.infrastructure.memory_backends import (
    InMemoryIndexCounter, InMemoryLedger, InMemoryTagStore,
)

ALICE = AccountId("alice")
BOB = AccountId("bob")


# ─── Scenarios ───────────────────────────────────────────────────

async def test_create_and_destroy_tag(registry, ledger, store, counter, events):
    index, tag = await registry.create_tag(ALICE, b"ABC")

    assert index == 0
    assert tag == Tag(name=b"ABC", owner=ALICE, deposit=10)
    assert await store.get(TagIndex(0)) == tag
    assert ledger.free_balance(ALICE) == 90
    assert ledger.reserved_balance(ALICE) == 10
    assert counter.value == 1
    assert events.last == TagCreated(index=0, who=ALICE, deposit=10)

    destroyed = await registry.destroy_tag(ALICE, TagIndex(0))

    assert destroyed == tag
    assert await store.get(TagIndex(0)) is None
    assert ledger.free_balance(ALICE) == 100
    assert ledger.reserved_balance(ALICE) == 0
    assert events.last == TagDestroyed(index=0, who=ALICE)


async def test_insufficient_funds_changes_nothing(registry, ledger, store, counter, events):
    ledger.set_free_balance(ALICE, 5)

    with pytest.raises(InsufficientFundsError):
        await registry.create_tag(ALICE, b"ABC")

    assert ledger.free_balance(ALICE) == 5
    assert ledger.reserved_balance(ALICE) == 0
    assert counter.value == 0
    assert store.tags == {}
    assert events.last is None


async def test_unknown_account_has_no_funds(registry, counter):
    with pytest.raises(InsufficientFundsError):
        await registry.create_tag(AccountId("carol"), b"ABC")
    assert counter.value == 0


async def test_destroy_never_allocated_index(registry):
    with pytest.raises(InvalidTagError):
        await registry.destroy_tag(ALICE, TagIndex(99))


async def test_destroy_twice_fails_second_time(registry, ledger):
    index, _ = await registry.create_tag(ALICE, b"ABC")
    await registry.destroy_tag(ALICE, index)

    with pytest.raises(InvalidTagError):
        await registry.destroy_tag(ALICE, index)
    assert ledger.free_balance(ALICE) == 100
    assert ledger.reserved_balance(ALICE) == 0


async def test_unauthorized_destroy_changes_nothing(registry, ledger, store, events):
    index, tag = await registry.create_tag(ALICE, b"ABC")
    created_event = events.last

    with pytest.raises(NotAllowedError):
        await registry.destroy_tag(BOB, index)

    assert await store.get(index) == tag
    assert ledger.free_balance(ALICE) == 90
    assert ledger.reserved_balance(ALICE) == 10
    assert ledger.free_balance(BOB) == 100
    assert ledger.reserved_balance(BOB) == 0
    assert events.last == created_event


# ─── Index allocation ────────────────────────────────────────────

async def test_each_creation_advances_counter_by_one(registry, counter):
    for expected in range(5):
        before = counter.value
        index, _ = await registry.create_tag(ALICE, b"T")
        assert index == expected == before
        assert counter.value == before + 1


async def test_destroyed_index_is_never_reused(registry):
    first, _ = await registry.create_tag(ALICE, b"A")
    await registry.destroy_tag(ALICE, first)

    second, _ = await registry.create_tag(ALICE, b"A")
    third, _ = await registry.create_tag(BOB, b"A")

    assert (first, second, third) == (0, 1, 2)
    assert await registry.next_index() == 3


async def test_duplicate_names_get_distinct_indices(registry, store):
    a, _ = await registry.create_tag(ALICE, b"same")
    b, _ = await registry.create_tag(BOB, b"same")
    assert a != b
    assert (await store.get(a)).owner == ALICE
    assert (await store.get(b)).owner == BOB


async def test_failed_creation_does_not_consume_index(registry, ledger):
    ledger.set_free_balance(BOB, 0)
    with pytest.raises(InsufficientFundsError):
        await registry.create_tag(BOB, b"X")

    index, _ = await registry.create_tag(ALICE, b"X")
    assert index == 0


# ─── Name validation ─────────────────────────────────────────────

async def test_name_too_long_rejected_before_reserve(registry, ledger, counter):
    with pytest.raises(TagNameTooLongError):
        await registry.create_tag(ALICE, b"123456789")
    assert ledger.free_balance(ALICE) == 100
    assert counter.value == 0


async def test_name_limit_read_at_call_time(registry, registry_config):
    registry_config["name_limit"] = 2
    with pytest.raises(TagNameTooLongError):
        await registry.create_tag(ALICE, b"ABC")
    registry_config["name_limit"] = 3
    index, _ = await registry.create_tag(ALICE, b"ABC")
    assert index == 0


# ─── Deposit configuration ───────────────────────────────────────

async def test_deposit_change_only_affects_new_tags(registry, registry_config, ledger):
    first, _ = await registry.create_tag(ALICE, b"old")
    registry_config["deposit"] = 25
    second, tag = await registry.create_tag(ALICE, b"new")

    assert tag.deposit == 25
    assert ledger.reserved_balance(ALICE) == 35

    released = await registry.destroy_tag(ALICE, first)
    assert released.deposit == 10
    assert ledger.reserved_balance(ALICE) == 25
    assert ledger.free_balance(ALICE) == 75


async def test_zero_deposit_needs_no_account(registry, registry_config):
    registry_config["deposit"] = 0
    index, tag = await registry.create_tag(AccountId("carol"), b"free")
    assert tag.deposit == 0
    await registry.destroy_tag(AccountId("carol"), index)


async def test_exact_balance_is_enough(registry, ledger):
    ledger.set_free_balance(ALICE, 10)
    await registry.create_tag(ALICE, b"ABC")
    assert ledger.free_balance(ALICE) == 0
    assert ledger.reserved_balance(ALICE) == 10


# ─── Scoped rollback ─────────────────────────────────────────────

async def test_overflow_releases_reservation(registry, ledger, store, counter, events):
    counter.value = MAX_TAG_INDEX

    with pytest.raises(StorageOverflowError):
        await registry.create_tag(ALICE, b"ABC")

    assert ledger.free_balance(ALICE) == 100
    assert ledger.reserved_balance(ALICE) == 0
    assert counter.value == MAX_TAG_INDEX
    assert store.tags == {}
    assert events.last is None


async def test_last_index_before_ceiling_is_usable(registry, counter):
    counter.value = MAX_TAG_INDEX - 1
    index, _ = await registry.create_tag(ALICE, b"last")
    assert index == MAX_TAG_INDEX - 1
    with pytest.raises(StorageOverflowError):
        await registry.create_tag(ALICE, b"one-more")


class _FailingCounter(InMemoryIndexCounter):
    async def store(self, value: int) -> None:
        raise RuntimeError("counter write failed")


async def test_failure_after_insert_rolls_back_everything(make_registry, journal, ledger, store):
    registry = make_registry(counter=_FailingCounter(journal))

    with pytest.raises(RuntimeError):
        await registry.create_tag(ALICE, b"ABC")

    assert store.tags == {}
    assert ledger.free_balance(ALICE) == 100
    assert ledger.reserved_balance(ALICE) == 0


class _FailingRemoveStore(InMemoryTagStore):
    async def remove(self, index):
        raise RuntimeError("remove failed")


async def test_failed_removal_keeps_deposit_reserved(make_registry, journal, ledger):
    failing_store = _FailingRemoveStore(journal)
    registry = make_registry(store=failing_store)
    index, tag = await registry.create_tag(ALICE, b"ABC")

    with pytest.raises(RuntimeError):
        await registry.destroy_tag(ALICE, index)

    assert await failing_store.get(index) == tag
    assert ledger.free_balance(ALICE) == 90
    assert ledger.reserved_balance(ALICE) == 10


class _ReserveOnceLedger(InMemoryLedger):
    def __init__(self, balances):
        super().__init__(balances)
        self.reserve_calls = 0

    async def reserve(self, account, amount):
        self.reserve_calls += 1
        if self.reserve_calls > 1:
            raise ConnectionError("ledger unavailable")
        await super().reserve(account, amount)


async def test_failed_re_reserve_keeps_original_error(make_registry, journal):
    flaky = _ReserveOnceLedger({"alice": 100})
    registry = make_registry(ledger=flaky, store=_FailingRemoveStore(journal))
    index, _ = await registry.create_tag(ALICE, b"ABC")

    with pytest.raises(RuntimeError, match="remove failed"):
        await registry.destroy_tag(ALICE, index)

    assert flaky.reserve_calls == 2


class _FailingReleaseLedger(InMemoryLedger):
    async def release(self, account, amount):
        raise ConnectionError("ledger unavailable")


async def test_failed_release_keeps_original_error(make_registry, journal, store):
    registry = make_registry(
        ledger=_FailingReleaseLedger({"alice": 100}),
        counter=_FailingCounter(journal),
    )

    with pytest.raises(RuntimeError, match="counter write failed"):
        await registry.create_tag(ALICE, b"ABC")

    assert store.tags == {}


# ─── Events ──────────────────────────────────────────────────────

class _BrokenSink:
    async def publish(self, event):
        raise ConnectionError("sink down")


async def test_event_failure_does_not_fail_transition(make_registry, store, ledger):
    registry = make_registry(events=_BrokenSink())

    index, tag = await registry.create_tag(ALICE, b"ABC")
    assert await store.get(index) == tag

    await registry.destroy_tag(ALICE, index)
    assert await store.get(index) is None
    assert ledger.free_balance(ALICE) == 100


async def test_events_recorded_in_order(registry, events):
    await registry.create_tag(ALICE, b"A")
    await registry.create_tag(BOB, b"B")
    await registry.destroy_tag(ALICE, TagIndex(0))

    recent = events.recent()
    assert [e["type"] for e in recent] == ["tag_created", "tag_created", "tag_destroyed"]
    assert [e["sequence"] for e in recent] == [0, 1, 2]
    assert recent[1] == {
        "sequence": 1, "type": "tag_created", "index": 1, "who": "bob", "deposit": 10,
    }


# ─── Reads ───────────────────────────────────────────────────────

async def test_tags_owned_by(registry):
    await registry.create_tag(ALICE, b"A")
    await registry.create_tag(BOB, b"B")
    await registry.create_tag(ALICE, b"C")

    owned = await registry.tags_owned_by(ALICE)
    assert [i for i, _ in owned] == [0, 2]
    assert [t.name for _, t in owned] == [b"A", b"C"]


# ─── Serialization ───────────────────────────────────────────────

class _YieldingCounter(InMemoryIndexCounter):
    """Suspends between read and write so unserialized callers would interleave."""
    async def load(self) -> int:
        value = self.value
        await asyncio.sleep(0)
        return value


async def test_concurrent_creations_get_unique_indices(make_registry, journal, ledger):
    yielding = _YieldingCounter(journal)
    registry = make_registry(counter=yielding)
    callers = [AccountId(f"user-{n}") for n in range(20)]
    for caller in callers:
        ledger.set_free_balance(caller, 10)

    results = await asyncio.gather(
        *(registry.create_tag(caller, b"race") for caller in callers),
    )

    indices = sorted(index for index, _ in results)
    assert indices == list(range(20))
    assert yielding.value == 20


async def test_registries_sharing_a_lock_serialize(make_registry, journal, ledger):
    lock = asyncio.Lock()
    yielding = _YieldingCounter(journal)
    first = make_registry(counter=yielding, lock=lock)
    second = make_registry(counter=yielding, lock=lock)

    results = await asyncio.gather(
        first.create_tag(ALICE, b"one"), second.create_tag(BOB, b"two"),
    )
    assert sorted(i for i, _ in results) == [0, 1]
