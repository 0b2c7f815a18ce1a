"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - AccountId is an opaque, already-authenticated identity (compared for equality only)
    - TagIndex is an unsigned 64-bit value: 0 <= index <= MAX_TAG_INDEX
    - Balance amounts are non-negative integers (smallest currency unit);
      an account's free + reserved never exceeds MAX_BALANCE
    - Tag and event records are frozen: a tag's owner and deposit never change

Design Decisions:
    - NewType over wrapper classes: zero runtime cost, full type-checker support
    - Tag name kept as bytes: the registry never interprets it, only bounds its length
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

AccountId = NewType("AccountId", str)
TagIndex = NewType("TagIndex", int)


# ─── Value Types ─────────────────────────────────────────────────

Balance = NewType("Balance", int)
TagName = NewType("TagName", bytes)

MAX_TAG_INDEX: int = 2**64 - 1  # u64 counter ceiling
MAX_BALANCE: int = 2**63 - 1  # free + reserved must fit a signed BIGINT


# ─── Enums ───────────────────────────────────────────────────────

class TagEventKind(str, Enum):
    """Notifications announced after a transition commits."""
    CREATED = "tag_created"
    DESTROYED = "tag_destroyed"


# ─── Records ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class Tag:
    """A live tag: opaque name, creating account, deposit held for it."""
    name: TagName
    owner: AccountId
    deposit: Balance


@dataclass(frozen=True)
class TagCreated:
    index: TagIndex
    who: AccountId
    deposit: Balance

    kind = TagEventKind.CREATED


@dataclass(frozen=True)
class TagDestroyed:
    index: TagIndex
    who: AccountId

    kind = TagEventKind.DESTROYED


TagEvent = TagCreated | TagDestroyed
