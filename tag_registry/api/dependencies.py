"""Request Dependencies — caller identity and a TagRegistry bound to the request's DB session.

Invariants:
    - Caller identity comes from X-Account-Id, set by the upstream authenticating gateway;
      this service never authenticates, it only forwards the identity to the core
    - Every registry shares _transition_lock, so transitions in this process are serialized
    - Ledger, store, counter, and transaction share the request session (one DB transaction)

Design Decisions:
    - _transition_lock as module-level object: deliberate exception to no-global-state rule
      (ADR: single-process uvicorn). Across worker processes, SqlLedger locks the account
      row and SqlIndexCounter locks the counter row, each FOR UPDATE, for the transaction
"""

import asyncio

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from tag_registry.config import Settings, get_settings
from tag_registry.core.domain_types import AccountId
from tag_registry.infrastructure.database import get_db
from tag_registry.infrastructure.event_log import EventLog, event_log
from tag_registry.infrastructure.sql_backends import (
    SqlIndexCounter, SqlLedger, SqlTagStore, SqlTransaction,
)
from tag_registry.services.tag_registry import TagRegistry

_transition_lock = asyncio.Lock()


def get_transition_lock() -> asyncio.Lock:
    return _transition_lock


def get_event_log() -> EventLog:
    return event_log


def get_caller(
    x_account_id: str = Header(min_length=1, max_length=64),
) -> AccountId:
    """Already-authenticated caller identity."""
    return AccountId(x_account_id)


def get_registry(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    lock: asyncio.Lock = Depends(get_transition_lock),
    events: EventLog = Depends(get_event_log),
) -> TagRegistry:
    return TagRegistry(
        ledger=SqlLedger(db),
        store=SqlTagStore(db),
        counter=SqlIndexCounter(db),
        transaction=SqlTransaction(db),
        events=events,
        deposit_amount=lambda: settings.tag_deposit_amount,
        name_limit=lambda: settings.tag_name_limit,
        lock=lock,
    )
