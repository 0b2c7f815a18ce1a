"""Account Routes — balance inspection and operator funding for the SQL ledger.

Invariants:
    - Unknown accounts read as zero free / zero reserved (no 404)
    - PUT balance sets the FREE balance only; reserved deposits are never touched here
    - PUT is rejected (BALANCE_OVERFLOW) when free + reserved would exceed MAX_BALANCE

Design Decisions:
    - Funding endpoint exists because the ledger is local to this service; behind a
      real ledger it is disabled at the gateway, like the balance setter of a test runtime
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from tag_registry.core.domain_types import AccountId
from tag_registry.infrastructure.database import get_db
from tag_registry.infrastructure.sql_backends import SqlLedger
from tag_registry.schemas.tag import AccountBalanceResponse, BalanceUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/accounts", tags=["accounts"])

AccountPath = Annotated[str, Path(min_length=1, max_length=64)]


@router.get("/{account_id}", response_model=AccountBalanceResponse)
async def get_account(
    account_id: AccountPath, db: AsyncSession = Depends(get_db),
):
    account = await SqlLedger(db).get_account(AccountId(account_id))
    if account is None:
        return AccountBalanceResponse(account_id=account_id, free=0, reserved=0)
    return AccountBalanceResponse(
        account_id=account_id, free=account.free, reserved=account.reserved,
    )


@router.put("/{account_id}/balance", response_model=AccountBalanceResponse)
async def set_balance(
    body: BalanceUpdate,
    account_id: AccountPath,
    db: AsyncSession = Depends(get_db),
):
    """Set the free balance of an account."""
    account = await SqlLedger(db).set_free_balance(AccountId(account_id), body.free)
    await db.commit()
    logger.info(
        f"Free balance set to {body.free}",
        extra={"account": account_id},
    )
    return AccountBalanceResponse(
        account_id=account_id, free=account.free, reserved=account.reserved,
    )
