"""Tag Routes — create, read, list, and destroy tags.

Invariants:
    - Writes go through TagRegistry only; routes never touch ledger or tables directly
    - Domain errors propagate to the global TagRegistryError handler (structured JSON)
    - Tag indices in paths are u64: 0 <= index <= MAX_TAG_INDEX

Design Decisions:
    - DELETE returns 200 with the released amount instead of 204: the deposit
      refund is the caller-visible outcome of destroying a tag
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from tag_registry.api.dependencies import get_caller, get_registry
from tag_registry.core.domain_types import AccountId, MAX_TAG_INDEX, TagIndex
from tag_registry.core.errors import InvalidTagError
from tag_registry.schemas.tag import (
    NextIndexResponse, TagCreate, TagDestroyedResponse, TagListResponse,
    TagResponse,
)
from tag_registry.services.tag_registry import TagRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/tags", tags=["tags"])

IndexPath = Annotated[int, Path(ge=0, le=MAX_TAG_INDEX)]


@router.post(
    "", response_model=TagResponse, status_code=status.HTTP_201_CREATED,
)
async def create_tag(
    body: TagCreate,
    caller: AccountId = Depends(get_caller),
    registry: TagRegistry = Depends(get_registry),
):
    """Reserve the tag deposit from the caller and register a new tag."""
    index, tag = await registry.create_tag(caller, body.raw_name())
    return TagResponse.from_tag(index, tag)


@router.get("", response_model=TagListResponse)
async def list_tags(
    owner: str = Query(min_length=1, max_length=64),
    registry: TagRegistry = Depends(get_registry),
):
    """List live tags owned by an account, by ascending index."""
    owned = await registry.tags_owned_by(AccountId(owner))
    return TagListResponse(
        owner=owner,
        tags=[TagResponse.from_tag(i, t) for i, t in owned],
    )


@router.get("/next-index", response_model=NextIndexResponse)
async def get_next_index(registry: TagRegistry = Depends(get_registry)):
    """Index the next successful creation will receive."""
    return NextIndexResponse(next_index=await registry.next_index())


@router.get("/{tag_index}", response_model=TagResponse)
async def get_tag(
    tag_index: IndexPath,
    registry: TagRegistry = Depends(get_registry),
):
    tag = await registry.get_tag(TagIndex(tag_index))
    if tag is None:
        raise InvalidTagError(tag_index)
    return TagResponse.from_tag(tag_index, tag)


@router.delete("/{tag_index}", response_model=TagDestroyedResponse)
async def destroy_tag(
    tag_index: IndexPath,
    caller: AccountId = Depends(get_caller),
    registry: TagRegistry = Depends(get_registry),
):
    """Destroy the caller's tag and release its deposit."""
    tag = await registry.destroy_tag(caller, TagIndex(tag_index))
    return TagDestroyedResponse(
        index=tag_index, owner=tag.owner, released=tag.deposit,
    )
