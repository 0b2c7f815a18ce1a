"""Tag Rule Enforcement — pure checks run before any registry state changes.

Invariants:
    - Every function is PURE: raises a domain error or returns, never mutates
    - Ownership is decided by identity equality only; the core never authenticates
    - A tag is destroyable only if it exists AND the caller is its owner

Design Decisions:
    - Raise typed errors instead of returning status dicts: the service must abort
      the whole transition, and exceptions make skipping the check impossible
"""

from tag_registry.core.domain_types import AccountId, Tag, TagIndex, TagName
from tag_registry.core.errors import (
    InvalidTagError, NotAllowedError, TagNameTooLongError,
)


def validate_tag_name(name: bytes, limit: int) -> TagName:
    """Bound the name length in bytes. Content is opaque and need not be unique."""
    if len(name) > limit:
        raise TagNameTooLongError(len(name), limit)
    return TagName(bytes(name))


def ensure_destroyable(
    tag: Tag | None, index: TagIndex, caller: AccountId,
) -> Tag:
    """Return the tag at index if caller may destroy it."""
    if tag is None:
        raise InvalidTagError(index)
    if tag.owner != caller:
        raise NotAllowedError(index, caller)
    return tag
