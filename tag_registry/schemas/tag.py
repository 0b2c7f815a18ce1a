"""Tag Schemas — Pydantic models for tag, account, and event API payloads.

Invariants:
    - TagCreate carries text (encoded as UTF-8) or hex (raw bytes), never both;
      the byte-length check runs on the decoded bytes
    - Responses expose the raw name as hex so non-UTF-8 names survive the round trip
    - Balance fields are non-negative integers in the smallest currency unit

Design Decisions:
    - Byte limit enforced in core (runtime config), not via Field(max_length) here:
      max_length counts characters, the registry bounds bytes
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from tag_registry.core.domain_types import MAX_BALANCE, Tag


class TagCreate(BaseModel):
    """Tag creation request: exactly one of `name` (UTF-8 text) or `name_hex` (raw bytes)."""
    name: str | None = Field(default=None, max_length=4096)
    name_hex: str | None = Field(default=None, max_length=8192)

    @field_validator("name_hex")
    @classmethod
    def _valid_hex(cls, v: str | None) -> str | None:
        if v is not None:
            bytes.fromhex(v)  # ValueError -> 400 VALIDATION_ERROR
        return v

    @model_validator(mode="after")
    def _one_name(self) -> "TagCreate":
        if (self.name is None) == (self.name_hex is None):
            raise ValueError("exactly one of name or name_hex is required")
        return self

    def raw_name(self) -> bytes:
        if self.name_hex is not None:
            return bytes.fromhex(self.name_hex)
        return self.name.encode("utf-8")


class TagResponse(BaseModel):
    """A live tag."""
    index: int
    name: str
    name_hex: str
    owner: str
    deposit: int

    @classmethod
    def from_tag(cls, index: int, tag: Tag) -> "TagResponse":
        return cls(
            index=index,
            name=tag.name.decode("utf-8", errors="replace"),
            name_hex=tag.name.hex(),
            owner=tag.owner,
            deposit=tag.deposit,
        )


class TagListResponse(BaseModel):
    owner: str
    tags: list[TagResponse] = []


class TagDestroyedResponse(BaseModel):
    """Result of destroying a tag: the deposit released back to the owner."""
    index: int
    owner: str
    released: int


class NextIndexResponse(BaseModel):
    next_index: int


class AccountBalanceResponse(BaseModel):
    account_id: str
    free: int
    reserved: int


class BalanceUpdate(BaseModel):
    """Operator funding — sets the account's free balance."""
    free: int = Field(ge=0, le=MAX_BALANCE)


class EventResponse(BaseModel):
    sequence: int
    type: Literal["tag_created", "tag_destroyed"]
    index: int
    who: str
    deposit: int | None = None


class EventListResponse(BaseModel):
    events: list[EventResponse] = []
