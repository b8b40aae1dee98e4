from __future__ import annotations

from pydantic import BaseModel, Field

from player_monoids.core.fsm import MAIN_BRANCH

# bool first: pydantic's smart union keeps JSON `true` a bool and `2` an int.
MonoidValue = bool | int | float


class EntityCreateRequest(BaseModel):
    entity_id: str = Field(..., min_length=1, max_length=64)


class EntityResponse(BaseModel):
    entity_id: str
    physics: dict[str, float]
    privileges: list[str]


class ChangeRequest(BaseModel):
    value: MonoidValue
    # Omit to let the monoid allocate an id.
    id: str | None = Field(default=None, min_length=1, max_length=128)
    branch: str = Field(default=MAIN_BRANCH, min_length=1, max_length=64)


class BranchRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)


class BranchState(BaseModel):
    name: str
    value: MonoidValue
    active: bool


class MonoidStateResponse(BaseModel):
    monoid: str
    entity_id: str
    active_branch: str
    value: MonoidValue
    branches: list[BranchState]


class ChangeAddedResponse(BaseModel):
    change_id: str
    state: MonoidStateResponse


class FeedMessage(BaseModel):
    id: str
    fields: dict[str, str]


class FeedResponse(BaseModel):
    monoid: str
    entity_id: str
    stream: str
    messages: list[FeedMessage]
