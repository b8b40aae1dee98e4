from __future__ import annotations

from collections.abc import Hashable

from fastapi import APIRouter, Depends, HTTPException, status
import redis

from player_monoids.api.deps import get_redis, get_runtime
from player_monoids.api.models import (
    BranchRequest,
    BranchState,
    ChangeAddedResponse,
    ChangeRequest,
    EntityCreateRequest,
    EntityResponse,
    FeedMessage,
    FeedResponse,
    MonoidStateResponse,
)
from player_monoids.core.errors import InvalidContributionError, UnknownMonoidError
from player_monoids.core.fsm import MAIN_BRANCH
from player_monoids.core.monoid import Monoid
from player_monoids.runtime import Entity, Runtime
from player_monoids.streams import ChangeFeed, read_feed

router = APIRouter()


AUTO_ID_PREFIX = "auto:"


def _parse_change_id(raw: str) -> Hashable:
    # Engine-allocated ids are ints and travel as "auto:<n>"; any other string is a caller id.
    if raw.startswith(AUTO_ID_PREFIX):
        digits = raw[len(AUTO_ID_PREFIX) :]
        if digits.isascii() and digits.isdigit():
            return int(digits)
    return raw


def _format_change_id(change_id: Hashable) -> str:
    return f"{AUTO_ID_PREFIX}{change_id}" if isinstance(change_id, int) else str(change_id)


def _require_entity(runtime: Runtime, entity_id: str) -> Entity:
    try:
        return runtime.require(entity_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


def _require_monoid(runtime: Runtime, monoid_name: str) -> Monoid:
    try:
        return runtime.registry.require(monoid_name)
    except UnknownMonoidError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


def _entity_response(entity: Entity) -> EntityResponse:
    return EntityResponse(
        entity_id=entity.entity_id,
        physics=dict(entity.physics),
        privileges=sorted(entity.privileges),
    )


def _monoid_state(monoid: Monoid, entity: Entity) -> MonoidStateResponse:
    active = monoid.get_active_branch(entity).get_name()
    branches = [
        BranchState(name=name, value=ref.value(entity), active=name == active)
        for name, ref in sorted(monoid.get_branches(entity).items())
    ]
    return MonoidStateResponse(
        monoid=monoid.name,
        entity_id=entity.entity_id,
        active_branch=active,
        value=monoid.value(entity),
        branches=branches,
    )


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/monoids")
async def list_monoids_route(runtime: Runtime = Depends(get_runtime)) -> dict[str, list[str]]:
    return {"monoids": runtime.registry.names()}


@router.post("/entities", response_model=EntityResponse, status_code=status.HTTP_201_CREATED)
async def join_entity_route(payload: EntityCreateRequest, runtime: Runtime = Depends(get_runtime)) -> EntityResponse:
    try:
        entity = runtime.join(payload.entity_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    return _entity_response(entity)


@router.get("/entities/{entity_id}", response_model=EntityResponse)
async def get_entity_route(entity_id: str, runtime: Runtime = Depends(get_runtime)) -> EntityResponse:
    return _entity_response(_require_entity(runtime, entity_id))


@router.delete("/entities/{entity_id}", response_model=EntityResponse)
async def leave_entity_route(entity_id: str, runtime: Runtime = Depends(get_runtime)) -> EntityResponse:
    entity = _require_entity(runtime, entity_id)
    runtime.leave(entity.entity_id)
    return _entity_response(entity)


@router.get("/entities/{entity_id}/monoids/{monoid_name}", response_model=MonoidStateResponse)
async def get_monoid_state_route(
    entity_id: str,
    monoid_name: str,
    runtime: Runtime = Depends(get_runtime),
) -> MonoidStateResponse:
    entity = _require_entity(runtime, entity_id)
    monoid = _require_monoid(runtime, monoid_name)
    return _monoid_state(monoid, entity)


@router.post(
    "/entities/{entity_id}/monoids/{monoid_name}/changes",
    response_model=ChangeAddedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_change_route(
    entity_id: str,
    monoid_name: str,
    payload: ChangeRequest,
    runtime: Runtime = Depends(get_runtime),
) -> ChangeAddedResponse:
    entity = _require_entity(runtime, entity_id)
    monoid = _require_monoid(runtime, monoid_name)

    change_id = _parse_change_id(payload.id) if payload.id is not None else None
    try:
        used = monoid.add_change(entity, payload.value, change_id, payload.branch)
    except InvalidContributionError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    return ChangeAddedResponse(change_id=_format_change_id(used), state=_monoid_state(monoid, entity))


@router.delete("/entities/{entity_id}/monoids/{monoid_name}/changes/{change_id}", response_model=MonoidStateResponse)
async def del_change_route(
    entity_id: str,
    monoid_name: str,
    change_id: str,
    branch: str = MAIN_BRANCH,
    runtime: Runtime = Depends(get_runtime),
) -> MonoidStateResponse:
    entity = _require_entity(runtime, entity_id)
    monoid = _require_monoid(runtime, monoid_name)
    monoid.del_change(entity, _parse_change_id(change_id), branch)
    return _monoid_state(monoid, entity)


@router.post(
    "/entities/{entity_id}/monoids/{monoid_name}/branches",
    response_model=MonoidStateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def new_branch_route(
    entity_id: str,
    monoid_name: str,
    payload: BranchRequest,
    runtime: Runtime = Depends(get_runtime),
) -> MonoidStateResponse:
    entity = _require_entity(runtime, entity_id)
    monoid = _require_monoid(runtime, monoid_name)
    monoid.new_branch(entity, payload.name)
    return _monoid_state(monoid, entity)


@router.post("/entities/{entity_id}/monoids/{monoid_name}/checkout", response_model=MonoidStateResponse)
async def checkout_branch_route(
    entity_id: str,
    monoid_name: str,
    payload: BranchRequest,
    runtime: Runtime = Depends(get_runtime),
) -> MonoidStateResponse:
    entity = _require_entity(runtime, entity_id)
    monoid = _require_monoid(runtime, monoid_name)
    monoid.checkout_branch(entity, payload.name)
    return _monoid_state(monoid, entity)


@router.post("/entities/{entity_id}/monoids/{monoid_name}/branches/{branch}/reset", response_model=MonoidStateResponse)
async def reset_branch_route(
    entity_id: str,
    monoid_name: str,
    branch: str,
    runtime: Runtime = Depends(get_runtime),
) -> MonoidStateResponse:
    entity = _require_entity(runtime, entity_id)
    monoid = _require_monoid(runtime, monoid_name)
    monoid.reset_branch(entity, branch)
    return _monoid_state(monoid, entity)


@router.delete("/entities/{entity_id}/monoids/{monoid_name}/branches/{branch}", response_model=MonoidStateResponse)
async def delete_branch_route(
    entity_id: str,
    monoid_name: str,
    branch: str,
    runtime: Runtime = Depends(get_runtime),
) -> MonoidStateResponse:
    entity = _require_entity(runtime, entity_id)
    monoid = _require_monoid(runtime, monoid_name)

    if branch == MAIN_BRANCH:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="The main branch cannot be deleted")
    if not monoid.delete_branch(entity, branch):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Branch not found")
    return _monoid_state(monoid, entity)


@router.get("/entities/{entity_id}/monoids/{monoid_name}/feed", response_model=FeedResponse)
async def get_change_feed_route(
    entity_id: str,
    monoid_name: str,
    count: int = 20,
    start: str = "-",
    end: str = "+",
    r: redis.Redis = Depends(get_redis),
) -> FeedResponse:
    """Debug endpoint: read an entity's change feed Redis Stream.

    Entries outlive the entity; the feed is an observer log, not monoid state.
    """

    if count < 1 or count > 200:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 200")

    feed = ChangeFeed(monoid=monoid_name, entity_id=entity_id)
    try:
        entries = read_feed(r=r, feed=feed, count=count, start=start, end=end)
    except redis.RedisError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    messages = [FeedMessage(id=mid, fields=fields) for mid, fields in entries]
    return FeedResponse(monoid=monoid_name, entity_id=entity_id, stream=feed.key, messages=messages)
