"""
cakebot.api.routes.public — Read-only public endpoints
=======================================================

Every endpoint is a thin wrapper over :mod:`cakebot.services.leaderboard_service`;
nothing here writes to the database.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy import Engine

from cakebot.api.deps import get_engine
from cakebot.constants import DEFAULT_LEADERBOARD_SIZE
from cakebot.database.models import Guild, Kind, Member, SortKey
from cakebot.services.leaderboard_service import get_entity, top_entries

router = APIRouter(tags=["public"])


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------
class GuildOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    cakes: int
    points: int


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    cakes: int
    points: int


class MemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    guild_id: str
    cakes: int
    points: int
    cakes_today: int | None = None
    cakes_today_reset: int | None = None


def _serialize(row) -> dict:
    if isinstance(row, Guild):
        return GuildOut.model_validate(row).model_dump()
    if isinstance(row, Member):
        return MemberOut.model_validate(row).model_dump()
    return UserOut.model_validate(row).model_dump()


# ---------------------------------------------------------------------------
# GET /leaderboard/{kind}
# ---------------------------------------------------------------------------
@router.get("/leaderboard/{kind}")
def get_leaderboard(
    kind: str,
    sort: str = Query(SortKey.POINTS.value),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_LEADERBOARD_SIZE, ge=1, le=100),
    guild_id: str | None = Query(None),
    engine: Engine = Depends(get_engine),
):
    """Paginated leaderboard of guilds, users or one guild's members."""
    rows = top_entries(engine, kind, sort, limit, page, guild_id)
    offset = (page - 1) * limit
    return {
        "kind": kind,
        "sort": sort,
        "page": page,
        "limit": limit,
        "entries": [
            {**_serialize(row), "rank": offset + i + 1}
            for i, row in enumerate(rows)
        ],
    }


# ---------------------------------------------------------------------------
# Single-row lookups
# ---------------------------------------------------------------------------
@router.get("/guilds/{guild_id}", response_model=GuildOut)
def get_guild(guild_id: str, engine: Engine = Depends(get_engine)):
    guild = get_entity(engine, Kind.GUILD, guild_id)
    if guild is None:
        raise HTTPException(404, "Guild not found")
    return guild


@router.get("/users/{user_id}", response_model=UserOut)
def get_user(user_id: str, engine: Engine = Depends(get_engine)):
    user = get_entity(engine, Kind.USER, user_id)
    if user is None:
        raise HTTPException(404, "User not found")
    return user


@router.get("/guilds/{guild_id}/members/{user_id}", response_model=MemberOut)
def get_member(guild_id: str, user_id: str, engine: Engine = Depends(get_engine)):
    member = get_entity(engine, Kind.MEMBER, user_id, guild_id)
    if member is None:
        raise HTTPException(404, "Member not found")
    return member
