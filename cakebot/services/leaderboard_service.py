"""
cakebot.services.leaderboard_service — Read-only Leaderboard Queries
=====================================================================

Side-effect-free lookups shared by the bot and the public API.

``kind`` and ``sort`` are closed enums (:class:`Kind`, :class:`SortKey`);
each combination maps to a fixed, parameterised query, so no table or
column name is ever built from caller input.

Rows with equal sort values come back in SQLite's own row order.  No
secondary key is applied, so tie order is not guaranteed to be stable
across databases.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Select, select

from cakebot.database.engine import get_session
from cakebot.database.models import Guild, Kind, Member, SortKey, User
from cakebot.errors import InvalidArgument

if TYPE_CHECKING:
    from sqlalchemy import Engine

Entity = Guild | User | Member

_MODELS: dict[Kind, type[Guild] | type[User] | type[Member]] = {
    Kind.GUILD: Guild,
    Kind.USER: User,
    Kind.MEMBER: Member,
}


def parse_kind(kind: Kind | str) -> Kind:
    """Coerce *kind* into :class:`Kind` or raise :class:`InvalidArgument`."""
    try:
        return Kind(kind)
    except ValueError:
        raise InvalidArgument(f"Invalid type: {kind}") from None


def parse_sort(sort: SortKey | str) -> SortKey:
    """Coerce *sort* into :class:`SortKey` or raise :class:`InvalidArgument`."""
    try:
        return SortKey(sort)
    except ValueError:
        raise InvalidArgument(f"Invalid sort column: {sort}") from None


def _positive_int(value: int, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise InvalidArgument(f"{name} must be greater than 0")
    return value


def _top_query(kind: Kind, sort: SortKey, guild_id: str | None) -> Select:
    model = _MODELS[kind]
    column = model.cakes if sort is SortKey.CAKES else model.points
    query = select(model)
    if kind is Kind.MEMBER:
        query = query.where(Member.guild_id == guild_id)
    return query.order_by(column.desc())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def top_entries(
    engine: Engine,
    kind: Kind | str,
    sort: SortKey | str,
    limit: int,
    page: int = 1,
    guild_id: str | None = None,
) -> list[Entity]:
    """Return one page of the leaderboard, highest first.

    Parameters
    ----------
    kind:
        ``guilds``, ``users`` or ``members``.
    sort:
        ``cakes`` or ``points``.
    limit:
        Rows per page (> 0).
    page:
        1-based page number.
    guild_id:
        Required for ``members``; restricts the board to that server.

    Returns
    -------
    list
        Detached rows; safe to iterate after the session is gone.
    """
    kind = parse_kind(kind)
    sort = parse_sort(sort)
    limit = _positive_int(limit, "limit")
    page = _positive_int(page, "page")
    if kind is Kind.MEMBER and not guild_id:
        raise InvalidArgument("guild_id must be provided for the members leaderboard")

    offset = (page - 1) * limit
    with get_session(engine) as session:
        rows = session.scalars(
            _top_query(kind, sort, guild_id).limit(limit).offset(offset)
        ).all()
    return list(rows)


def get_entity(
    engine: Engine,
    kind: Kind | str,
    entity_id: str,
    guild_id: str | None = None,
) -> Entity | None:
    """Fetch one row, or ``None`` if it doesn't exist.

    For ``guilds`` *entity_id* is the guild ID; otherwise it is the user ID.
    For ``members`` pass *guild_id* to pick the exact membership; without it
    the first membership found for that user is returned.
    """
    kind = parse_kind(kind)
    if not entity_id:
        raise InvalidArgument("ID must be provided")

    with get_session(engine) as session:
        if kind is Kind.GUILD:
            return session.get(Guild, entity_id)
        if kind is Kind.USER:
            return session.get(User, entity_id)
        if guild_id:
            return session.get(Member, (entity_id, guild_id))
        return session.scalars(
            select(Member).where(Member.user_id == entity_id).limit(1)
        ).first()
