"""
cakebot.services.erasure_service — Delete a User's Data
========================================================

Honors ``/deletedata``.  One transaction:

1. Load the user (no user → nothing to do).
2. Subtract each of their memberships from the owning guild's totals.
3. Delete the memberships, then the user.
4. Prune every guild left with zero cakes.

Guild totals are running sums, so step 2 has to subtract exactly what the
ledger added; there is no recount to fall back on.  :func:`find_drift`
checks that the sums still line up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select, update

from cakebot.database.engine import get_session
from cakebot.database.models import Guild, Member, User
from cakebot.errors import InvalidArgument

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ErasureResult:
    """``user`` is the row as it was just before deletion."""

    erased: bool
    user: User | None = None


def erase_user(engine: Engine, user_id: str) -> ErasureResult:
    """Remove every trace of *user_id* and keep guild totals consistent.

    Returns ``ErasureResult(erased=False)`` when the user was never seen.

    Raises
    ------
    InvalidArgument
        If *user_id* is empty.
    StorageError
        The transaction failed and was rolled back.
    """
    if not user_id:
        raise InvalidArgument("user_id must be provided")

    with get_session(engine, write=True) as session:
        user = session.get(User, user_id)
        if user is None:
            return ErasureResult(erased=False)
        session.expunge(user)

        members = session.scalars(
            select(Member).where(Member.user_id == user_id)
        ).all()
        for m in members:
            session.execute(
                update(Guild)
                .where(Guild.id == m.guild_id)
                .values(cakes=Guild.cakes - m.cakes, points=Guild.points - m.points)
                .execution_options(synchronize_session=False)
            )

        session.execute(delete(Member).where(Member.user_id == user_id))
        session.execute(delete(User).where(User.id == user_id))
        pruned = session.execute(delete(Guild).where(Guild.cakes == 0)).rowcount

    logger.info(
        "Erased user %s — %d memberships removed, %d empty guilds pruned",
        user_id, len(members), pruned,
    )
    return ErasureResult(erased=True, user=user)


# ---------------------------------------------------------------------------
# Consistency check
# ---------------------------------------------------------------------------
def find_drift(engine: Engine) -> list[str]:
    """Compare guild and user totals with the sums of their member rows.

    Returns a human-readable line per mismatch; an empty list means the
    ledger is consistent.  Read-only.
    """
    problems: list[str] = []
    with get_session(engine) as session:
        for model, key in ((Guild, Member.guild_id), (User, Member.user_id)):
            sums = (
                select(
                    key.label("owner"),
                    func.sum(Member.cakes).label("cakes"),
                    func.sum(Member.points).label("points"),
                )
                .group_by(key)
                .subquery()
            )
            rows = session.execute(
                select(
                    model.id,
                    model.cakes,
                    model.points,
                    func.coalesce(sums.c.cakes, 0),
                    func.coalesce(sums.c.points, 0),
                ).outerjoin(sums, sums.c.owner == model.id)
            ).all()
            for owner, cakes, points, member_cakes, member_points in rows:
                if (cakes, points) != (member_cakes, member_points):
                    problems.append(
                        f"{model.__tablename__} {owner}: has {cakes} cakes / {points} points, "
                        f"members sum to {member_cakes} / {member_points}"
                    )

        orphans = session.scalars(
            select(Member)
            .outerjoin(User, User.id == Member.user_id)
            .outerjoin(Guild, Guild.id == Member.guild_id)
            .where((User.id.is_(None)) | (Guild.id.is_(None)))
        ).all()
        problems.extend(
            f"members ({m.user_id}, {m.guild_id}): orphaned row" for m in orphans
        )
    return problems
