"""
cakebot.services.ledger_service — Throw Recording & Daily Allowance
====================================================================

The only code path that *increases* any aggregate.  One call to
:func:`record_action` is one transaction:

1. Get-or-create the guild, user and member rows.
2. Roll the member's daily window forward if it is stale.
3. Admit the throw if the member still has cakes left today.
4. Apply the point delta to member, user and guild together.

Guild and user totals are maintained incrementally (never recomputed), so
steps 1-4 must commit or roll back as a unit.  The write session takes the
SQLite writer lock at ``BEGIN`` so erasure can't slip in between.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from cakebot.constants import DAY_SECONDS
from cakebot.database.engine import get_session
from cakebot.database.models import Guild, Member, User
from cakebot.errors import InvalidArgument

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ThrowResult:
    """Outcome of :func:`record_action`.

    ``member`` is a detached snapshot taken after the write, including a
    window reset that happened even when ``success`` is False.
    """

    success: bool
    member: Member

    @property
    def next_reset(self) -> int:
        """Unix seconds at which the member's allowance refills."""
        return (self.member.cakes_today_reset or 0) + DAY_SECONDS


# ---------------------------------------------------------------------------
# Get-or-create helpers (must run inside the caller's transaction)
# ---------------------------------------------------------------------------
def get_or_create_guild(session: Session, guild_id: str, name: str) -> Guild:
    """Fetch or insert a Guild row.  *name* is only used on insert."""
    guild = session.get(Guild, guild_id)
    if guild is None:
        guild = Guild(id=guild_id, name=name, cakes=0, points=0)
        session.add(guild)
        session.flush()
    return guild


def get_or_create_user(session: Session, user_id: str) -> User:
    """Fetch or insert a User row."""
    user = session.get(User, user_id)
    if user is None:
        user = User(id=user_id, cakes=0, points=0)
        session.add(user)
        session.flush()
    return user


def get_or_create_member(session: Session, user_id: str, guild_id: str) -> Member:
    """Fetch or insert the Member row for user+guild."""
    member = session.get(Member, (user_id, guild_id))
    if member is None:
        member = Member(user_id=user_id, guild_id=guild_id, cakes=0, points=0)
        session.add(member)
        session.flush()
    return member


def window_is_stale(reset_at: int | None, now: int) -> bool:
    """True when the daily window has never started or is at least a day old."""
    return reset_at is None or now - reset_at >= DAY_SECONDS


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def _validate(user_id: str, guild_id: str, points: int, max_cakes_today: int) -> None:
    if not user_id:
        raise InvalidArgument("user_id must be provided")
    if not guild_id:
        raise InvalidArgument("guild_id must be provided")
    if not isinstance(points, int) or isinstance(points, bool):
        raise InvalidArgument(f"points must be an integer, got {points!r}")
    if not isinstance(max_cakes_today, int) or isinstance(max_cakes_today, bool):
        raise InvalidArgument(f"max_cakes_today must be an integer, got {max_cakes_today!r}")
    if max_cakes_today <= 0:
        raise InvalidArgument("max_cakes_today must be greater than 0")


def record_action(
    engine: Engine,
    user_id: str,
    guild_id: str,
    guild_name: str | None,
    points: int,
    max_cakes_today: int,
    *,
    now: int | None = None,
) -> ThrowResult:
    """Record one cake throw by *user_id* in *guild_id*.

    Parameters
    ----------
    engine:
        The storage handle.
    user_id, guild_id:
        Discord snowflakes as strings.  Must be non-empty.
    guild_name:
        Current server name; refreshed on every successful throw.
    points:
        Signed point delta of the outcome (losing points is allowed).
    max_cakes_today:
        Successful throws a member may make per window.
    now:
        Current unix time in seconds.  Defaults to the wall clock.

    Returns
    -------
    ThrowResult
        ``success`` is False when the member is out of cakes; nothing but
        the window fields changed in that case.

    Raises
    ------
    InvalidArgument
        Bad input, before any storage access.
    StorageError
        The transaction failed and was rolled back.
    """
    _validate(user_id, guild_id, points, max_cakes_today)
    if now is None:
        now = int(time.time())
    name = guild_name or guild_id

    with get_session(engine, write=True) as session:
        guild = get_or_create_guild(session, guild_id, name)
        user = get_or_create_user(session, user_id)
        member = get_or_create_member(session, user_id, guild_id)

        # Hard boundary: only moves forward once a full day has elapsed
        if window_is_stale(member.cakes_today_reset, now):
            member.cakes_today = 0
            member.cakes_today_reset = now

        success = (member.cakes_today or 0) < max_cakes_today
        if success:
            guild.name = name
            guild.points += points
            guild.cakes += 1

            user.points += points
            user.cakes += 1

            member.points += points
            member.cakes += 1
            member.cakes_today = (member.cakes_today or 0) + 1
        else:
            logger.debug(
                "Throw refused for %s in %s — %d/%d cakes used, resets at %d",
                user_id, guild_id, member.cakes_today, max_cakes_today,
                member.cakes_today_reset + DAY_SECONDS,
            )

        session.flush()
        session.expunge(member)

    return ThrowResult(success=success, member=member)
