"""
cakebot.database.models — SQLAlchemy 2.0 Data Models
=====================================================

Tables:
- guilds   — One row per Discord server that has seen a throw
- users    — One row per Discord account, totals across all servers
- members  — One user inside one server; also holds the daily allowance

``cakes`` and ``points`` on ``guilds`` and ``users`` are running totals of
their ``members`` rows.  They are only ever moved by the ledger and the
erasure service, inside one transaction with the matching member change.
"""

from __future__ import annotations

import enum

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Cakebot ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class Kind(enum.StrEnum):
    """Which aggregate level a leaderboard or lookup targets."""
    GUILD = "guilds"
    USER = "users"
    MEMBER = "members"


class SortKey(enum.StrEnum):
    """Columns a leaderboard can be ordered by."""
    CAKES = "cakes"
    POINTS = "points"


# ---------------------------------------------------------------------------
# Guilds — one row per Discord server
# ---------------------------------------------------------------------------
class Guild(Base):
    __tablename__ = "guilds"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)  # Discord snowflake
    name: Mapped[str] = mapped_column(String(100), nullable=False)  # Last seen display name
    cakes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    __table_args__ = (
        Index("ix_guilds_cakes", "cakes"),
        Index("ix_guilds_points", "points"),
    )

    def __repr__(self) -> str:
        return f"<Guild id={self.id} name={self.name!r} cakes={self.cakes} points={self.points}>"


# ---------------------------------------------------------------------------
# Users — one row per Discord account
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    cakes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    __table_args__ = (
        Index("ix_users_cakes", "cakes"),
        Index("ix_users_points", "points"),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} cakes={self.cakes} points={self.points}>"


# ---------------------------------------------------------------------------
# Members — a user inside a guild, plus the daily allowance window
# ---------------------------------------------------------------------------
class Member(Base):
    __tablename__ = "members"

    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    guild_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("guilds.id", ondelete="CASCADE"), primary_key=True
    )
    cakes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    # Successful throws since cakes_today_reset; NULL until the first throw
    cakes_today: Mapped[int | None] = mapped_column(Integer, default=None)
    # Unix seconds marking the start of the current window
    cakes_today_reset: Mapped[int | None] = mapped_column(Integer, default=None)

    __table_args__ = (
        Index("ix_members_cakes", "cakes"),
        Index("ix_members_points", "points"),
        Index("ix_members_guild_id", "guild_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Member user={self.user_id} guild={self.guild_id} "
            f"cakes={self.cakes} points={self.points} today={self.cakes_today}>"
        )
