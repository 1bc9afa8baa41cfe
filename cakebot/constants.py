"""
cakebot.constants — Shared Constants & Helpers
===============================================

Single source of truth for the rate-limit window and presentation constants.
Import from here instead of duplicating in cogs, services, and the API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Rate-limit window
# ---------------------------------------------------------------------------
DAY_SECONDS: int = 24 * 60 * 60

# ---------------------------------------------------------------------------
# Defaults used when config.yaml leaves a value out
# ---------------------------------------------------------------------------
DEFAULT_MAX_CAKES_TODAY: int = 5
DEFAULT_LEADERBOARD_SIZE: int = 10
DEFAULT_EMBED_COLOR: int = 0xF5A9B8
DEFAULT_DATABASE_URL: str = "sqlite:///cake.sqlite3"

# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------
CAKE_EMOJI: str = ":cake:"
RANK_BADGES: list[str] = ["\U0001f947", "\U0001f948", "\U0001f949"]  # 🥇🥈🥉
GHOST_NAME: str = "Ghost"


def format_points(value: int) -> str:
    """Render a signed point delta, e.g. ``+5 :cake: points`` / ``-1 :cake: points``.

    Only an exact ``+1`` gets the singular noun.
    """
    sign = "+" if value > 0 else ""
    noun = "point" if value == 1 else "points"
    return f"{sign}{value} {CAKE_EMOJI} {noun}"


def discord_relative_time(unix_seconds: int) -> str:
    """Discord timestamp markup that renders as "in 3 hours" etc."""
    return f"<t:{unix_seconds}:R>"
