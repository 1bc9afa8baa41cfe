"""
cakebot.services.embeds — Discord embed builders
=================================================

All embed construction lives here so the cogs only need to supply data —
no layout concerns.  Every embed carries the bot icon and brand colour
from :class:`~cakebot.config.CakeConfig`.
"""

from __future__ import annotations

from collections.abc import Sequence

import discord

from cakebot.config import CakeConfig
from cakebot.constants import RANK_BADGES
from cakebot.database.models import Kind, SortKey, User

LEADERBOARD_TITLES: dict[Kind, str] = {
    Kind.GUILD: "Top servers",
    Kind.USER: "Top users in all servers",
    Kind.MEMBER: "Top users in this server",
}

DELETE_TITLE = "\U0001f5d1\ufe0f Delete all your data"


def build_reply_embed(cfg: CakeConfig, title: str, message: str) -> discord.Embed:
    """Plain branded embed used for every normal reply."""
    embed = discord.Embed(
        title=title,
        description=message,
        color=discord.Color(cfg.embed_color),
    )
    embed.set_thumbnail(url=cfg.icon_url)
    return embed


def build_error_embed(cfg: CakeConfig, message: str) -> discord.Embed:
    """Embed for soft failures (out of cakes, caking a bot…)."""
    return build_reply_embed(cfg, "\U0001f47b Uhh...", message)


def build_throw_embed(
    cfg: CakeConfig,
    title: str,
    message: str,
    gif_url: str | None,
) -> discord.Embed:
    """Embed for a successful throw, with the GIF as the main image."""
    embed = build_reply_embed(cfg, title, message)
    if gif_url:
        embed.set_image(url=gif_url)
    return embed


def format_leaderboard_line(rank: int, name: str, value: int, sort: SortKey) -> str:
    medal = RANK_BADGES[rank - 1] if 0 < rank <= len(RANK_BADGES) else f"**{rank}.**"
    unit = "cakes" if sort is SortKey.CAKES else "points"
    return f"{medal} {name} ({value:,} {unit})"


def build_leaderboard_embed(
    cfg: CakeConfig,
    kind: Kind,
    sort: SortKey,
    rows: Sequence[tuple[str, int]],
) -> discord.Embed:
    """Build the leaderboard embed from ``(display_name, value)`` pairs."""
    lines = [
        format_leaderboard_line(i, name, value, sort)
        for i, (name, value) in enumerate(rows, 1)
    ]
    message = "\n".join(lines) if lines else "No one yet :sob:"
    return build_reply_embed(cfg, f"\U0001f3c6 {LEADERBOARD_TITLES[kind]}", message)


def build_delete_prompt_embed(cfg: CakeConfig, user: User) -> discord.Embed:
    """Ask for confirmation before erasing *user*."""
    return build_reply_embed(
        cfg,
        DELETE_TITLE,
        f"Are you sure?\nThis includes {user.points} points made over {user.cakes} throws.",
    )


def build_delete_result_embed(cfg: CakeConfig, erased: bool) -> discord.Embed:
    message = "Deleted all your data!" if erased else "There was nothing left to delete."
    return build_reply_embed(cfg, DELETE_TITLE, message)


def build_delete_aborted_embed(cfg: CakeConfig) -> discord.Embed:
    return build_reply_embed(cfg, DELETE_TITLE, "Operation aborted!")
