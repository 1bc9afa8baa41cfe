"""
cakebot.bot.cogs.meta — Leaderboard, Data Deletion & Odds and Ends
===================================================================

Slash commands for everything that isn't a throw:
- /leaderboard — Top members, users or servers by cakes or points
- /deletedata  — Erase everything stored about you (with confirmation)
- /invite      — Link to add the bot to another server
- /magic8ball  — Life advice
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from cakebot.bot.core import display_name
from cakebot.database.engine import run_db
from cakebot.database.models import Guild, Kind, SortKey
from cakebot.services.embeds import (
    build_delete_aborted_embed,
    build_delete_prompt_embed,
    build_delete_result_embed,
    build_error_embed,
    build_leaderboard_embed,
    build_reply_embed,
)
from cakebot.services.erasure_service import erase_user
from cakebot.services.leaderboard_service import get_entity, top_entries

if TYPE_CHECKING:
    from cakebot.bot.core import CakeBot

logger = logging.getLogger(__name__)


class DeleteDataView(discord.ui.View):
    """Confirm / cancel buttons for /deletedata.  Only the requester may click."""

    def __init__(self, bot: CakeBot, user_id: int) -> None:
        super().__init__(timeout=120)
        self.bot = bot
        self.user_id = user_id

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return interaction.user.id == self.user_id

    @discord.ui.button(label="Yes, I am sure.", style=discord.ButtonStyle.danger)
    async def confirm(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        result = await run_db(erase_user, self.bot.engine, str(self.user_id))
        logger.info("User %s deleted their data (erased=%s)", self.user_id, result.erased)
        self.stop()
        await interaction.response.edit_message(
            embed=build_delete_result_embed(self.bot.cfg, result.erased), view=None
        )

    @discord.ui.button(label="No! Abort!", style=discord.ButtonStyle.primary)
    async def cancel(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        self.stop()
        await interaction.response.edit_message(
            embed=build_delete_aborted_embed(self.bot.cfg), view=None
        )


class Meta(commands.Cog, name="Meta"):
    """Leaderboards, data deletion and small extras."""

    def __init__(self, bot: CakeBot, rng: random.Random | None = None) -> None:
        self.bot = bot
        self._rng = rng or random.Random()

    # -------------------------------------------------------------------
    # Leaderboard rendering (also used by the cake cog's button)
    # -------------------------------------------------------------------
    async def _row_name(self, guild: discord.Guild | None, row) -> str:
        if isinstance(row, Guild):
            return row.name
        user_id = getattr(row, "user_id", None) or row.id
        return display_name(await self.bot.resolve_person(guild, int(user_id)))

    async def send_leaderboard(
        self,
        interaction: discord.Interaction,
        kind: Kind,
        sort: SortKey,
    ) -> None:
        cfg = self.bot.cfg
        if kind is Kind.MEMBER and interaction.guild_id is None:
            await interaction.response.send_message(
                embed=build_reply_embed(
                    cfg, "Oops!", "You can only get member leaderboard in servers!"
                )
            )
            return

        guild_id = str(interaction.guild_id) if kind is Kind.MEMBER else None
        rows = await run_db(
            top_entries, self.bot.engine, kind, sort, cfg.leaderboard_size, 1, guild_id
        )
        pairs = [
            (
                await self._row_name(interaction.guild, row),
                row.cakes if sort is SortKey.CAKES else row.points,
            )
            for row in rows
        ]
        await interaction.response.send_message(
            embed=build_leaderboard_embed(cfg, kind, sort, pairs)
        )

    # -------------------------------------------------------------------
    # /leaderboard
    # -------------------------------------------------------------------
    @app_commands.command(name="leaderboard", description="View the leaderboard")
    @app_commands.describe(type="Members of this server, all users, or servers", sort="Sort by cakes or points")
    @app_commands.choices(
        type=[
            app_commands.Choice(name="members", value=Kind.MEMBER.value),
            app_commands.Choice(name="users", value=Kind.USER.value),
            app_commands.Choice(name="guilds", value=Kind.GUILD.value),
        ],
        sort=[
            app_commands.Choice(name="cakes", value=SortKey.CAKES.value),
            app_commands.Choice(name="points", value=SortKey.POINTS.value),
        ],
    )
    async def leaderboard(
        self,
        interaction: discord.Interaction,
        type: str = Kind.MEMBER.value,
        sort: str = SortKey.POINTS.value,
    ) -> None:
        await self.send_leaderboard(interaction, Kind(type), SortKey(sort))

    # -------------------------------------------------------------------
    # /deletedata
    # -------------------------------------------------------------------
    @app_commands.command(name="deletedata", description="Delete all your user data")
    async def deletedata(self, interaction: discord.Interaction) -> None:
        cfg = self.bot.cfg
        user = await run_db(get_entity, self.bot.engine, Kind.USER, str(interaction.user.id))
        if user is None:
            await interaction.response.send_message(
                embed=build_error_embed(cfg, "You have no data to delete!"), ephemeral=True
            )
            return
        await interaction.response.send_message(
            embed=build_delete_prompt_embed(cfg, user),
            view=DeleteDataView(self.bot, interaction.user.id),
            ephemeral=True,
        )

    # -------------------------------------------------------------------
    # /invite
    # -------------------------------------------------------------------
    @app_commands.command(name="invite", description="Invite this bot")
    async def invite(self, interaction: discord.Interaction) -> None:
        await interaction.response.send_message(
            discord.utils.oauth_url(self.bot.application_id or 0)
        )

    # -------------------------------------------------------------------
    # /magic8ball
    # -------------------------------------------------------------------
    @app_commands.command(name="magic8ball", description="Get life advice")
    @app_commands.describe(what="What to get life advice about")
    async def magic8ball(self, interaction: discord.Interaction, what: str | None = None) -> None:
        answer = self._rng.choice(self.bot.cfg.magic8ball)
        await interaction.response.send_message(
            embed=build_reply_embed(self.bot.cfg, "\U0001f3b1 Magic 8 Ball", answer)
        )


async def setup(bot: CakeBot) -> None:
    await bot.add_cog(Meta(bot))
