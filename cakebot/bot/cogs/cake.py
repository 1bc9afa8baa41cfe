"""
cakebot.bot.cogs.cake — The /cake Command
==========================================

Pipeline:
1. /cake (or the "Throw another" button) → gate checks (guild, bot, self)
2. Pick a weighted random outcome
3. Record the throw via ledger_service.record_action (background thread via run_db)
4. Reply with the outcome text, a random GIF and two buttons

The buttons are :class:`discord.ui.DynamicItem` subclasses keyed by
``custom_id``, so they keep working on messages sent before a restart.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from cakebot.bot.core import display_name
from cakebot.constants import discord_relative_time
from cakebot.database.engine import run_db
from cakebot.database.models import Kind, SortKey
from cakebot.engine.outcomes import render_throw_message, weighted_choice
from cakebot.services.embeds import build_error_embed, build_reply_embed, build_throw_embed
from cakebot.services.ledger_service import record_action

if TYPE_CHECKING:
    from cakebot.bot.core import CakeBot

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Persistent buttons
# ---------------------------------------------------------------------------
class ThrowAgainButton(
    discord.ui.DynamicItem[discord.ui.Button],
    template=r"cake:(?P<thrower>[0-9]+),(?P<target>[0-9]+)",
):
    """Throw another cake; whoever clicks throws at the other party."""

    def __init__(self, thrower_id: int, target_id: int) -> None:
        super().__init__(
            discord.ui.Button(
                label="Throw another",
                style=discord.ButtonStyle.danger,
                custom_id=f"cake:{thrower_id},{target_id}",
            )
        )
        self.thrower_id = thrower_id
        self.target_id = target_id

    @classmethod
    async def from_custom_id(
        cls,
        interaction: discord.Interaction,
        item: discord.ui.Button,
        match,
    ) -> ThrowAgainButton:
        return cls(int(match["thrower"]), int(match["target"]))

    def target_for(self, clicker_id: int) -> int:
        """The target hits back at the thrower; anyone else piles on the target."""
        return self.thrower_id if clicker_id == self.target_id else self.target_id

    async def callback(self, interaction: discord.Interaction) -> None:
        cog: Cake | None = interaction.client.get_cog("Cake")  # type: ignore[attr-defined]
        if cog is None:
            return
        if not await cog.check_guild(interaction):
            return
        target_id = self.target_for(interaction.user.id)
        target = await cog.bot.resolve_person(interaction.guild, target_id)
        await cog.throw(interaction, target, ping=False)


class LeaderboardButton(
    discord.ui.DynamicItem[discord.ui.Button],
    template=r"leaderboard",
):
    """Show this server's member leaderboard by points."""

    def __init__(self) -> None:
        super().__init__(
            discord.ui.Button(
                label="Leaderboard",
                style=discord.ButtonStyle.primary,
                custom_id="leaderboard",
            )
        )

    @classmethod
    async def from_custom_id(
        cls,
        interaction: discord.Interaction,
        item: discord.ui.Button,
        match,
    ) -> LeaderboardButton:
        return cls()

    async def callback(self, interaction: discord.Interaction) -> None:
        meta = interaction.client.get_cog("Meta")  # type: ignore[attr-defined]
        if meta is not None:
            await meta.send_leaderboard(interaction, Kind.MEMBER, SortKey.POINTS)


def build_throw_view(thrower_id: int, target_id: int) -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    view.add_item(ThrowAgainButton(thrower_id, target_id))
    view.add_item(LeaderboardButton())
    return view


# ---------------------------------------------------------------------------
# Cog
# ---------------------------------------------------------------------------
class Cake(commands.Cog, name="Cake"):
    """Throw cakes, earn (or lose) points."""

    def __init__(self, bot: CakeBot, rng: random.Random | None = None) -> None:
        self.bot = bot
        self._rng = rng or random.Random()

    async def _reply_error(self, interaction: discord.Interaction, message: str) -> None:
        await interaction.response.send_message(
            embed=build_error_embed(self.bot.cfg, message), ephemeral=True
        )

    async def check_guild(self, interaction: discord.Interaction) -> bool:
        """Throws only count inside a server the bot has actually joined."""
        if interaction.guild is not None:
            return True
        if interaction.guild_id is not None:
            # Installed as an app in this server, but without the bot scope
            invite = discord.utils.oauth_url(self.bot.application_id or 0)
            await interaction.response.send_message(
                content=invite,
                embed=build_reply_embed(
                    self.bot.cfg,
                    "Oops!",
                    "I'm in this server without the bot scope, please reinvite me",
                ),
            )
        else:
            await interaction.response.send_message(
                embed=build_reply_embed(self.bot.cfg, "Oops!", "You can only /cake in servers!")
            )
        return False

    def pick_random_target(self, interaction: discord.Interaction) -> discord.Member | None:
        """Any cached human member of the guild other than the thrower."""
        guild = interaction.guild
        if guild is None:
            return None
        candidates = [
            m for m in guild.members
            if not m.bot and m.id != interaction.user.id
        ]
        return self._rng.choice(candidates) if candidates else None

    async def throw(
        self,
        interaction: discord.Interaction,
        target: discord.Member | discord.User | None,
        *,
        ping: bool,
    ) -> None:
        """Run one throw by ``interaction.user`` at *target* and reply."""
        cfg = self.bot.cfg
        if target is None:
            await self._reply_error(
                interaction, "You have somehow managed to cake a ghost, good job."
            )
            return
        if target.bot:
            await self._reply_error(interaction, "You can't throw a cake at a bot!")
            return
        if target.id == interaction.user.id:
            await self._reply_error(
                interaction, "I appreciate the enthusiasm, but you can't cake yourself."
            )
            return

        guild = interaction.guild
        if guild is None:
            await self.check_guild(interaction)
            return

        outcome = weighted_choice(cfg.outcomes, self._rng)
        result = await run_db(
            record_action,
            self.bot.engine,
            str(interaction.user.id),
            str(guild.id),
            guild.name,
            outcome.value,
            cfg.max_cakes_today,
        )
        if not result.success:
            await self._reply_error(
                interaction,
                "You have run out of cakes for today, cakes will refresh "
                f"{discord_relative_time(result.next_reset)}",
            )
            return

        thrower_name = display_name(interaction.user)
        target_name = display_name(target)
        logger.info("%s threw at %s (%+d)", thrower_name, target_name, outcome.value)

        message = render_throw_message(
            outcome,
            thrower_name,
            target_name,
            first_throw=result.member.cakes == 1,
            rng=self._rng,
        )
        gif_url = await self.bot.gifs.random_gif()
        await interaction.response.send_message(
            content=target.mention if ping else None,
            embed=build_throw_embed(cfg, outcome.title, message, gif_url),
            view=build_throw_view(interaction.user.id, target.id),
        )

    # -------------------------------------------------------------------
    # /cake
    # -------------------------------------------------------------------
    @app_commands.command(name="cake", description="Throw a cake at someone!")
    @app_commands.describe(target="The person you want to throw a cake at")
    async def cake(
        self,
        interaction: discord.Interaction,
        target: discord.User | None = None,
    ) -> None:
        if not await self.check_guild(interaction):
            return
        person: discord.Member | discord.User | None = target
        if person is None:
            person = self.pick_random_target(interaction)
            if person is None:
                await self._reply_error(
                    interaction,
                    "Sorry I'm too dumb to figure out who you want to throw a cake at",
                )
                return
        await self.throw(interaction, person, ping=True)


async def setup(bot: CakeBot) -> None:
    bot.add_dynamic_items(ThrowAgainButton, LeaderboardButton)
    await bot.add_cog(Cake(bot))
