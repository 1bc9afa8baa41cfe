"""
cakebot.bot.core — Bot Instance & Cog Loader
=============================================

Defines :class:`CakeBot`, a ``commands.Bot`` subclass that:

1. Stores the shared config (``bot.cfg``), DB engine (``bot.engine``) and
   GIF index (``bot.gifs``) so every Cog can reach them via ``self.bot``.
2. Loads every Cog listed in :data:`EXTENSIONS` and registers the
   persistent buttons, so "Throw another" keeps working after a restart.
3. Syncs the slash-command tree on startup (guild-scoped for dev, global
   for production — controlled by the ``DEV_GUILD_ID`` env var).
"""

from __future__ import annotations

import logging
import os

import discord
from discord import app_commands
from discord.ext import commands
from sqlalchemy import Engine

from cakebot.config import CakeConfig
from cakebot.constants import GHOST_NAME
from cakebot.database.engine import close_db
from cakebot.services.asset_service import GifIndex
from cakebot.services.embeds import build_error_embed

logger = logging.getLogger(__name__)

# Cog modules to load on startup.
EXTENSIONS: list[str] = [
    "cakebot.bot.cogs.cake",
    "cakebot.bot.cogs.meta",
]


def display_name(person: discord.abc.User | None) -> str:
    """Best available name for a member or user; ``Ghost`` when gone."""
    if person is None:
        return GHOST_NAME
    return person.display_name or person.name or str(person.id)


class CakeBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`CakeConfig` from ``config.yaml``.
    engine:
        A SQLAlchemy :class:`Engine` for the cake ledger.
    gifs:
        Shared :class:`GifIndex` used for throw images.
    """

    def __init__(self, cfg: CakeConfig, engine: Engine, gifs: GifIndex) -> None:
        # GUILD_MEMBERS is privileged (enable it in the Developer Portal);
        # /cake without a target picks from the member cache.
        intents = discord.Intents.default()
        intents.members = True
        intents.presences = False

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            description="Throw cakes at your friends!",
        )

        # Attach shared state so Cogs can read it via self.bot.*
        self.cfg = cfg
        self.engine = engine
        self.gifs = gifs

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load the cogs before connecting.

        A cog that fails to import is logged and skipped; the rest of the
        bot still comes up.
        """
        self.tree.on_error = self.on_app_command_error
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
            except commands.ExtensionError as exc:
                logger.error("Could not load %s: %s", ext, exc)
            else:
                logger.info("Loaded %s", ext)

    async def on_ready(self) -> None:
        assert self.user is not None
        logger.info("Connected as %s (%s) in %d servers", self.user, self.user.id, len(self.guilds))

        if not self.guilds:
            logger.critical(
                "No servers!? You probably didn't invite me with the bot scope."
            )
            await self.close()
            return

        await self.sync_commands(os.getenv("DEV_GUILD_ID"))

    async def sync_commands(self, dev_guild_id: str | None = None) -> int:
        """Push the slash commands to Discord.

        With *dev_guild_id* the global commands are copied into that one
        server, where updates show up instantly instead of after the global
        propagation delay.
        """
        scope = discord.Object(id=int(dev_guild_id)) if dev_guild_id else None
        if scope is not None:
            self.tree.copy_global_to(guild=scope)
        synced = await self.tree.sync(guild=scope)
        logger.info("Synced %d slash commands (%s)", len(synced), dev_guild_id or "global")
        return len(synced)

    async def close(self) -> None:
        """Graceful shutdown — release the DB connections."""
        logger.info("Bot shutting down…")
        close_db(self.engine)
        await super().close()

    # -----------------------------------------------------------------------
    # Shared helpers
    # -----------------------------------------------------------------------
    async def resolve_person(
        self, guild: discord.Guild | None, user_id: int
    ) -> discord.Member | discord.User | None:
        """Find a member of *guild*, falling back to the global user."""
        if guild is not None:
            member = guild.get_member(user_id)
            if member is not None:
                return member
            try:
                return await guild.fetch_member(user_id)
            except discord.HTTPException:
                pass
        user = self.get_user(user_id)
        if user is not None:
            return user
        try:
            return await self.fetch_user(user_id)
        except discord.HTTPException:
            return None

    async def on_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        """Log unexpected command failures and tell the user something broke."""
        command = interaction.command.name if interaction.command else "?"
        logger.error("Command /%s failed", command, exc_info=error)
        embed = build_error_embed(self.cfg, "Something went wrong, please try again later.")
        if interaction.response.is_done():
            await interaction.followup.send(embed=embed, ephemeral=True)
        else:
            await interaction.response.send_message(embed=embed, ephemeral=True)
