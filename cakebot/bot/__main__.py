"""
cakebot.bot.__main__ — Entry point for ``python -m cakebot.bot``
================================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (soft settings) and attach the log file.
3. Create the SQLAlchemy engine and ensure tables exist.
4. Create the CakeBot and hand it config + engine + GIF index.
5. Start the bot (blocking — runs the asyncio event loop).

Run with::

    python -m cakebot.bot
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from cakebot.bot.core import CakeBot
from cakebot.config import load_config
from cakebot.database.engine import create_db_engine, init_db
from cakebot.services.asset_service import GifIndex

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_FORMAT = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"

logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT,
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("cakebot")


def _attach_log_file(path: str) -> None:
    """Append every log record to *path* as well as stderr."""
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    logging.getLogger().addHandler(handler)


def main() -> None:
    """Bootstrap and run the cake bot."""

    # 1. Environment variables (secrets).
    load_dotenv()

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "your-discord-bot-token-here":
        logger.critical(
            "DISCORD_TOKEN is not set.  "
            "Copy .env.example → .env and paste your bot token."
        )
        sys.exit(1)

    # 2. Soft configuration.
    cfg = load_config()
    if cfg.log_file:
        _attach_log_file(cfg.log_file)
    logger.info(
        "Config loaded — %d outcomes, %d cakes per day",
        len(cfg.outcomes), cfg.max_cakes_today,
    )

    # 3. Database.
    engine = create_db_engine()
    init_db(engine)

    # 4. Bot.
    bot = CakeBot(cfg=cfg, engine=engine, gifs=GifIndex(cfg.assets_url))

    # 5. Run (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting cake bot…")
    try:
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
