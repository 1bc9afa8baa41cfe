"""
cakebot.config — YAML Configuration Loader
===========================================

**Why this file exists:**
This module reads ``config.yaml`` for the bot's soft settings: the daily
cake allowance, leaderboard size, where the artwork lives, the Magic 8 Ball
answers and the table of throw outcomes.  Secrets (the Discord token, the
database URL) come from the environment via ``.env`` instead.

Usage::

    from cakebot.config import load_config

    cfg = load_config()              # reads ./config.yaml by default
    print(cfg.max_cakes_today)       # 5
    print(cfg.outcomes[0].title)     # "Splat!"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from cakebot.constants import (
    DEFAULT_EMBED_COLOR,
    DEFAULT_LEADERBOARD_SIZE,
    DEFAULT_MAX_CAKES_TODAY,
)
from cakebot.engine.outcomes import CakeOutcome, parse_outcome
from cakebot.errors import InvalidArgument


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class CakeConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Artwork: icon.png, index.txt and the GIFs it lists
    assets_url: str

    # Throw table and 8-ball answers
    outcomes: tuple[CakeOutcome, ...]
    magic8ball: tuple[str, ...]

    # Gameplay
    max_cakes_today: int = DEFAULT_MAX_CAKES_TODAY
    leaderboard_size: int = DEFAULT_LEADERBOARD_SIZE

    # Presentation
    embed_color: int = DEFAULT_EMBED_COLOR

    # Optional
    log_file: str | None = "logs"  # Appended log file; None disables it

    @property
    def icon_url(self) -> str:
        return self.assets_url + "icon.png"


def _parse_color(value: object) -> int:
    """Accept ``0xF5A9B8``, ``16099768`` or ``"#F5A9B8"``."""
    if isinstance(value, int):
        return value
    return int(str(value).lstrip("#"), 16)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> CakeConfig:
    """Read *path* and return a :class:`CakeConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    InvalidArgument
        If a value is present but unusable (e.g. ``max_cakes_today: 0``).
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    max_cakes_today = int(raw.get("max_cakes_today", DEFAULT_MAX_CAKES_TODAY))
    if max_cakes_today <= 0:
        raise InvalidArgument("max_cakes_today must be greater than 0")
    leaderboard_size = int(raw.get("leaderboard_size", DEFAULT_LEADERBOARD_SIZE))
    if leaderboard_size <= 0:
        raise InvalidArgument("leaderboard_size must be greater than 0")

    outcomes = tuple(parse_outcome(o) for o in raw["outcomes"])
    if not outcomes:
        raise InvalidArgument("config.yaml must define at least one outcome")

    assets_url = str(raw["assets_url"])
    if not assets_url.endswith("/"):
        assets_url += "/"

    return CakeConfig(
        assets_url=assets_url,
        outcomes=outcomes,
        magic8ball=tuple(str(a) for a in raw["magic8ball"]),
        max_cakes_today=max_cakes_today,
        leaderboard_size=leaderboard_size,
        embed_color=_parse_color(raw.get("embed_color", DEFAULT_EMBED_COLOR)),
        log_file=raw.get("log_file", "logs") or None,
    )
