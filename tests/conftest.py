"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import Engine
from sqlalchemy.pool import StaticPool

from cakebot.config import CakeConfig
from cakebot.database.engine import create_db_engine, init_db
from cakebot.engine.outcomes import CakeOutcome


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Cakebot tables.

    Built through ``create_db_engine`` so the foreign-key pragma and the
    ``BEGIN IMMEDIATE`` hook are the real ones.  Uses StaticPool so all
    threads share the same in-memory database (required by
    ``asyncio.to_thread`` inside ``run_db``).
    """
    engine = create_db_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


def make_config(**overrides) -> CakeConfig:
    """A small CakeConfig for cogs and embeds.  Usable outside fixtures."""
    values = dict(
        assets_url="https://assets.test/",
        outcomes=(
            CakeOutcome(title="Splat!", value=5, weight=1.0, messages=("%a hit %b",)),
        ),
        magic8ball=("Yes.", "No."),
        max_cakes_today=3,
        leaderboard_size=10,
        embed_color=0xF5A9B8,
        log_file=None,
    )
    values.update(overrides)
    return CakeConfig(**values)


@pytest.fixture
def cfg() -> CakeConfig:
    return make_config()
