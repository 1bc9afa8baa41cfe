"""
Cakebot — Throw Cakes at Your Friends on Discord
=================================================
Members throw cakes at each other; every throw earns (or loses) points.
Throws are rate limited per member per day and tallied at three levels:
per user across all servers, per server, and per member within a server.

Package layout::

    cakebot/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Window length, badges, presentation helpers
    ├── errors.py          # InvalidArgument / StorageError
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine, sessions, async helper
    │   └── models.py      # guilds, users, members
    ├── engine/
    │   └── outcomes.py    # Weighted throw outcomes (pure, no I/O)
    ├── services/
    │   ├── ledger_service.py       # record_action — the only write path
    │   ├── leaderboard_service.py  # top_entries / get_entity
    │   ├── erasure_service.py      # erase_user + drift check
    │   ├── asset_service.py        # Random GIF lookup
    │   └── embeds.py               # Discord embed builders
    ├── bot/
    │   ├── core.py        # Bot subclass, cog loader
    │   └── cogs/
    │       ├── cake.py    # /cake + "Throw another"
    │       └── meta.py    # /leaderboard, /deletedata, /invite, /magic8ball
    └── api/
        ├── main.py        # FastAPI app
        └── routes/        # Read-only leaderboard endpoints
"""

__version__ = "0.1.0"
