"""
tests/test_api_routes.py — FastAPI Route Integration Tests
============================================================
Exercises the public leaderboard API with the FastAPI TestClient against
the in-memory test database.

These tests verify:
- Health endpoint availability
- Leaderboard pagination and rank numbering
- Single-row lookups and 404s
- InvalidArgument → 400 and StorageError → 503 mapping
"""

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import column, select, table

from cakebot.api.deps import get_engine
from cakebot.api.main import app
from cakebot.errors import StorageError
from cakebot.services.ledger_service import record_action

T0 = 1_700_000_000


@pytest.fixture
def client(db_engine):
    """TestClient wired to the in-memory engine.

    Not used as a context manager, so the lifespan hook (which would open
    the real database) never runs.
    """
    app.dependency_overrides[get_engine] = lambda: db_engine
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded(db_engine):
    for i in range(12):
        record_action(db_engine, f"u{i}", "g1", "Bakery", i + 1, 5, now=T0)
    record_action(db_engine, "u0", "g2", "Patisserie", 50, 5, now=T0)
    return db_engine


# ===========================================================================
# Health endpoint
# ===========================================================================
class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# ===========================================================================
# Leaderboards
# ===========================================================================
class TestLeaderboard:
    def test_guilds_board(self, client, seeded):
        resp = client.get("/api/leaderboard/guilds")
        assert resp.status_code == 200
        body = resp.json()
        assert body["kind"] == "guilds"
        assert body["sort"] == "points"
        assert [(e["id"], e["rank"]) for e in body["entries"]] == [("g1", 1), ("g2", 2)]
        assert body["entries"][0]["points"] == sum(range(1, 13))

    def test_users_board_second_page(self, client, seeded):
        resp = client.get("/api/leaderboard/users", params={"page": 2, "limit": 5})
        assert resp.status_code == 200
        entries = resp.json()["entries"]
        assert [e["rank"] for e in entries] == [6, 7, 8, 9, 10]

    def test_members_board(self, client, seeded):
        resp = client.get(
            "/api/leaderboard/members",
            params={"guild_id": "g2", "sort": "cakes"},
        )
        assert resp.status_code == 200
        entries = resp.json()["entries"]
        assert len(entries) == 1
        assert entries[0]["user_id"] == "u0"
        assert entries[0]["cakes_today"] == 1

    def test_members_board_without_guild_is_400(self, client):
        resp = client.get("/api/leaderboard/members")
        assert resp.status_code == 400
        assert "guild_id" in resp.json()["detail"]

    def test_unknown_kind_is_400(self, client):
        assert client.get("/api/leaderboard/channels").status_code == 400

    def test_unknown_sort_is_400(self, client):
        resp = client.get("/api/leaderboard/users", params={"sort": "name"})
        assert resp.status_code == 400

    def test_page_zero_is_rejected(self, client):
        assert client.get("/api/leaderboard/users", params={"page": 0}).status_code == 422

    def test_storage_failure_is_503(self, client, monkeypatch):
        from cakebot.api.routes import public

        def _down(*args, **kwargs):
            raise StorageError("database is locked")

        monkeypatch.setattr(public, "top_entries", _down)
        resp = client.get("/api/leaderboard/users")
        assert resp.status_code == 503
        assert resp.json() == {"detail": "Storage unavailable"}

    def test_storage_failure_is_logged_once(self, client, monkeypatch, caplog):
        from cakebot.services import leaderboard_service

        def _broken_query(kind, sort, guild_id):
            return select(column("id")).select_from(table("missing_table"))

        monkeypatch.setattr(leaderboard_service, "_top_query", _broken_query)
        caplog.set_level(logging.DEBUG, logger="cakebot")

        resp = client.get("/api/leaderboard/users")

        assert resp.status_code == 503
        errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert [r.name for r in errors] == ["cakebot.api.main"]


# ===========================================================================
# Single-row lookups
# ===========================================================================
class TestLookups:
    def test_guild(self, client, seeded):
        resp = client.get("/api/guilds/g2")
        assert resp.status_code == 200
        assert resp.json() == {"id": "g2", "name": "Patisserie", "cakes": 1, "points": 50}

    def test_user(self, client, seeded):
        resp = client.get("/api/users/u0")
        assert resp.status_code == 200
        assert resp.json() == {"id": "u0", "cakes": 2, "points": 51}

    def test_member(self, client, seeded):
        resp = client.get("/api/guilds/g1/members/u3")
        assert resp.status_code == 200
        body = resp.json()
        assert (body["cakes"], body["points"], body["cakes_today_reset"]) == (1, 4, T0)

    @pytest.mark.parametrize(
        "path",
        ["/api/guilds/nope", "/api/users/nope", "/api/guilds/g1/members/nope"],
    )
    def test_missing_is_404(self, client, seeded, path):
        assert client.get(path).status_code == 404
