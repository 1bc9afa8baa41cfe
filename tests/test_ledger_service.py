"""
tests/test_ledger_service.py — Throw Recording Integration Tests
=================================================================
Covers record_action: lazy row creation, the daily window, the admission
limit, three-level aggregate updates, validation and rollback.

Uses an in-memory SQLite database via the shared conftest fixtures.
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from cakebot.constants import DAY_SECONDS
from cakebot.database.models import Guild, Member, User
from cakebot.errors import InvalidArgument, StorageError
from cakebot.services import ledger_service
from cakebot.services.erasure_service import find_drift
from cakebot.services.ledger_service import record_action

T0 = 1_700_000_000


@pytest.fixture
def engine(db_engine):
    """Re-use the shared conftest db_engine (SQLite, StaticPool)."""
    return db_engine


def _rows(engine, user_id="u1", guild_id="g1"):
    with Session(engine) as session:
        return (
            session.get(Guild, guild_id),
            session.get(User, user_id),
            session.get(Member, (user_id, guild_id)),
        )


class TestRecordAction:
    """The full write path."""

    def test_creates_rows_on_first_throw(self, engine):
        result = record_action(engine, "u1", "g1", "Guild", 5, 3, now=T0)

        assert result.success
        guild, user, member = _rows(engine)
        assert (guild.name, guild.cakes, guild.points) == ("Guild", 1, 5)
        assert (user.cakes, user.points) == (1, 5)
        assert (member.cakes, member.points, member.cakes_today) == (1, 5, 1)
        assert member.cakes_today_reset == T0

    def test_end_to_end_scenario(self, engine):
        first = record_action(engine, "u1", "g1", "Guild", 5, 3, now=T0)
        assert first.success
        assert (first.member.cakes, first.member.points, first.member.cakes_today) == (1, 5, 1)

        record_action(engine, "u1", "g1", "Guild", -2, 3, now=T0 + 10)
        third = record_action(engine, "u1", "g1", "Guild", -2, 3, now=T0 + 20)
        assert third.success
        assert (third.member.cakes, third.member.points, third.member.cakes_today) == (3, 1, 3)

        fourth = record_action(engine, "u1", "g1", "Guild", 5, 3, now=T0 + 30)
        assert not fourth.success
        assert (fourth.member.cakes, fourth.member.points, fourth.member.cakes_today) == (3, 1, 3)

        guild, user, _ = _rows(engine)
        assert (guild.cakes, guild.points) == (3, 1)
        assert (user.cakes, user.points) == (3, 1)

    def test_admission_boundary(self, engine):
        counts = []
        for i in range(3):
            result = record_action(engine, "u1", "g1", "Guild", 1, 3, now=T0 + i)
            assert result.success
            counts.append(result.member.cakes_today)
        assert counts == [1, 2, 3]

        refused = record_action(engine, "u1", "g1", "Guild", 1, 3, now=T0 + 100)
        assert not refused.success
        assert refused.member.cakes_today == 3

    def test_window_does_not_reset_one_second_early(self, engine):
        record_action(engine, "u1", "g1", "Guild", 1, 1, now=T0)

        result = record_action(engine, "u1", "g1", "Guild", 1, 1, now=T0 + DAY_SECONDS - 1)

        assert not result.success
        assert result.member.cakes_today_reset == T0
        assert result.member.cakes_today == 1

    def test_window_resets_after_exactly_one_day(self, engine):
        record_action(engine, "u1", "g1", "Guild", 1, 1, now=T0)

        result = record_action(engine, "u1", "g1", "Guild", 1, 1, now=T0 + DAY_SECONDS)

        assert result.success
        assert result.member.cakes_today_reset == T0 + DAY_SECONDS
        assert result.member.cakes_today == 1
        assert result.member.cakes == 2

    def test_refused_throw_still_persists_window_reset(self, engine):
        # Window fields written by a reset survive the refusals that follow
        record_action(engine, "u1", "g1", "Guild", 1, 1, now=T0)
        record_action(engine, "u1", "g1", "Guild", 1, 1, now=T0 + DAY_SECONDS)
        refused = record_action(engine, "u1", "g1", "Guild", 1, 1, now=T0 + DAY_SECONDS + 5)

        assert not refused.success
        _, _, member = _rows(engine)
        assert member.cakes_today_reset == T0 + DAY_SECONDS

    def test_refused_throw_leaves_aggregates_alone(self, engine):
        record_action(engine, "u1", "g1", "Guild", 7, 1, now=T0)
        record_action(engine, "u1", "g1", "Renamed", 7, 1, now=T0 + 1)

        guild, user, member = _rows(engine)
        assert (guild.name, guild.cakes, guild.points) == ("Guild", 1, 7)
        assert (user.cakes, user.points) == (1, 7)
        assert (member.cakes, member.points) == (1, 7)

    def test_guild_name_refreshed_on_success(self, engine):
        record_action(engine, "u1", "g1", "Old Name", 1, 5, now=T0)
        record_action(engine, "u2", "g1", "New Name", 1, 5, now=T0 + 1)

        guild, _, _ = _rows(engine)
        assert guild.name == "New Name"
        assert guild.cakes == 2

    def test_missing_guild_name_falls_back_to_id(self, engine):
        record_action(engine, "u1", "g1", None, 1, 5, now=T0)

        guild, _, _ = _rows(engine)
        assert guild.name == "g1"

    def test_negative_points_are_applied(self, engine):
        record_action(engine, "u1", "g1", "Guild", -4, 5, now=T0)

        guild, user, member = _rows(engine)
        assert guild.points == user.points == member.points == -4
        assert guild.cakes == user.cakes == member.cakes == 1

    def test_user_totals_span_guilds(self, engine):
        record_action(engine, "u1", "g1", "One", 3, 5, now=T0)
        record_action(engine, "u1", "g2", "Two", 4, 5, now=T0)

        with Session(engine) as session:
            user = session.get(User, "u1")
            assert (user.cakes, user.points) == (2, 7)
            assert session.get(Guild, "g1").points == 3
            assert session.get(Guild, "g2").points == 4

    def test_limit_is_per_membership(self, engine):
        assert record_action(engine, "u1", "g1", "One", 1, 1, now=T0).success
        assert record_action(engine, "u1", "g2", "Two", 1, 1, now=T0).success
        assert record_action(engine, "u2", "g1", "One", 1, 1, now=T0).success

    def test_next_reset(self, engine):
        result = record_action(engine, "u1", "g1", "Guild", 1, 1, now=T0)
        assert result.next_reset == T0 + DAY_SECONDS

    def test_aggregates_stay_consistent(self, engine):
        throws = [
            ("u1", "g1", 5), ("u2", "g1", -3), ("u1", "g2", 2),
            ("u3", "g2", 10), ("u1", "g1", -1), ("u2", "g2", 4),
        ]
        for i, (user_id, guild_id, pts) in enumerate(throws):
            record_action(engine, user_id, guild_id, guild_id.upper(), pts, 2, now=T0 + i)
        assert find_drift(engine) == []

    def test_default_now_uses_wall_clock(self, engine):
        result = record_action(engine, "u1", "g1", "Guild", 1, 1)
        assert result.member.cakes_today_reset is not None
        assert result.member.cakes_today_reset > T0


class TestValidation:
    """Bad input is rejected before touching storage."""

    @pytest.mark.parametrize(
        "args",
        [
            ("", "g1", "Guild", 1, 3),
            ("u1", "", "Guild", 1, 3),
            ("u1", "g1", "Guild", 1, 0),
            ("u1", "g1", "Guild", 1, -1),
            ("u1", "g1", "Guild", 1.5, 3),
            ("u1", "g1", "Guild", 1, True),
        ],
    )
    def test_rejects_bad_input(self, engine, args):
        with pytest.raises(InvalidArgument):
            record_action(engine, *args)
        with Session(engine) as session:
            assert session.query(Guild).count() == 0

    def test_invalid_argument_is_a_value_error(self, engine):
        with pytest.raises(ValueError):
            record_action(engine, "", "g1", "Guild", 1, 3)


class TestRollback:
    """A failure mid-transaction leaves nothing behind."""

    def test_storage_failure_rolls_back_everything(self, engine, monkeypatch):
        def _boom(session, user_id, guild_id):
            raise OperationalError("INSERT INTO members", {}, Exception("disk I/O error"))

        monkeypatch.setattr(ledger_service, "get_or_create_member", _boom)

        with pytest.raises(StorageError):
            record_action(engine, "u1", "g1", "Guild", 5, 3, now=T0)

        with Session(engine) as session:
            assert session.get(Guild, "g1") is None
            assert session.get(User, "u1") is None

    def test_failure_after_increment_keeps_previous_totals(self, engine, monkeypatch):
        record_action(engine, "u1", "g1", "Guild", 5, 3, now=T0)

        real_member = ledger_service.get_or_create_member

        def _member_then_fail(session, user_id, guild_id):
            real_member(session, user_id, guild_id)
            session.get(Guild, guild_id).points += 1000
            session.flush()
            raise OperationalError("UPDATE members", {}, Exception("database is locked"))

        monkeypatch.setattr(ledger_service, "get_or_create_member", _member_then_fail)

        with pytest.raises(StorageError):
            record_action(engine, "u1", "g1", "Guild", 5, 3, now=T0 + 1)

        guild, user, member = _rows(engine)
        assert (guild.cakes, guild.points) == (1, 5)
        assert (member.cakes, member.points) == (1, 5)
