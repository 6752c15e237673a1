# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Tests for Gamification and the WellnessAnalytics service handle."""

import logging
import sqlite3

import pytest

from engine.config import EngineConfig
from engine.events import Events, bus
from engine.gamification import FAILED, Gamification
from engine.protection import StreakProtection
from engine.rules import BadgeEngine
from engine.schemas import ActivityLogError, SolaceValidationError
from engine.service import WellnessAnalytics
from engine.streaks import StreakTracker
from helpers import NOW, TODAY, days_ago


@pytest.fixture
def game(log, clock):
    tracker = StreakTracker()
    protection = StreakProtection(cap=3, clock=clock)
    badges = BadgeEngine(log, tracker, clock=clock)
    g = Gamification(tracker, protection, badges, clock=clock)
    yield g
    for store in (tracker, protection, badges):
        store.close()


@pytest.fixture
def analytics(isolated_paths, clock):
    a = WellnessAnalytics(clock=clock)
    yield a
    a.close()


class TestRecordActivity:
    def test_committed_result(self, game, log):
        log.add_mood(4, at=NOW)
        result = game.record_activity("mood")
        assert result.committed
        assert result.streaks["mood"].current_streak == 1
        assert result.streaks["overall"].last_activity_date == TODAY
        assert [a.badge_id for a in result.new_badges] == ["first_mood"]

    def test_overall_advances_once_per_day(self, game):
        game.record_activity("mood")
        result = game.record_activity("journal")
        assert result.streaks["journal"].current_streak == 1
        assert result.streaks["overall"].current_streak == 1

    def test_unknown_kind(self, game):
        with pytest.raises(SolaceValidationError):
            game.record_activity("overall")

    def test_storage_failure_is_reported(self, game, monkeypatch, caplog):
        def boom(kind, day):
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(game.streaks, "update_streak", boom)
        with caplog.at_level(logging.WARNING, logger="solace.gamification"):
            result = game.record_activity("mood")
        assert result.status == FAILED
        assert not result.committed
        assert "locked" in result.error
        assert result.new_badges == []
        assert "record_activity(mood) failed" in caplog.text

    def test_log_failure_during_badges_is_reported(self, game, monkeypatch):
        def unreachable():
            raise ActivityLogError("activity log unreachable")

        monkeypatch.setattr(game.badges, "evaluate", unreachable)
        result = game.record_activity("mood")
        assert result.status == FAILED
        # the streak half already committed
        assert result.streaks["mood"].current_streak == 1

    def test_emits_activity_recorded(self, game):
        seen = []
        bus.on(Events.ACTIVITY_RECORDED, lambda e: seen.append(e.data["kind"]))
        game.record_activity("exercise")
        assert seen == ["exercise"]


class TestCelebrations:
    def test_pending_until_dismissed(self, game, log):
        for value in (1, 2, 3, 4, 5):
            log.add_mood(value, at=NOW)
        game.record_activity("mood")
        pending = {a.badge_id for a in game.pending_celebrations}
        assert {"first_mood", "mood_spectrum"} <= pending

        game.dismiss_celebration("first_mood")
        assert "first_mood" not in {a.badge_id for a in game.pending_celebrations}

        game.clear_pending_celebrations()
        assert game.pending_celebrations == []

    def test_summary(self, game, log):
        log.add_mood(3, at=NOW)
        game.record_activity("mood")
        assert game.use_protection("sick day") is True
        stats = game.summary()
        assert stats.streaks["mood"].current_streak == 1
        assert stats.protections_remaining == 2
        assert stats.days_tracked == 1
        assert [a.badge_id for a in stats.earned_badges] == ["first_mood"]


class TestWellnessAnalytics:
    def test_log_mood_flow(self, analytics):
        for n in (2, 1):
            analytics.log_mood(4, at=days_ago(n))
        result = analytics.log_mood(3, activities=["nature"])
        assert result.committed
        assert analytics.streak("mood").current_streak == 3
        assert analytics.all_streaks()["overall"].longest_streak == 3
        assert analytics.has_badge("streak_3")
        assert analytics.progress_towards("mood_10") == 30

    def test_insights(self, analytics):
        for n, value in ((2, 4), (1, 3), (0, 4)):
            analytics.log_mood(value, at=days_ago(n))
        seen = []
        bus.on(Events.INSIGHTS_GENERATED, lambda e: seen.append(e.data["ids"]))
        insights = analytics.insights()
        assert "streak" in [i.type for i in insights]
        assert seen == [[i.id for i in insights]]

    def test_insights_empty_when_log_unreachable(self, analytics, monkeypatch, caplog):
        def unreachable(*args, **kwargs):
            raise ActivityLogError("activity log unreachable")

        monkeypatch.setattr(analytics.log, "entries_for_last_days", unreachable)
        with caplog.at_level(logging.WARNING, logger="solace.service"):
            assert analytics.insights() == []
            assert analytics.proactive_triggers() == []
        assert "unreachable" in caplog.text

    def test_exercise_follow_up_and_dismiss(self, analytics):
        result = analytics.log_exercise("box-breathing", "Box Breathing")
        assert result.committed
        assert analytics.has_badge("first_exercise")

        triggers = analytics.proactive_triggers()
        assert [t.type for t in triggers] == ["check_in_after_exercise"]
        assert analytics.top_trigger().id == triggers[0].id

        analytics.dismiss_trigger(triggers[0].id)
        assert analytics.proactive_triggers() == []

    def test_struggling_surfaces_once(self, analytics):
        for n in (3, 2, 1):
            analytics.log_mood(1, at=days_ago(n))
        triggers = analytics.proactive_triggers()
        assert [t.type for t in triggers] == ["struggling"]
        analytics.dismiss_trigger(triggers[0].id)
        assert analytics.proactive_triggers() == []

    def test_protection_cap_from_config(self, isolated_paths, clock):
        a = WellnessAnalytics(config=EngineConfig(monthly_protection_cap=1), clock=clock)
        assert a.remaining_protections() == 1
        assert a.use_protection() is True
        assert a.use_protection() is False
        a.close()

    def test_log_journal(self, analytics):
        analytics.log_journal("long day", title="Sunday")
        assert analytics.has_badge("first_journal")
        assert [a.badge_id for a in analytics.earned_badges()] == ["first_journal"]

    def test_evaluate_badges_idempotent(self, analytics):
        analytics.log_mood(3)
        assert analytics.evaluate_badges() == []

    def test_backdated_entry_keeps_streak(self, analytics):
        for n in (4, 3, 2, 1, 0):
            analytics.log_mood(4, at=days_ago(n))
        result = analytics.log_mood(3, at=days_ago(10))
        assert result.committed

        state = analytics.streak("mood")
        assert state.current_streak == 5
        assert state.last_activity_date == TODAY
        assert analytics.all_streaks()["overall"].current_streak == 5

    def test_log_streaks_use_configured_window(self, isolated_paths, clock):
        a = WellnessAnalytics(config=EngineConfig(streak_window_days=3), clock=clock)
        for n in reversed(range(8)):
            a.log_mood(4, at=days_ago(n))
        # days 3..0 fall inside a three-day window
        assert a.log_streaks().mood == 4
        assert a.log_streaks().journal == 0
        assert a.streak("mood").current_streak == 8
        a.close()
