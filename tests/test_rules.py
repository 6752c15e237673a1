# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Tests for the badge catalog and the BadgeEngine rule pass."""

import logging
from datetime import timedelta

import pytest
from pydantic import ValidationError

from engine.badges import (
    BADGE_DEFINITIONS, EntryCount, FirstOfKind, StreakDays, get_badge, parse_requirement,
)
from engine.events import Events, bus
from engine.rules import BadgeEngine, BadgeStats, mood_improvement
from engine.schemas import BadgeDefinition, StreakState
from engine.streaks import StreakTracker
from helpers import NOW, TODAY, days_ago, summary


@pytest.fixture
def tracker(isolated_paths):
    t = StreakTracker()
    yield t
    t.close()


@pytest.fixture
def engine(log, tracker):
    e = BadgeEngine(log, tracker, clock=lambda: NOW)
    yield e
    e.close()


def _ids(awards):
    return {a.badge_id for a in awards}


def _bad_badge(badge_id, **requirement):
    return BadgeDefinition(id=badge_id, name=badge_id, description="", icon="x",
                           category="growth", rarity="common", requirement=requirement)


# ---------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------

class TestCatalog:
    def test_catalog_size_and_unique_ids(self):
        ids = [b.id for b in BADGE_DEFINITIONS]
        assert len(ids) == 25
        assert len(set(ids)) == 25

    def test_every_requirement_parses(self):
        for badge in BADGE_DEFINITIONS:
            parse_requirement(badge.requirement)

    def test_parse_variants(self):
        assert isinstance(parse_requirement({"type": "entry_count", "kind": "mood", "count": 3}), EntryCount)
        assert isinstance(parse_requirement({"type": "streak_days", "days": 7}), StreakDays)
        req = parse_requirement(get_badge("comeback_kid").requirement)
        assert isinstance(req, FirstOfKind) and req.action == "comeback_streak"

    def test_unknown_variant_fails_to_parse(self):
        with pytest.raises(ValidationError):
            parse_requirement({"type": "moon_phase", "count": 1})


# ---------------------------------------------------------------
# evaluate()
# ---------------------------------------------------------------

class TestEvaluate:
    def test_nothing_logged_nothing_awarded(self, engine):
        assert engine.evaluate() == []

    def test_first_mood(self, engine, log):
        log.add_mood(4, at=days_ago(0))
        awards = engine.evaluate()
        assert "first_mood" in _ids(awards)
        assert engine.has_badge("first_mood")

    def test_second_pass_awards_nothing(self, engine, log):
        for value in (1, 2, 3, 4, 5):
            log.add_mood(value, at=days_ago(0))
        first = engine.evaluate()
        assert {"first_mood", "mood_spectrum"} <= _ids(first)
        assert engine.evaluate() == []
        assert len(engine.earned_badges()) == len(first)

    def test_journal_and_completed_exercise(self, engine, log):
        log.add_journal("text", at=days_ago(0))
        log.add_exercise("breathing", status="abandoned", at=days_ago(0))
        ids = _ids(engine.evaluate())
        assert "first_journal" in ids
        assert "first_exercise" not in ids

    def test_streak_badge_from_overall(self, engine, tracker):
        for i in (2, 1, 0):
            tracker.update_streak("overall", TODAY - timedelta(days=i))
        assert "streak_3" in _ids(engine.evaluate())

    def test_streak_badge_counts_longest(self, engine, tracker):
        base = TODAY - timedelta(days=20)
        for i in range(7):
            tracker.update_streak("overall", base + timedelta(days=i))
        tracker.update_streak("overall", TODAY)
        assert {"streak_3", "streak_7"} <= _ids(engine.evaluate())

    def test_activities_and_days_tracked(self, engine, log):
        tags = ["work", "exercise", "social", "family", "sleep"]
        for i, tag in enumerate(tags):
            log.add_mood(3, activities=[tag], at=days_ago(i))
        log.add_mood(3, at=days_ago(5))
        log.add_mood(3, at=days_ago(6))
        ids = _ids(engine.evaluate())
        assert "activity_explorer" in ids
        assert "activity_master" not in ids
        assert "week_complete" in ids

    def test_emits_badge_awarded(self, engine, log):
        seen = []
        bus.on(Events.BADGE_AWARDED, lambda e: seen.append(e.data["badge_id"]))
        log.add_mood(4, at=days_ago(0))
        engine.evaluate()
        assert "first_mood" in seen

    def test_award_is_insert_once(self, engine):
        assert engine.award("first_mood") is not None
        assert engine.award("first_mood") is None
        assert len(engine.earned_badges()) == 1

    def test_award_metadata_roundtrip(self, engine):
        engine.award("streak_3", {"rarity": "common"})
        assert engine.earned_badges()[0].metadata == {"rarity": "common"}


class TestComeback:
    def _build(self, tracker, first_run, gap, second_run):
        day = TODAY - timedelta(days=first_run + gap + second_run - 1)
        for _ in range(first_run):
            tracker.update_streak("overall", day)
            day += timedelta(days=1)
        day += timedelta(days=gap)
        for _ in range(second_run):
            tracker.update_streak("overall", day)
            day += timedelta(days=1)

    def test_comeback_awarded(self, engine, tracker):
        self._build(tracker, first_run=8, gap=2, second_run=3)
        assert "comeback_kid" in _ids(engine.evaluate())

    def test_no_comeback_without_long_streak(self, engine, tracker):
        self._build(tracker, first_run=5, gap=2, second_run=3)
        assert "comeback_kid" not in _ids(engine.evaluate())

    def test_no_comeback_too_early(self, engine, tracker):
        self._build(tracker, first_run=8, gap=2, second_run=2)
        assert "comeback_kid" not in _ids(engine.evaluate())


class TestMalformedRequirements:
    def test_unknown_variant_skipped(self, log, tracker, caplog):
        catalog = [_bad_badge("weird", type="moon_phase"), get_badge("first_mood")]
        engine = BadgeEngine(log, tracker, catalog=catalog, clock=lambda: NOW)
        log.add_mood(3, at=days_ago(0))
        with caplog.at_level(logging.WARNING, logger="solace.rules"):
            awards = engine.evaluate()
        assert _ids(awards) == {"first_mood"}
        assert "weird" in caplog.text
        engine.close()

    def test_unknown_special_condition_skipped(self, log, tracker, caplog):
        catalog = [_bad_badge("mystery", type="first_of_kind", action="moonwalk")]
        engine = BadgeEngine(log, tracker, catalog=catalog, clock=lambda: NOW)
        with caplog.at_level(logging.WARNING, logger="solace.rules"):
            assert engine.evaluate() == []
        assert "moonwalk" in caplog.text
        assert engine.progress_towards("mystery") == 0
        engine.close()


# ---------------------------------------------------------------
# progress_towards()
# ---------------------------------------------------------------

class TestProgress:
    def test_ratio(self, engine, log):
        for i in range(4):
            log.add_mood(3, at=days_ago(i))
        assert engine.progress_towards("mood_10") == 40

    def test_capped_and_earned(self, engine, log):
        log.add_mood(3, at=days_ago(0))
        assert engine.progress_towards("first_mood") == 100
        engine.evaluate()
        assert engine.progress_towards("first_mood") == 100

    def test_all_moods(self, engine, log):
        log.add_mood(1, at=days_ago(0))
        log.add_mood(5, at=days_ago(1))
        assert engine.progress_towards("mood_spectrum") == 40

    def test_unknown_badge(self, engine):
        assert engine.progress_towards("no_such_badge") == 0

    def test_comeback_all_or_nothing(self, engine):
        assert engine.progress_towards("comeback_kid") == 0


# ---------------------------------------------------------------
# Mood improvement
# ---------------------------------------------------------------

class TestMoodImprovement:
    def test_percent_change(self):
        summaries = [summary(TODAY - timedelta(days=i), 4.0) for i in range(0, 14)]
        summaries += [summary(TODAY - timedelta(days=i), 3.0) for i in range(14, 28)]
        change = mood_improvement(summaries, 14, TODAY)
        assert change == pytest.approx(33.333, rel=1e-3)

    def test_needs_data_in_both_windows(self):
        summaries = [summary(TODAY - timedelta(days=i), 4.0) for i in range(0, 10)]
        assert mood_improvement(summaries, 14, TODAY) is None

    def test_badge_awarded_from_log(self, engine, log):
        for i in range(0, 14):
            log.add_mood(4, at=days_ago(i))
        for i in range(14, 28):
            log.add_mood(3, at=days_ago(i))
        ids = _ids(engine.evaluate())
        assert "mood_up_10" in ids
        # 30-day window has no prior month of data
        assert "mood_up_25" not in ids

    def test_stats_snapshot_shape(self, engine, log):
        log.add_mood(2, activities=["work"], at=days_ago(0))
        stats = engine.snapshot()
        assert isinstance(stats, BadgeStats)
        assert stats.entry_counts == {"mood": 1, "journal": 0, "exercise": 0}
        assert stats.moods_logged == {2}
        assert stats.activities_used == {"work"}
        assert stats.streak("overall") == StreakState(kind="overall")
        assert len(stats.daily_summaries) == 1
