# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Tests for the pattern insight detectors."""

from datetime import datetime, timedelta

from activity.summaries import build_daily_summaries
from engine.patterns import (
    MAX_INSIGHTS, detect_activity_correlations, detect_day_patterns, detect_patterns,
    detect_peak_day, detect_streak, detect_time_patterns, detect_trend, time_of_day,
)
from engine.schemas import ActivityRecord
from helpers import TODAY, days_ago, mood, summaries_ending_today, summary


def _by_type(insights, kind):
    return [i for i in insights if i.type == kind]


class TestDetectPatterns:
    def test_fewer_than_three_entries(self):
        entries = [mood(4, days_ago(0)), mood(3, days_ago(1))]
        assert detect_patterns(entries, summaries_ending_today([3, 4])) == []

    def test_unrated_entries_do_not_count(self):
        journal = ActivityRecord(id="j1", kind="journal", occurred_at=days_ago(0), text="hi")
        entries = [mood(4, days_ago(0)), mood(3, days_ago(1)), journal]
        assert detect_patterns(entries, summaries_ending_today([3, 4])) == []

    def test_three_day_streak(self):
        entries = [mood(4, days_ago(0)), mood(3, days_ago(1)), mood(4, days_ago(2))]
        insights = detect_patterns(entries, build_daily_summaries(entries))
        streaks = _by_type(insights, "streak")
        assert len(streaks) == 1
        assert "3 Day Streak" in streaks[0].title
        assert streaks[0].priority == "medium"

    def test_improving_week(self):
        summaries = summaries_ending_today([2, 2, 3, 4, 4, 5, 5])
        entries = [mood(int(s.average_mood), datetime.combine(s.date, datetime.min.time()).replace(hour=10))
                   for s in summaries]
        trends = _by_type(detect_patterns(entries, summaries), "trend")
        assert [t.direction for t in trends] == ["improving"]
        assert trends[0].id == "trend-improving"

    def test_declining_week(self):
        summaries = summaries_ending_today([5, 5, 4, 4, 3, 2, 2])
        entries = [mood(3, days_ago(i)) for i in range(3)]
        trends = _by_type(detect_patterns(entries, summaries), "trend")
        assert [t.direction for t in trends] == ["declining"]

    def test_truncated_in_detector_order(self):
        entries = [mood(4, days_ago(i)) for i in range(3)]
        summaries = summaries_ending_today([2, 2, 3, 4, 4, 5, 5])
        insights = detect_patterns(entries, summaries, limit=1)
        assert [i.type for i in insights] == ["streak"]

    def test_never_more_than_max(self):
        entries = []
        # Mondays great, Wednesdays poor, mornings better than evenings
        for week in range(4):
            entries.append(mood(5, days_ago(7 * week, hour=8), ["nature", "social", "exercise"]))
            entries.append(mood(5, days_ago(7 * week + 1, hour=8), ["nature", "social", "exercise"]))
            entries.append(mood(1, days_ago(7 * week + 5, hour=21)))
            entries.append(mood(3, days_ago(7 * week + 6, hour=21)))
        summaries = summaries_ending_today([2, 2, 2, 3, 5, 5, 5])
        insights = detect_patterns(entries, summaries)
        assert len(insights) == MAX_INSIGHTS
        assert insights[0].type == "streak"


class TestStreak:
    def test_walks_back_from_latest_summary(self):
        summaries = [summary(TODAY - timedelta(days=d), 3) for d in (2, 3, 4, 6)]
        insight = detect_streak(summaries)
        assert insight.title == "3 Day Streak!"

    def test_week_is_high_priority(self):
        assert detect_streak(summaries_ending_today([3] * 7)).priority == "high"

    def test_two_days_is_nothing(self):
        assert detect_streak(summaries_ending_today([3, 3])) is None


class TestTrend:
    def test_needs_five_summaries(self):
        assert detect_trend(summaries_ending_today([1, 1, 5, 5])) is None

    def test_flat_is_nothing(self):
        assert detect_trend(summaries_ending_today([3, 3, 3, 3, 3, 3, 3])) is None

    def test_only_last_week_counts(self):
        # old highs are outside the seven-day window
        means = [5, 5, 5, 3, 3, 3, 3, 3, 3, 3]
        assert detect_trend(summaries_ending_today(means)) is None


class TestDayPatterns:
    def _week(self):
        # NOW is Monday; 6 days ago Tuesday, 5 days ago Wednesday
        return [
            mood(5, days_ago(0)), mood(5, days_ago(7)),
            mood(3, days_ago(6)), mood(3, days_ago(13)),
            mood(1, days_ago(5)), mood(1, days_ago(12)),
        ]

    def test_best_and_worst(self):
        insights = detect_day_patterns(self._week())
        assert [i.id for i in insights] == ["best-day", "worst-day"]
        assert insights[0].title == "Mondays Are Your Best"
        assert insights[1].title == "Wednesdays Can Be Tough"
        assert insights[0].priority == "medium"

    def test_needs_three_weekdays(self):
        assert detect_day_patterns(self._week()[:4]) == []

    def test_single_samples_ignored(self):
        entries = [mood(5, days_ago(0)), mood(3, days_ago(6)), mood(1, days_ago(5))]
        assert detect_day_patterns(entries) == []


class TestActivityCorrelations:
    def test_boost_and_cap(self):
        entries = [mood(5, days_ago(i), ["nature", "social", "exercise"]) for i in range(3)]
        entries += [mood(1, days_ago(i)) for i in range(3, 6)]
        insights = detect_activity_correlations(entries)
        assert [i.id for i in insights] == ["activity-nature", "activity-social"]
        assert insights[0].title == "Nature Boosts Your Mood"
        assert "averages 5.0" in insights[0].description

    def test_needs_three_entries_per_tag(self):
        entries = [mood(5, days_ago(i), ["nature"]) for i in range(2)]
        entries += [mood(1, days_ago(i)) for i in range(2, 6)]
        assert detect_activity_correlations(entries) == []

    def test_unknown_tag_uses_raw_id(self):
        entries = [mood(5, days_ago(i), ["gaming"]) for i in range(3)]
        entries += [mood(1, days_ago(i)) for i in range(3, 6)]
        assert detect_activity_correlations(entries)[0].title == "gaming Boosts Your Mood"


class TestTimePatterns:
    def test_buckets(self):
        assert time_of_day(datetime(2026, 10, 19, 5)) == "morning"
        assert time_of_day(datetime(2026, 10, 19, 12)) == "afternoon"
        assert time_of_day(datetime(2026, 10, 19, 17)) == "evening"
        assert time_of_day(datetime(2026, 10, 19, 2)) == "evening"

    def test_morning_person(self):
        entries = [mood(5, days_ago(i, hour=8)) for i in range(3)]
        entries += [mood(2, days_ago(i, hour=21)) for i in range(3)]
        insights = detect_time_patterns(entries)
        assert len(insights) == 1
        assert insights[0].title == "Best in the Morning"
        assert insights[0].icon == "sunny"

    def test_small_gap_is_nothing(self):
        entries = [mood(4, days_ago(i, hour=8)) for i in range(3)]
        entries += [mood(4, days_ago(i, hour=21)) for i in range(3)]
        assert detect_time_patterns(entries) == []


class TestPeakDay:
    def test_peak(self):
        insights = detect_peak_day(summaries_ending_today([3, 3.5, 4.8]))
        assert len(insights) == 1
        assert insights[0].priority == "low"
        assert "Monday, Oct 19" in insights[0].description

    def test_below_threshold(self):
        assert detect_peak_day(summaries_ending_today([3, 4, 4.4])) == []
