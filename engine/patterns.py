# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Pattern Insight Detector — descriptive observations over mood history.

Pure functions. detect_patterns() runs six detectors in a fixed order,
concatenates what they find and keeps the first MAX_INSIGHTS. Order of
detectors is the only ranking; there is no cross-detector importance merge.

Thresholds are product-tuned constants and must stay exactly as below.
"""

import logging
from collections import OrderedDict
from datetime import datetime
from typing import Dict, List, Optional

from activity.tags import get_tag
from engine.dates import ONE_DAY, DAY_NAMES, local_day, long_date, to_local
from engine.schemas import ActivityRecord, DailySummary, Insight

logger = logging.getLogger("solace.patterns")

MAX_INSIGHTS = 6
MIN_ENTRIES = 3

STREAK_MIN_DAYS = 3
STREAK_HIGH_DAYS = 7

TREND_MIN_SUMMARIES = 5
TREND_WINDOW = 7
TREND_THRESHOLD = 0.5

DAY_MIN_ENTRIES = 2
DAY_MIN_BUCKETS = 3
DAY_THRESHOLD = 0.3

ACTIVITY_MIN_ENTRIES = 3
ACTIVITY_THRESHOLD = 0.5
ACTIVITY_MAX_INSIGHTS = 2

TIME_MIN_ENTRIES = 3
TIME_MIN_BUCKETS = 2
TIME_THRESHOLD = 0.5

PEAK_MIN_SUMMARIES = 3
PEAK_MIN_MOOD = 4.5

TIME_ICONS = {"morning": "sunny", "afternoon": "partly-sunny", "evening": "moon"}


def _mean(values) -> float:
    values = list(values)
    return sum(values) / len(values)


def _by_date(summaries: List[DailySummary]) -> List[DailySummary]:
    return sorted(summaries, key=lambda s: s.date)


def time_of_day(ts: datetime) -> str:
    """
    morning 05-11h, afternoon 12-16h, evening 17-23h.

    Hours 00-04 also count as evening (late night), so there are only
    three buckets.
    """
    hour = to_local(ts).hour
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    return "evening"


# ============================================================================
# Detectors
# ============================================================================

def detect_streak(summaries: List[DailySummary]) -> Optional[Insight]:
    """Run of consecutive summary days ending at the most recent one."""
    if not summaries:
        return None
    days = {s.date for s in summaries}
    cursor = max(days)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= ONE_DAY

    if streak < STREAK_MIN_DAYS:
        return None
    return Insight(
        id="streak",
        type="streak",
        title=f"{streak} Day Streak!",
        description=f"You've tracked your mood {streak} days in a row. Keep it up!",
        priority="high" if streak >= STREAK_HIGH_DAYS else "medium",
        icon="flame",
    )


def detect_trend(summaries: List[DailySummary]) -> Optional[Insight]:
    """Second half of the last week against the first half."""
    if len(summaries) < TREND_MIN_SUMMARIES:
        return None
    recent = _by_date(summaries)[-TREND_WINDOW:]
    half = len(recent) // 2
    diff = _mean(s.average_mood for s in recent[half:]) - _mean(s.average_mood for s in recent[:half])

    if diff > TREND_THRESHOLD:
        return Insight(
            id="trend-improving",
            type="trend",
            direction="improving",
            title="Mood Improving",
            description="Your mood has been trending upward. Great progress!",
            priority="high",
            icon="trending-up",
        )
    if diff < -TREND_THRESHOLD:
        return Insight(
            id="trend-declining",
            type="trend",
            direction="declining",
            title="Mood Dip Detected",
            description="Your mood has dipped recently. Consider what might be affecting you.",
            priority="high",
            icon="trending-down",
        )
    return None


def detect_day_patterns(entries: List[ActivityRecord]) -> List[Insight]:
    """Best and worst weekday against the mean of weekday means."""
    buckets: Dict[int, List[int]] = {}
    for entry in entries:
        buckets.setdefault(local_day(entry.occurred_at).weekday(), []).append(entry.mood)

    averages = [(day, _mean(moods)) for day, moods in sorted(buckets.items())
                if len(moods) >= DAY_MIN_ENTRIES]
    if len(averages) < DAY_MIN_BUCKETS:
        return []

    overall = _mean(avg for _, avg in averages)
    insights = []

    best_day, best_avg = max(averages, key=lambda d: d[1])
    if best_avg - overall > DAY_THRESHOLD:
        name = DAY_NAMES[best_day]
        insights.append(Insight(
            id="best-day",
            type="day-pattern",
            title=f"{name}s Are Your Best",
            description=f"You tend to feel better on {name}s (avg: {best_avg:.1f}).",
            icon="sunny",
        ))

    worst_day, worst_avg = min(averages, key=lambda d: d[1])
    if overall - worst_avg > DAY_THRESHOLD:
        name = DAY_NAMES[worst_day]
        insights.append(Insight(
            id="worst-day",
            type="day-pattern",
            title=f"{name}s Can Be Tough",
            description=f"{name}s tend to be more challenging for you.",
            icon="cloudy",
        ))

    return insights


def detect_activity_correlations(entries: List[ActivityRecord]) -> List[Insight]:
    """Tags whose entries average clearly above the overall mean."""
    by_tag: Dict[str, List[int]] = OrderedDict()
    for entry in entries:
        for tag in entry.activities:
            by_tag.setdefault(tag, []).append(entry.mood)

    overall = _mean(e.mood for e in entries)
    insights = []
    for tag_id, moods in by_tag.items():
        if len(moods) < ACTIVITY_MIN_ENTRIES:
            continue
        avg = _mean(moods)
        if avg - overall <= ACTIVITY_THRESHOLD:
            continue
        tag = get_tag(tag_id)
        label = tag.label if tag else tag_id
        insights.append(Insight(
            id=f"activity-{tag_id}",
            type="activity-correlation",
            title=f"{label} Boosts Your Mood",
            description=f"When you do {label.lower()}, your mood averages {avg:.1f}.",
            icon=tag.icon if tag else "checkmark",
        ))
    return insights[:ACTIVITY_MAX_INSIGHTS]


def detect_time_patterns(entries: List[ActivityRecord]) -> List[Insight]:
    """Best part of the day, if it clearly beats the worst."""
    buckets: Dict[str, List[int]] = OrderedDict(
        (period, []) for period in ("morning", "afternoon", "evening")
    )
    for entry in entries:
        buckets[time_of_day(entry.occurred_at)].append(entry.mood)

    averages = [(period, _mean(moods)) for period, moods in buckets.items()
                if len(moods) >= TIME_MIN_ENTRIES]
    if len(averages) < TIME_MIN_BUCKETS:
        return []

    best, best_avg = max(averages, key=lambda p: p[1])
    _, worst_avg = min(averages, key=lambda p: p[1])
    if best_avg - worst_avg <= TIME_THRESHOLD:
        return []

    return [Insight(
        id="time-pattern",
        type="time-pattern",
        title=f"Best in the {best.capitalize()}",
        description=f"You tend to feel better in the {best} (avg: {best_avg:.1f}).",
        icon=TIME_ICONS[best],
    )]


def detect_peak_day(summaries: List[DailySummary]) -> List[Insight]:
    if len(summaries) < PEAK_MIN_SUMMARIES:
        return []
    best = max(summaries, key=lambda s: s.average_mood)
    if best.average_mood < PEAK_MIN_MOOD:
        return []
    return [Insight(
        id="best-day-ever",
        type="milestone",
        title="Peak Day",
        description=f"{long_date(best.date)} was your best day recently ({best.average_mood:.1f})!",
        priority="low",
        icon="star",
    )]


# ============================================================================
# Entry point
# ============================================================================

def detect_patterns(
    entries: List[ActivityRecord],
    summaries: List[DailySummary],
    limit: int = MAX_INSIGHTS,
) -> List[Insight]:
    """
    All insights for the given mood entries and daily summaries.

    Entries without a mood value are ignored. Fewer than three rated
    entries yields no insights at all.
    """
    rated = [e for e in entries if e.mood is not None]
    if len(rated) < MIN_ENTRIES:
        return []

    insights: List[Insight] = []
    streak = detect_streak(summaries)
    if streak:
        insights.append(streak)
    trend = detect_trend(summaries)
    if trend:
        insights.append(trend)
    insights.extend(detect_day_patterns(rated))
    insights.extend(detect_activity_correlations(rated))
    insights.extend(detect_time_patterns(rated))
    insights.extend(detect_peak_day(summaries))

    logger.debug("Detected %d insights from %d entries", len(insights), len(rated))
    return insights[:limit]
