# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Proactive Trigger Detector — signals that a check-in might be welcome.

Pure given inputs and `now`. Four independent checks, each producing at
most one trigger:

  struggling       3+ consecutive low days in the last week       high
  inactive         3+ whole days since the last check-in          medium
  tough_day_ahead  tomorrow's weekday runs clearly below average  medium
  mood_dip         last week's second half dropped > 0.7          high

Trigger ids are derived from type + the dates that ground them, so the
same situation keeps the same id and a dismissal sticks until the
situation changes.

Each trigger's `context` is written for a downstream conversational
consumer and handed to it verbatim.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from engine.dates import ONE_DAY, day_name, local_day, to_local
from engine.schemas import PRIORITY_ORDER, ActivityRecord, DailySummary, ProactiveTrigger

logger = logging.getLogger("solace.triggers")

STRUGGLING_LOOKBACK_DAYS = 7
STRUGGLING_MAX_MOOD = 2
STRUGGLING_MIN_DAYS = 3

INACTIVE_MIN_DAYS = 3

TOUGH_DAY_MIN_ENTRIES = 14
TOUGH_DAY_MIN_SAMPLES = 3
TOUGH_DAY_THRESHOLD = 0.5

DIP_MIN_SUMMARIES = 5
DIP_WINDOW = 7
DIP_THRESHOLD = 0.7


def _mean(values) -> float:
    values = list(values)
    return sum(values) / len(values)


# ============================================================================
# Checks
# ============================================================================

def detect_struggling(entries: List[ActivityRecord], now: datetime) -> Optional[ProactiveTrigger]:
    """Consecutive calendar days, newest first, with daily mean <= 2."""
    since = now - timedelta(days=STRUGGLING_LOOKBACK_DAYS)
    daily: Dict[date, List[int]] = {}
    for entry in entries:
        if to_local(entry.occurred_at) >= since:
            daily.setdefault(local_day(entry.occurred_at), []).append(entry.mood)
    if not daily:
        return None

    run: List[date] = []
    expected = max(daily)
    for day in sorted(daily, reverse=True):
        if day != expected or _mean(daily[day]) > STRUGGLING_MAX_MOOD:
            break
        run.append(day)
        expected = day - ONE_DAY

    days = len(run)
    if days < STRUGGLING_MIN_DAYS:
        return None
    return ProactiveTrigger(
        id=f"struggling-{run[-1].isoformat()}",
        type="struggling",
        title="I've noticed you're going through a tough time",
        message=f"The last {days} days have been challenging. Want to talk about what's going on?",
        context=(
            f"The user has logged low mood (average ≤2 out of 5) for {days} consecutive days. "
            "Approach with empathy and gentle curiosity. Ask open-ended questions about what "
            "they're experiencing. Validate their feelings before offering any suggestions."
        ),
        priority="high",
        detected_at=now,
        expires_at=now + timedelta(days=1),
    )


def detect_inactivity(last_check_in_at: Optional[datetime], now: datetime) -> Optional[ProactiveTrigger]:
    if last_check_in_at is None:
        return None
    last = to_local(last_check_in_at)
    days = (now - last) // timedelta(days=1)
    if days < INACTIVE_MIN_DAYS:
        return None
    return ProactiveTrigger(
        id=f"inactive-{last.date().isoformat()}",
        type="inactive",
        title="Haven't heard from you in a while",
        message=f"It's been {days} days. How have you been?",
        context=(
            f"The user hasn't logged their mood for {days} days. They may have been busy, "
            "avoiding difficult emotions, or simply forgot. Gently check in without making "
            "them feel guilty. Ask how they've been and what's been on their mind."
        ),
        priority="medium",
        detected_at=now,
        expires_at=now + timedelta(days=2),
    )


def detect_tough_day_ahead(entries: List[ActivityRecord], now: datetime) -> Optional[ProactiveTrigger]:
    """Tomorrow's weekday averages more than 0.5 below the all-time mean."""
    if len(entries) < TOUGH_DAY_MIN_ENTRIES:
        return None
    tomorrow = local_day(now) + ONE_DAY
    samples = [e.mood for e in entries if local_day(e.occurred_at).weekday() == tomorrow.weekday()]
    if len(samples) < TOUGH_DAY_MIN_SAMPLES:
        return None

    day_avg = _mean(samples)
    overall = _mean(e.mood for e in entries)
    if overall - day_avg <= TOUGH_DAY_THRESHOLD:
        return None

    name = day_name(tomorrow)
    return ProactiveTrigger(
        id=f"tough-day-ahead-{tomorrow.isoformat()}",
        type="tough_day_ahead",
        title=f"{name}s can be challenging",
        message=f"Based on your patterns, {name}s tend to be tougher. Want to prepare together?",
        context=(
            f"Based on the user's historical data, {name}s tend to have lower mood scores "
            f"(avg {day_avg:.1f} vs overall {overall:.1f}). Help them prepare by exploring what "
            f"typically happens on {name}s and suggesting proactive coping strategies."
        ),
        priority="medium",
        detected_at=now,
        expires_at=now + timedelta(days=1),
    )


def detect_mood_dip(summaries: List[DailySummary], now: datetime) -> Optional[ProactiveTrigger]:
    """Earlier half vs later half of the last seven daily summaries."""
    if len(summaries) < DIP_MIN_SUMMARIES:
        return None
    recent = sorted(summaries, key=lambda s: s.date)[-DIP_WINDOW:]
    mid = len(recent) // 2
    before = _mean(s.average_mood for s in recent[:mid])
    after = _mean(s.average_mood for s in recent[mid:])
    drop = before - after
    if drop <= DIP_THRESHOLD:
        return None

    return ProactiveTrigger(
        id=f"mood-dip-{recent[-1].date.isoformat()}",
        type="mood_dip",
        title="Your mood has shifted recently",
        message="I noticed things have felt harder lately. What's been going on?",
        context=(
            f"The user's mood has dropped by {drop:.1f} points over the last week "
            f"(from avg {before:.1f} to {after:.1f}). This is a significant shift. Gently "
            "explore what might have changed - life events, stress, sleep, etc. Focus on "
            "understanding before suggesting interventions."
        ),
        priority="high",
        detected_at=now,
        expires_at=now + timedelta(days=2),
    )


def exercise_follow_up_trigger(exercise_name: str, completed_at: datetime) -> ProactiveTrigger:
    """Low-priority check-in after an exercise, valid for a day."""
    completed_at = to_local(completed_at)
    return ProactiveTrigger(
        id=f"exercise-followup-{int(completed_at.timestamp() * 1000)}",
        type="check_in_after_exercise",
        title=f"How did {exercise_name} feel?",
        message="Want to reflect on what came up during the exercise?",
        context=(
            f'The user just completed the "{exercise_name}" exercise. Ask how it went, what '
            "they noticed, and if anything came up that they'd like to explore further. "
            "Be curious and supportive."
        ),
        priority="low",
        detected_at=completed_at,
        expires_at=completed_at + timedelta(days=1),
    )


# ============================================================================
# Entry point
# ============================================================================

def sort_by_priority(triggers: List[ProactiveTrigger]) -> List[ProactiveTrigger]:
    """high, medium, low; stable within a priority."""
    return sorted(triggers, key=lambda t: PRIORITY_ORDER[t.priority])


def detect_proactive_triggers(
    entries: List[ActivityRecord],
    summaries: List[DailySummary],
    last_check_in_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> List[ProactiveTrigger]:
    """Run all four checks and return what fired, highest priority first."""
    now = to_local(now or datetime.now())
    rated = [e for e in entries if e.mood is not None]

    checks = [
        detect_struggling(rated, now),
        detect_inactivity(last_check_in_at, now),
        detect_tough_day_ahead(rated, now),
        detect_mood_dip(summaries, now),
    ]
    triggers = [t for t in checks if t is not None]
    if triggers:
        logger.info("Proactive triggers: %s", ", ".join(t.id for t in triggers))
    return sort_by_priority(triggers)
