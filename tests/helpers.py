# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Shared builders for temporal tests."""

import uuid
from datetime import date, datetime, timedelta
from typing import List, Optional

from engine.schemas import ActivityRecord, DailySummary

# Fixed "now": Monday 2026-10-19, mid-morning
NOW = datetime(2026, 10, 19, 10, 30)
TODAY = NOW.date()


def days_ago(n: int, hour: int = 10) -> datetime:
    return (NOW - timedelta(days=n)).replace(hour=hour, minute=0, second=0, microsecond=0)


def mood(value: int, at: datetime, activities: Optional[List[str]] = None) -> ActivityRecord:
    return ActivityRecord(id=uuid.uuid4().hex, kind="mood", occurred_at=at,
                          mood=value, activities=activities or [])


def summary(day: date, average: float) -> DailySummary:
    return DailySummary(date=day, average_mood=average)


def summaries_ending_today(means: List[float]) -> List[DailySummary]:
    """One summary per day, oldest first, the last one dated TODAY."""
    n = len(means)
    return [summary(TODAY - timedelta(days=n - 1 - i), m) for i, m in enumerate(means)]
