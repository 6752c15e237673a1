# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Daily mood summaries: one calendar day of mood entries, reduced to a mean."""

from collections import OrderedDict
from typing import Iterable, List

from engine.dates import local_day, to_local
from engine.schemas import ActivityRecord, DailySummary


def build_daily_summaries(entries: Iterable[ActivityRecord]) -> List[DailySummary]:
    """Group rated entries by local day. Oldest day first; unrated entries skipped."""
    by_day = OrderedDict()
    for entry in sorted(entries, key=lambda e: to_local(e.occurred_at)):
        if entry.mood is None:
            continue
        by_day.setdefault(local_day(entry.occurred_at), []).append(entry)

    return [
        DailySummary(
            date=day,
            entries=day_entries,
            average_mood=sum(e.mood for e in day_entries) / len(day_entries),
        )
        for day, day_entries in by_day.items()
    ]
