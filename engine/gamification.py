# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Gamification: what happens after the user logs something.

    result = gamification.record_activity("mood")
    if result.committed:
        for award in result.new_badges: ...

record_activity() advances the kind's streak and the overall streak,
evaluates badges, and queues new awards as pending celebrations for the UI.
A storage failure doesn't raise: the result says "failed" and carries the
error, and the caller decides whether to reconcile or retry.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from engine.dates import local_day
from engine.events import Events, bus
from engine.protection import StreakProtection
from engine.rules import BadgeEngine
from engine.schemas import (
    ACTIVITY_KINDS, BadgeAward, SolaceError, StreakState, require_kind,
)
from engine.streaks import StreakTracker

logger = logging.getLogger("solace.gamification")

COMMITTED = "committed"
FAILED = "failed"


@dataclass
class RecordResult:
    """Outcome of one record_activity() call."""
    kind: str
    status: str = COMMITTED
    streaks: Dict[str, StreakState] = field(default_factory=dict)
    new_badges: List[BadgeAward] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def committed(self) -> bool:
        return self.status == COMMITTED


@dataclass
class GamificationStats:
    streaks: Dict[str, StreakState]
    earned_badges: List[BadgeAward]
    days_tracked: int
    protections_remaining: int


class Gamification:
    """Streaks, protection and badges behind one handle."""

    def __init__(
        self,
        streaks: StreakTracker,
        protection: StreakProtection,
        badges: BadgeEngine,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.streaks = streaks
        self.protection = protection
        self.badges = badges
        self._clock = clock or datetime.now
        self._pending: List[BadgeAward] = []

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_activity(self, kind: str, at: Optional[datetime] = None) -> RecordResult:
        """Advance streaks for an activity of `kind` and award any new badges."""
        require_kind(kind, ACTIVITY_KINDS)
        day = local_day(at or self._clock())
        result = RecordResult(kind=kind)

        try:
            result.streaks[kind] = self.streaks.update_streak(kind, day)
            result.streaks["overall"] = self.streaks.update_streak("overall", day)
            result.new_badges = self.badges.evaluate()
        except (sqlite3.Error, SolaceError) as e:
            logger.warning("record_activity(%s) failed after %s: %s",
                           kind, sorted(result.streaks) or "nothing", e)
            result.status = FAILED
            result.error = str(e)
            return result

        for award in result.new_badges:
            if all(p.badge_id != award.badge_id for p in self._pending):
                self._pending.append(award)

        bus.emit(Events.ACTIVITY_RECORDED, {
            "kind": kind,
            "day": day.isoformat(),
            "new_badges": [a.badge_id for a in result.new_badges],
        }, source="gamification")
        return result

    def use_protection(self, reason: Optional[str] = None) -> bool:
        return self.protection.consume(reason)

    # ------------------------------------------------------------------
    # Celebrations
    # ------------------------------------------------------------------

    @property
    def pending_celebrations(self) -> List[BadgeAward]:
        return list(self._pending)

    def dismiss_celebration(self, badge_id: str) -> None:
        self._pending = [a for a in self._pending if a.badge_id != badge_id]

    def clear_pending_celebrations(self) -> None:
        self._pending = []

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def summary(self) -> GamificationStats:
        return GamificationStats(
            streaks=self.streaks.get_streaks(),
            earned_badges=self.badges.earned_badges(),
            days_tracked=self.badges.snapshot().days_tracked,
            protections_remaining=self.protection.remaining_this_month(),
        )
