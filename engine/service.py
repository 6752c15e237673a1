# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
WellnessAnalytics — the one handle a host app holds.

    analytics = WellnessAnalytics()
    analytics.log_mood(4, activities=["nature"])
    analytics.streak("mood").current_streak
    analytics.insights()
    analytics.proactive_triggers()
    analytics.dismiss_trigger(trigger_id)

No module-level instance: create one, pass it where it's needed, close it
when done. Insights and triggers come back empty (with a warning logged)
when the activity log can't be read, so a screen can simply not render
that section.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from activity.log import ActivityLog, SQLiteActivityLog
from activity.summaries import build_daily_summaries
from core.paths import SolacePaths, get_paths
from engine.config import EngineConfig, load_config
from engine.events import Events, bus
from engine.gamification import Gamification, RecordResult
from engine.patterns import detect_patterns
from engine.protection import StreakProtection
from engine.rules import BadgeEngine
from engine.schemas import (
    ActivityLogError, ActivityRecord, BadgeAward, Insight, ProactiveTrigger, StreakState,
)
from engine.streaks import StreakInfo, StreakTracker, calculate_streaks
from engine.trigger_inbox import TriggerInbox

logger = logging.getLogger("solace.service")


class WellnessAnalytics:
    """Activity log, streaks, protection, badges, insights and triggers."""

    def __init__(
        self,
        log: Optional[ActivityLog] = None,
        config: Optional[EngineConfig] = None,
        paths: Optional[SolacePaths] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        paths = paths or get_paths()
        self.config = config or load_config(paths.config_file)
        self._clock = clock or datetime.now

        self.log = log if log is not None else SQLiteActivityLog(paths.activity_db)
        self.streaks = StreakTracker(paths.analytics_db)
        self.protection = StreakProtection(
            paths.analytics_db, cap=self.config.monthly_protection_cap, clock=self._clock,
        )
        self.badges = BadgeEngine(self.log, self.streaks, db_path=paths.analytics_db,
                                  clock=self._clock)
        self.gamification = Gamification(self.streaks, self.protection, self.badges,
                                          clock=self._clock)
        self.inbox = TriggerInbox(paths.triggers_file,
                                  history_limit=self.config.dismissed_history_limit,
                                  clock=self._clock)

    def close(self):
        for store in (self.streaks, self.protection, self.badges):
            store.close()
        if isinstance(self.log, SQLiteActivityLog):
            self.log.close()

    # ------------------------------------------------------------------
    # Logging activity
    # ------------------------------------------------------------------

    def record_activity(self, kind: str, at: Optional[datetime] = None) -> RecordResult:
        return self.gamification.record_activity(kind, at)

    def _record(self, record: ActivityRecord) -> RecordResult:
        return self.gamification.record_activity(record.kind, record.occurred_at)

    def log_mood(self, mood: int, activities: Optional[List[str]] = None,
                 note: Optional[str] = None, at: Optional[datetime] = None) -> RecordResult:
        record = self.log.add_mood(mood, activities, note, at or self._clock())
        return self._record(record)

    def log_journal(self, text: str, title: Optional[str] = None,
                    mood: Optional[int] = None, at: Optional[datetime] = None) -> RecordResult:
        record = self.log.add_journal(text, title, mood, at or self._clock())
        return self._record(record)

    def log_exercise(self, exercise_id: str, exercise_name: Optional[str] = None,
                     at: Optional[datetime] = None) -> RecordResult:
        """Record a completed exercise and queue a follow-up check-in."""
        at = at or self._clock()
        record = self.log.add_exercise(exercise_id, status="completed", at=at)
        self.inbox.add_exercise_follow_up(exercise_name or exercise_id, at)
        return self._record(record)

    # ------------------------------------------------------------------
    # Streaks & protection
    # ------------------------------------------------------------------

    def streak(self, kind: str) -> StreakState:
        return self.streaks.get_streak(kind)

    def all_streaks(self) -> Dict[str, StreakState]:
        return self.streaks.get_streaks()

    def log_streaks(self) -> StreakInfo:
        """Streaks recomputed from the last `streak_window_days` of the log."""
        return calculate_streaks(self.log, now=self._clock(),
                                 window_days=self.config.streak_window_days)

    def remaining_protections(self) -> int:
        return self.protection.remaining_this_month()

    def use_protection(self, reason: Optional[str] = None) -> bool:
        return self.protection.consume(reason)

    # ------------------------------------------------------------------
    # Badges
    # ------------------------------------------------------------------

    def evaluate_badges(self) -> List[BadgeAward]:
        return self.badges.evaluate()

    def has_badge(self, badge_id: str) -> bool:
        return self.badges.has_badge(badge_id)

    def progress_towards(self, badge_id: str) -> int:
        return self.badges.progress_towards(badge_id)

    def earned_badges(self) -> List[BadgeAward]:
        return self.badges.earned_badges()

    # ------------------------------------------------------------------
    # Insights & triggers
    # ------------------------------------------------------------------

    def insights(self) -> List[Insight]:
        """Pattern insights over the recent window. [] if the log is unreachable."""
        now = self._clock()
        try:
            entries = self.log.entries_for_last_days("mood", self.config.summary_window_days, now=now)
        except ActivityLogError as e:
            logger.warning("Insights unavailable: %s", e)
            return []

        insights = detect_patterns(entries, build_daily_summaries(entries),
                                   limit=self.config.max_insights)
        bus.emit(Events.INSIGHTS_GENERATED,
                 {"ids": [i.id for i in insights]}, source="service")
        return insights

    def proactive_triggers(self) -> List[ProactiveTrigger]:
        """Active, undismissed triggers. [] if the log is unreachable."""
        now = self._clock()
        try:
            entries = self.log.all_entries("mood")
            summaries = self.log.daily_summaries(self.config.summary_window_days, now=now)
            last_check_in = self.log.last_check_in()
        except ActivityLogError as e:
            logger.warning("Proactive triggers unavailable: %s", e)
            return []
        return self.inbox.check(entries, summaries, last_check_in)

    def top_trigger(self) -> Optional[ProactiveTrigger]:
        return self.inbox.top()

    def dismiss_trigger(self, trigger_id: str) -> None:
        self.inbox.dismiss(trigger_id)
