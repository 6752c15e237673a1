# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Badge rule engine: one pass over the catalog against a stats snapshot.

    engine = BadgeEngine(log, tracker)
    new = engine.evaluate()      # [BadgeAward], empty on a repeat call
    engine.progress_towards("streak_7")   # 0..100

Every requirement variant reduces to (achieved, target). A badge is met
when achieved >= target; progress is the same pair as a percentage. Named
special conditions (first_of_kind) are predicates instead.

Awards are keyed on badge_id, so INSERT OR IGNORE keeps a badge from ever
being awarded twice, even across concurrent passes.

Storage: ~/.solace/solace-analytics.db, table `badge_awards`.
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Tuple

from pydantic import ValidationError

from activity.log import ActivityLog
from core.paths import get_paths
from engine.badges import (
    BADGE_DEFINITIONS, ActivitiesUsed, AllMoodsLogged, EntryCount, FirstOfKind,
    MoodImprovement, Requirement, StreakDays, TotalDaysTracked, parse_requirement,
)
from engine.dates import local_day, stamp
from engine.events import Events, bus
from engine.schemas import (
    ACTIVITY_KINDS, BadgeAward, BadgeDefinition, DailySummary, StreakState,
)
from engine.store import SQLiteStore
from engine.streaks import StreakTracker

logger = logging.getLogger("solace.rules")

MOOD_LEVELS = 5
# Both improvement windows must hold this many rated days
MIN_DAYS_PER_WINDOW = 3


# ============================================================================
# Stats snapshot
# ============================================================================

@dataclass
class BadgeStats:
    """Everything a requirement can look at, computed once per pass."""
    as_of: date
    entry_counts: Dict[str, int] = field(default_factory=dict)
    streaks: Dict[str, StreakState] = field(default_factory=dict)
    activities_used: Set[str] = field(default_factory=set)
    moods_logged: Set[int] = field(default_factory=set)
    days_tracked: int = 0
    daily_summaries: List[DailySummary] = field(default_factory=list)

    def streak(self, kind: str) -> StreakState:
        return self.streaks.get(kind) or StreakState(kind=kind)


def mood_improvement(summaries: List[DailySummary], window_days: int,
                     as_of: date) -> Optional[float]:
    """
    Percent change of mean daily mood, last `window_days` vs the window before.

    None when either window has fewer than MIN_DAYS_PER_WINDOW rated days.
    """
    recent_start = as_of - timedelta(days=window_days - 1)
    prior_start = recent_start - timedelta(days=window_days)
    recent = [s.average_mood for s in summaries if recent_start <= s.date <= as_of]
    prior = [s.average_mood for s in summaries if prior_start <= s.date < recent_start]
    if len(recent) < MIN_DAYS_PER_WINDOW or len(prior) < MIN_DAYS_PER_WINDOW:
        return None
    prior_mean = sum(prior) / len(prior)
    recent_mean = sum(recent) / len(recent)
    return (recent_mean - prior_mean) / prior_mean * 100


# ============================================================================
# Special conditions
# ============================================================================

def _comeback_streak(stats: BadgeStats) -> bool:
    """Had a week-long streak, lost it, and is three days into a new one."""
    overall = stats.streak("overall")
    return overall.longest_streak >= 7 and 3 <= overall.current_streak < overall.longest_streak


SPECIAL_CONDITIONS: Dict[str, Callable[[BadgeStats], bool]] = {
    "comeback_streak": _comeback_streak,
}


class UnknownConditionError(ValueError):
    """Requirement names a special condition this engine doesn't know."""


# ============================================================================
# Schema
# ============================================================================

_SCHEMA = """
CREATE TABLE IF NOT EXISTS badge_awards (
    badge_id TEXT PRIMARY KEY,
    id TEXT NOT NULL,
    earned_at TEXT NOT NULL,
    metadata TEXT
);

CREATE INDEX IF NOT EXISTS idx_badge_awards_earned ON badge_awards(earned_at);
"""


# ============================================================================
# BadgeEngine
# ============================================================================

class BadgeEngine(SQLiteStore):
    """Evaluates the badge catalog and owns the award ledger."""

    _SCHEMA = _SCHEMA

    def __init__(
        self,
        log: ActivityLog,
        streaks: StreakTracker,
        db_path: Optional[Path] = None,
        catalog: Optional[List[BadgeDefinition]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(db_path)
        self._log = log
        self._streaks = streaks
        self._catalog = list(catalog if catalog is not None else BADGE_DEFINITIONS)
        self._clock = clock or datetime.now

    def _default_path(self) -> Path:
        return get_paths().analytics_db

    @property
    def catalog(self) -> List[BadgeDefinition]:
        return list(self._catalog)

    def _definition(self, badge_id: str) -> Optional[BadgeDefinition]:
        for badge in self._catalog:
            if badge.id == badge_id:
                return badge
        return None

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def _summary_window(self) -> int:
        """Two of the widest improvement window, so both halves are loaded."""
        widest = 0
        for badge in self._catalog:
            if badge.requirement.get("type") == "mood_improvement":
                widest = max(widest, int(badge.requirement.get("window_days", 14)))
        return widest * 2

    def snapshot(self) -> BadgeStats:
        """Fresh aggregate stats. ActivityLogError propagates."""
        now = self._clock()
        stats = BadgeStats(
            as_of=local_day(now),
            entry_counts={kind: self._log.count(kind) for kind in ACTIVITY_KINDS},
            streaks=self._streaks.get_streaks(),
            activities_used=self._log.distinct_activities(),
            moods_logged=self._log.distinct_moods(),
            days_tracked=self._log.distinct_days_tracked(),
        )
        window = self._summary_window()
        if window:
            stats.daily_summaries = self._log.daily_summaries(window, now=now)
        return stats

    # ------------------------------------------------------------------
    # Requirement evaluation
    # ------------------------------------------------------------------

    @staticmethod
    def measure(requirement: Requirement, stats: BadgeStats) -> Tuple[float, float]:
        """(achieved, target) for a threshold requirement."""
        if isinstance(requirement, EntryCount):
            return stats.entry_counts.get(requirement.kind, 0), requirement.count
        if isinstance(requirement, StreakDays):
            streak = stats.streak(requirement.streak_kind)
            return max(streak.current_streak, streak.longest_streak), requirement.days
        if isinstance(requirement, TotalDaysTracked):
            return stats.days_tracked, requirement.days
        if isinstance(requirement, ActivitiesUsed):
            return len(stats.activities_used), requirement.count
        if isinstance(requirement, AllMoodsLogged):
            return len(stats.moods_logged), MOOD_LEVELS
        if isinstance(requirement, MoodImprovement):
            change = mood_improvement(stats.daily_summaries, requirement.window_days, stats.as_of)
            return max(0.0, change or 0.0), requirement.percentage
        if isinstance(requirement, FirstOfKind):
            condition = SPECIAL_CONDITIONS.get(requirement.action)
            if condition is None:
                raise UnknownConditionError(requirement.action)
            return (1, 1) if condition(stats) else (0, 1)
        raise UnknownConditionError(type(requirement).__name__)

    def is_met(self, requirement: Requirement, stats: BadgeStats) -> bool:
        achieved, target = self.measure(requirement, stats)
        return achieved >= target

    def _parse(self, badge: BadgeDefinition) -> Optional[Requirement]:
        try:
            return parse_requirement(badge.requirement)
        except ValidationError as e:
            logger.warning("Skipping badge %s, bad requirement %r: %s",
                           badge.id, badge.requirement, e.errors()[0]["msg"])
            return None

    # ------------------------------------------------------------------
    # Awards
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_award(row) -> BadgeAward:
        metadata = None
        if row["metadata"]:
            try:
                metadata = json.loads(row["metadata"])
            except json.JSONDecodeError:
                logger.warning("Unreadable metadata on award %s", row["badge_id"])
        return BadgeAward(id=row["id"], badge_id=row["badge_id"],
                          earned_at=row["earned_at"], metadata=metadata)

    def awarded_ids(self) -> Set[str]:
        return {r["badge_id"] for r in self._query("SELECT badge_id FROM badge_awards")}

    def award(self, badge_id: str, metadata: Optional[Dict] = None) -> Optional[BadgeAward]:
        """Persist an award. Returns None if badge_id was already awarded."""
        award = BadgeAward(id=uuid.uuid4().hex, badge_id=badge_id,
                           earned_at=self._clock(), metadata=metadata)
        inserted = self._write(
            """INSERT OR IGNORE INTO badge_awards (badge_id, id, earned_at, metadata)
               VALUES (?, ?, ?, ?)""",
            (badge_id, award.id, stamp(award.earned_at),
             json.dumps(metadata) if metadata is not None else None),
        )
        if not inserted:
            logger.debug("Badge %s already awarded", badge_id)
            return None

        logger.info("Badge awarded: %s", badge_id)
        bus.emit(Events.BADGE_AWARDED, {"badge_id": badge_id}, source="rules")
        return award

    def evaluate(self) -> List[BadgeAward]:
        """
        Award every not-yet-earned badge whose requirement is now met.

        Unknown or malformed requirements are logged and skipped.
        """
        stats = self.snapshot()
        awarded = self.awarded_ids()
        new: List[BadgeAward] = []

        for badge in self._catalog:
            if badge.id in awarded:
                continue
            requirement = self._parse(badge)
            if requirement is None:
                continue
            try:
                met = self.is_met(requirement, stats)
            except UnknownConditionError as e:
                logger.warning("Skipping badge %s, unknown condition: %s", badge.id, e)
                continue
            if not met:
                continue

            award = self.award(badge.id, {"category": badge.category, "rarity": badge.rarity})
            if award is not None:
                new.append(award)
                awarded.add(badge.id)

        return new

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_badge(self, badge_id: str) -> bool:
        return bool(self._query("SELECT 1 FROM badge_awards WHERE badge_id = ?", (badge_id,)))

    def earned_badges(self) -> List[BadgeAward]:
        """Newest first."""
        rows = self._query("SELECT * FROM badge_awards ORDER BY earned_at DESC")
        return [self._row_to_award(r) for r in rows]

    def progress_towards(self, badge_id: str, stats: Optional[BadgeStats] = None) -> int:
        """0..100. Earned badges are 100; unknown ids and bad rules are 0."""
        if self.has_badge(badge_id):
            return 100
        badge = self._definition(badge_id)
        if badge is None:
            return 0
        requirement = self._parse(badge)
        if requirement is None:
            return 0
        try:
            achieved, target = self.measure(requirement, stats or self.snapshot())
        except UnknownConditionError:
            return 0
        return max(0, min(100, round(achieved / target * 100)))
