# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Streak Tracker — consecutive-day counters per activity kind.

Two halves:
  calculate_consecutive_days()  pure count over a list of timestamps
  StreakTracker                 persisted per-kind state, advanced
                                incrementally by update_streak()

A streak stays alive while today or yesterday has an entry. The one-day
grace tolerates entries logged just after midnight.

Storage: ~/.solace/solace-analytics.db, table `streaks`.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

from pydantic import ValidationError

from core.paths import get_paths
from engine.dates import ONE_DAY, local_day, stamp
from engine.events import Events, bus
from engine.schemas import ACTIVITY_KINDS, STREAK_KINDS, StreakState, require_kind
from engine.store import SQLiteStore

logger = logging.getLogger("solace.streaks")

STREAK_WINDOW_DAYS = 30


# ============================================================================
# Pure calculation
# ============================================================================

def normalize_to_day(ts: Union[date, datetime]) -> date:
    return local_day(ts)


def calculate_consecutive_days(
    timestamps: Iterable[Union[date, datetime]],
    today: Optional[date] = None,
) -> int:
    """
    Count consecutive calendar days ending today or yesterday.

    Returns 0 when neither today nor yesterday has an entry. Duplicates on
    the same day count once; input order doesn't matter.
    """
    days = {local_day(ts) for ts in timestamps}
    if not days:
        return 0

    today = today or date.today()
    if today in days:
        cursor = today
    elif today - ONE_DAY in days:
        cursor = today - ONE_DAY
    else:
        return 0

    count = 0
    while cursor in days:
        count += 1
        cursor -= ONE_DAY
    return count


@dataclass
class StreakInfo:
    """Streaks recomputed from the activity log."""
    mood: int = 0
    journal: int = 0
    exercise: int = 0


def _qualifying(kind: str, entries):
    if kind == "exercise":
        return [e for e in entries if e.status == "completed"]
    return entries


def calculate_streaks(log, now: Optional[datetime] = None,
                      window_days: int = STREAK_WINDOW_DAYS) -> StreakInfo:
    """Recompute all three streaks from the last `window_days` of the log."""
    now = now or datetime.now()
    info = StreakInfo()
    for kind in ACTIVITY_KINDS:
        entries = _qualifying(kind, log.entries_for_last_days(kind, window_days, now=now))
        setattr(info, kind, calculate_consecutive_days(
            [e.occurred_at for e in entries], today=local_day(now),
        ))
    return info


def has_completed_today(log, kind: str, now: Optional[datetime] = None) -> bool:
    require_kind(kind, ACTIVITY_KINDS)
    today = local_day(now or datetime.now())
    return bool(_qualifying(kind, log.entries_for_date(kind, today)))


# ============================================================================
# Schema
# ============================================================================

_SCHEMA = """
CREATE TABLE IF NOT EXISTS streaks (
    kind TEXT PRIMARY KEY,
    current_streak INTEGER NOT NULL DEFAULT 0,
    longest_streak INTEGER NOT NULL DEFAULT 0,
    last_activity_date TEXT,
    streak_start_date TEXT,
    updated_at TEXT
);
"""


# ============================================================================
# StreakTracker
# ============================================================================

class StreakTracker(SQLiteStore):
    """
    Persisted per-kind streak state.

    update_streak() is the only mutator. Reads return the last stored state
    and never recompute from history.
    """

    _SCHEMA = _SCHEMA

    def _default_path(self) -> Path:
        return get_paths().analytics_db

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_state(kind: str, row) -> StreakState:
        """Row -> StreakState. A corrupt row yields the default state."""
        if row is None:
            return StreakState(kind=kind)
        try:
            return StreakState(
                kind=kind,
                current_streak=row["current_streak"],
                longest_streak=row["longest_streak"],
                last_activity_date=row["last_activity_date"],
                streak_start_date=row["streak_start_date"],
                updated_at=row["updated_at"],
            )
        except ValidationError as e:
            logger.warning("Corrupt streak row for %s, using defaults: %s", kind, e)
            return StreakState(kind=kind)

    def _load(self, conn, kind: str) -> StreakState:
        row = conn.execute("SELECT * FROM streaks WHERE kind = ?", (kind,)).fetchone()
        return self._row_to_state(kind, row)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_streak(self, kind: str) -> StreakState:
        require_kind(kind)
        rows = self._query("SELECT * FROM streaks WHERE kind = ?", (kind,))
        return self._row_to_state(kind, rows[0] if rows else None)

    def get_streaks(self) -> Dict[str, StreakState]:
        """All four kinds; kinds never written come back as defaults."""
        rows = {r["kind"]: r for r in self._query("SELECT * FROM streaks")}
        return {kind: self._row_to_state(kind, rows.get(kind)) for kind in STREAK_KINDS}

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def update_streak(self, kind: str, activity_date: Union[date, datetime]) -> StreakState:
        """
        Advance `kind` for an activity on activity_date.

        Same day as last activity, or any earlier day: no-op. Day after last
        activity: +1. A gap or a first ever activity restarts at 1.
        """
        require_kind(kind)
        day = local_day(activity_date)

        with self.transaction() as conn:
            prev = self._load(conn, kind)

            if prev.last_activity_date == day:
                logger.debug("Streak %s already counted %s", kind, day)
                return prev

            if prev.last_activity_date is not None and day < prev.last_activity_date:
                logger.debug("Streak %s ignores backdated %s (last %s)",
                             kind, day, prev.last_activity_date)
                return prev

            if prev.last_activity_date is not None and prev.last_activity_date == day - ONE_DAY:
                current = prev.current_streak + 1
                start = prev.streak_start_date or day
            else:
                current = 1
                start = day

            state = StreakState(
                kind=kind,
                current_streak=current,
                longest_streak=max(prev.longest_streak, current),
                last_activity_date=day,
                streak_start_date=start,
                updated_at=datetime.now(),
            )
            conn.execute(
                """INSERT INTO streaks
                   (kind, current_streak, longest_streak, last_activity_date,
                    streak_start_date, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)
                   ON CONFLICT(kind) DO UPDATE SET
                     current_streak = excluded.current_streak,
                     longest_streak = excluded.longest_streak,
                     last_activity_date = excluded.last_activity_date,
                     streak_start_date = excluded.streak_start_date,
                     updated_at = excluded.updated_at""",
                (kind, state.current_streak, state.longest_streak,
                 day.isoformat(), start.isoformat(), stamp(state.updated_at)),
            )

        broken = prev.current_streak > 0 and current == 1
        logger.info("Streak %s: %d -> %d (longest %d)",
                    kind, prev.current_streak, current, state.longest_streak)
        bus.emit(Events.STREAK_RESET if broken else Events.STREAK_UPDATED, {
            "kind": kind,
            "current_streak": state.current_streak,
            "longest_streak": state.longest_streak,
            "previous_streak": prev.current_streak,
        }, source="streaks")
        return state
