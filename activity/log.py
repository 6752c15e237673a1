# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Activity Log — the append-only record of mood, journal and exercise entries.

The analytics engine reads through the ActivityLog interface only:
    entries_for_range(kind, start, end)
    entries_for_date(kind, day)
    entries_for_last_days(kind, days)
plus a handful of aggregates used for badge stats.

SQLiteActivityLog is the shipped implementation.
Storage: ~/.solace/solace-activity.db (SQLite, WAL mode)

Every SQLite failure surfaces as ActivityLogError.
"""

import json
import logging
import sqlite3
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import List, Optional, Set

from pydantic import ValidationError

from activity.summaries import build_daily_summaries
from core.paths import get_paths
from engine.dates import end_of_day, local_day, stamp, start_of_day, to_local
from engine.schemas import (
    ACTIVITY_KINDS, ActivityLogError, ActivityRecord, DailySummary, require_kind,
)
from engine.store import SQLiteStore

logger = logging.getLogger("solace.activity")


# ============================================================================
# Interface
# ============================================================================

class ActivityLog(ABC):
    """What the engine needs from wherever activity is stored."""

    # --- writes ---

    @abstractmethod
    def append(self, record: ActivityRecord) -> ActivityRecord:
        """Persist a validated record."""

    def add_mood(self, mood: int, activities: Optional[List[str]] = None,
                 note: Optional[str] = None, at: Optional[datetime] = None) -> ActivityRecord:
        return self.append(ActivityRecord(
            id=uuid.uuid4().hex, kind="mood", occurred_at=at or datetime.now(),
            mood=mood, activities=activities or [], note=note,
        ))

    def add_journal(self, text: str, title: Optional[str] = None,
                    mood: Optional[int] = None, at: Optional[datetime] = None) -> ActivityRecord:
        return self.append(ActivityRecord(
            id=uuid.uuid4().hex, kind="journal", occurred_at=at or datetime.now(),
            text=text, title=title, mood=mood,
        ))

    def add_exercise(self, exercise_id: str, status: str = "in_progress",
                     at: Optional[datetime] = None) -> ActivityRecord:
        return self.append(ActivityRecord(
            id=uuid.uuid4().hex, kind="exercise", occurred_at=at or datetime.now(),
            exercise_id=exercise_id, status=status,
        ))

    # --- reads ---

    @abstractmethod
    def entries_for_range(self, kind: str, start: datetime, end: datetime) -> List[ActivityRecord]:
        """Entries of `kind` with start <= occurred_at <= end, oldest first."""

    def entries_for_date(self, kind: str, day: date) -> List[ActivityRecord]:
        return self.entries_for_range(kind, start_of_day(day), end_of_day(day))

    def entries_for_last_days(self, kind: str, days: int,
                              now: Optional[datetime] = None) -> List[ActivityRecord]:
        """From the start of the day `days` days ago through the end of today."""
        today = local_day(now or datetime.now())
        return self.entries_for_range(
            kind, start_of_day(today - timedelta(days=days)), end_of_day(today),
        )

    def daily_summaries(self, days: int, now: Optional[datetime] = None) -> List[DailySummary]:
        """Mood summaries for the last `days` days, oldest first."""
        return build_daily_summaries(self.entries_for_last_days("mood", days, now=now))

    @abstractmethod
    def all_entries(self, kind: str) -> List[ActivityRecord]:
        """Every entry of `kind`, oldest first."""

    @abstractmethod
    def count(self, kind: str) -> int:
        """Entries of `kind`. Exercise counts completed sessions only."""

    @abstractmethod
    def distinct_moods(self) -> Set[int]:
        """Mood values (1-5) ever logged."""

    @abstractmethod
    def distinct_activities(self) -> Set[str]:
        """Activity tags ever attached to a mood entry."""

    @abstractmethod
    def distinct_days_tracked(self) -> int:
        """Calendar days with at least one mood entry."""

    @abstractmethod
    def last_check_in(self) -> Optional[datetime]:
        """Most recent mood entry time."""


# ============================================================================
# Schema
# ============================================================================

_SCHEMA = """
CREATE TABLE IF NOT EXISTS activity_records (
    id TEXT PRIMARY KEY,
    kind TEXT NOT NULL,
    occurred_at TEXT NOT NULL,
    mood INTEGER,
    activities TEXT NOT NULL DEFAULT '[]',
    note TEXT,
    title TEXT,
    text TEXT,
    exercise_id TEXT,
    status TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_activity_kind_time ON activity_records(kind, occurred_at);
"""


# ============================================================================
# SQLiteActivityLog
# ============================================================================

class SQLiteActivityLog(SQLiteStore, ActivityLog):
    """SQLite-backed activity log."""

    _SCHEMA = _SCHEMA

    def _default_path(self) -> Path:
        return get_paths().activity_db

    @contextmanager
    def _access(self, operation: str):
        try:
            yield
        except sqlite3.Error as e:
            logger.error("Activity log %s failed: %s", operation, e)
            raise ActivityLogError(f"{operation} failed: {e}") from e

    @staticmethod
    def _row_to_record(row) -> Optional[ActivityRecord]:
        """Row -> ActivityRecord, or None if the row is malformed."""
        try:
            return ActivityRecord(
                id=row["id"],
                kind=row["kind"],
                occurred_at=row["occurred_at"],
                mood=row["mood"],
                activities=json.loads(row["activities"] or "[]"),
                note=row["note"],
                title=row["title"],
                text=row["text"],
                exercise_id=row["exercise_id"],
                status=row["status"],
            )
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Skipping malformed activity row %s: %s", row["id"], e)
            return None

    def _records(self, rows) -> List[ActivityRecord]:
        records = (self._row_to_record(r) for r in rows)
        return [r for r in records if r is not None]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def append(self, record: ActivityRecord) -> ActivityRecord:
        with self._access("append"):
            self._write(
                """INSERT INTO activity_records
                   (id, kind, occurred_at, mood, activities, note, title, text,
                    exercise_id, status, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (record.id, record.kind, stamp(record.occurred_at), record.mood,
                 json.dumps(list(record.activities)), record.note, record.title,
                 record.text, record.exercise_id, record.status, stamp(datetime.now())),
            )
        logger.debug("Logged %s entry %s", record.kind, record.id)
        return record

    def complete_exercise(self, record_id: str) -> bool:
        """Mark an in-progress exercise session completed."""
        with self._access("complete_exercise"):
            changed = self._write(
                """UPDATE activity_records SET status = 'completed'
                   WHERE id = ? AND kind = 'exercise' AND status = 'in_progress'""",
                (record_id,),
            )
        return changed > 0

    def delete_entry(self, record_id: str) -> bool:
        with self._access("delete_entry"):
            return self._write("DELETE FROM activity_records WHERE id = ?", (record_id,)) > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def entries_for_range(self, kind: str, start: datetime, end: datetime) -> List[ActivityRecord]:
        require_kind(kind, ACTIVITY_KINDS)
        with self._access("entries_for_range"):
            rows = self._query(
                """SELECT * FROM activity_records
                   WHERE kind = ? AND occurred_at >= ? AND occurred_at <= ?
                   ORDER BY occurred_at""",
                (kind, stamp(start), stamp(end)),
            )
        return self._records(rows)

    def all_entries(self, kind: str) -> List[ActivityRecord]:
        require_kind(kind, ACTIVITY_KINDS)
        with self._access("all_entries"):
            rows = self._query(
                "SELECT * FROM activity_records WHERE kind = ? ORDER BY occurred_at", (kind,),
            )
        return self._records(rows)

    def get(self, record_id: str) -> Optional[ActivityRecord]:
        with self._access("get"):
            rows = self._query("SELECT * FROM activity_records WHERE id = ?", (record_id,))
        return self._row_to_record(rows[0]) if rows else None

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def count(self, kind: str) -> int:
        require_kind(kind, ACTIVITY_KINDS)
        sql = "SELECT COUNT(*) FROM activity_records WHERE kind = ?"
        if kind == "exercise":
            sql += " AND status = 'completed'"
        with self._access("count"):
            return self._query(sql, (kind,))[0][0]

    def distinct_moods(self) -> Set[int]:
        with self._access("distinct_moods"):
            rows = self._query(
                "SELECT DISTINCT mood FROM activity_records WHERE kind = 'mood' AND mood IS NOT NULL"
            )
        return {r[0] for r in rows}

    def distinct_activities(self) -> Set[str]:
        with self._access("distinct_activities"):
            rows = self._query(
                "SELECT DISTINCT activities FROM activity_records WHERE kind = 'mood'"
            )
        tags: Set[str] = set()
        for row in rows:
            try:
                tags.update(json.loads(row[0] or "[]"))
            except (json.JSONDecodeError, TypeError):
                logger.warning("Skipping unparseable activities column: %r", row[0])
        return tags

    def distinct_days_tracked(self) -> int:
        # stamps are local ISO text, first 10 chars are the day
        with self._access("distinct_days_tracked"):
            return self._query(
                """SELECT COUNT(DISTINCT substr(occurred_at, 1, 10))
                   FROM activity_records WHERE kind = 'mood'"""
            )[0][0]

    def last_check_in(self) -> Optional[datetime]:
        with self._access("last_check_in"):
            value = self._query(
                "SELECT MAX(occurred_at) FROM activity_records WHERE kind = 'mood'"
            )[0][0]
        return to_local(datetime.fromisoformat(value)) if value else None
