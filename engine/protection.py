# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Streak Protection Quota — a monthly-capped consumable.

Each token forgives one missed day. Applying it to a streak is the
caller's business; this module only guarantees the cap holds.

consume() counts this month's usages and inserts a new one inside a single
BEGIN IMMEDIATE transaction, under the store's instance lock:
  - threads sharing one StreakProtection serialize on the lock
  - separate instances or processes on the same database file serialize
    on SQLite's write lock, taken before the count
Either way no two callers can both see the last free token.

Storage: ~/.solace/solace-analytics.db, table `protection_usages`.
"""

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from core.paths import get_paths
from engine.config import load_config
from engine.dates import month_start, stamp, to_local
from engine.events import Events, bus
from engine.schemas import ProtectionUsage
from engine.store import SQLiteStore

logger = logging.getLogger("solace.protection")


_SCHEMA = """
CREATE TABLE IF NOT EXISTS protection_usages (
    id TEXT PRIMARY KEY,
    used_at TEXT NOT NULL,
    reason TEXT
);

CREATE INDEX IF NOT EXISTS idx_protection_used_at ON protection_usages(used_at);
"""

_COUNT_SINCE = "SELECT COUNT(*) FROM protection_usages WHERE used_at >= ?"


class StreakProtection(SQLiteStore):
    """Insert-only ledger of protection usages with a per-month cap."""

    _SCHEMA = _SCHEMA

    def __init__(
        self,
        db_path: Optional[Path] = None,
        cap: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(db_path)
        self.cap = cap if cap is not None else load_config().monthly_protection_cap
        self._clock = clock or datetime.now

    def _default_path(self) -> Path:
        return get_paths().analytics_db

    def _window_start(self) -> str:
        return stamp(month_start(to_local(self._clock())))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def consume(self, reason: Optional[str] = None) -> bool:
        """
        Use one token if this month has any left.

        Returns False (no side effect) once the cap is reached.
        """
        now = to_local(self._clock())
        with self.transaction() as conn:
            used = conn.execute(_COUNT_SINCE, (stamp(month_start(now)),)).fetchone()[0]
            granted = used < self.cap
            if granted:
                conn.execute(
                    "INSERT INTO protection_usages (id, used_at, reason) VALUES (?, ?, ?)",
                    (uuid.uuid4().hex, stamp(now), reason),
                )

        if granted:
            logger.info("Streak protection used (%d/%d this month): %s",
                        used + 1, self.cap, reason or "-")
            bus.emit(Events.PROTECTION_USED, {
                "reason": reason, "remaining": self.cap - used - 1,
            }, source="protection")
        else:
            logger.info("Streak protection denied, %d/%d used this month", used, self.cap)
            bus.emit(Events.PROTECTION_DENIED, {"reason": reason}, source="protection")
        return granted

    def remaining_this_month(self) -> int:
        """Advisory count for display. Not atomic with consume()."""
        used = self._query(_COUNT_SINCE, (self._window_start(),))[0][0]
        return max(0, self.cap - used)

    def usages_this_month(self) -> List[ProtectionUsage]:
        rows = self._query(
            "SELECT * FROM protection_usages WHERE used_at >= ? ORDER BY used_at",
            (self._window_start(),),
        )
        return [ProtectionUsage(id=r["id"], used_at=r["used_at"], reason=r["reason"])
                for r in rows]
