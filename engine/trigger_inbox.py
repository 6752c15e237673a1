# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Trigger inbox. Holds the currently relevant proactive triggers plus the
durable memory of which ones the user dismissed.

Storage: ~/.solace/solace-triggers.json
    {"dismissed_trigger_ids": [...], "last_checked_at": "..."}

Active triggers live in memory only; they are recomputed on every check.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from core.paths import get_paths
from engine.dates import to_local
from engine.events import Events, bus
from engine.schemas import (
    ActivityRecord, DailySummary, ProactiveTrigger, TriggerInboxState,
    load_validated, save_validated,
)
from engine.triggers import (
    detect_proactive_triggers, exercise_follow_up_trigger, sort_by_priority,
)

logger = logging.getLogger("solace.trigger_inbox")

DISMISSED_HISTORY_LIMIT = 50


class TriggerInbox:
    """Filters detected triggers against dismissals and expiry."""

    def __init__(
        self,
        path: Optional[Path] = None,
        history_limit: int = DISMISSED_HISTORY_LIMIT,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._path = path or get_paths().triggers_file
        self._history_limit = history_limit
        self._clock = clock or datetime.now
        self._state = load_validated(self._path, TriggerInboxState)
        self._active: List[ProactiveTrigger] = []

    def _now(self) -> datetime:
        return to_local(self._clock())

    def _save(self):
        save_validated(self._path, self._state)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def active(self) -> List[ProactiveTrigger]:
        return list(self._active)

    @property
    def dismissed_ids(self) -> List[str]:
        return list(self._state.dismissed_trigger_ids)

    @property
    def last_checked_at(self) -> Optional[datetime]:
        return self._state.last_checked_at

    def is_dismissed(self, trigger_id: str) -> bool:
        return trigger_id in self._state.dismissed_trigger_ids

    def top(self) -> Optional[ProactiveTrigger]:
        """Highest-priority active trigger."""
        return self._active[0] if self._active else None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def check(
        self,
        entries: List[ActivityRecord],
        summaries: List[DailySummary],
        last_check_in_at: Optional[datetime] = None,
    ) -> List[ProactiveTrigger]:
        """Detect, drop dismissed and expired, remember the result."""
        now = self._now()
        detected = detect_proactive_triggers(entries, summaries, last_check_in_at, now=now)
        # follow-ups aren't detected from data, carry them over
        follow_ups = [t for t in self._active if t.type == "check_in_after_exercise"]
        self._active = sort_by_priority([
            t for t in detected + follow_ups
            if not self.is_dismissed(t.id) and not t.is_expired(now)
        ])
        self._state.last_checked_at = now
        self._save()

        if self._active:
            bus.emit(Events.TRIGGERS_DETECTED,
                     {"ids": [t.id for t in self._active]}, source="trigger_inbox")
        return self.active

    def dismiss(self, trigger_id: str) -> None:
        """Durably remember trigger_id so it stays hidden."""
        if not self.is_dismissed(trigger_id):
            self._state.dismissed_trigger_ids.append(trigger_id)
            self._save()
        self._active = [t for t in self._active if t.id != trigger_id]
        logger.info("Trigger dismissed: %s", trigger_id)
        bus.emit(Events.TRIGGER_DISMISSED, {"id": trigger_id}, source="trigger_inbox")

    def add_exercise_follow_up(
        self, exercise_name: str, completed_at: Optional[datetime] = None,
    ) -> Optional[ProactiveTrigger]:
        """Queue a post-exercise check-in unless it was already dismissed."""
        trigger = exercise_follow_up_trigger(exercise_name, completed_at or self._now())
        if self.is_dismissed(trigger.id):
            return None
        self._active = sort_by_priority(
            [t for t in self._active if t.id != trigger.id] + [trigger]
        )
        return trigger

    def clear_expired(self) -> int:
        """Drop expired active triggers and trim dismissal history. Returns drop count."""
        now = self._now()
        before = len(self._active)
        self._active = [t for t in self._active if not t.is_expired(now)]

        dismissed = self._state.dismissed_trigger_ids
        if len(dismissed) > self._history_limit:
            self._state.dismissed_trigger_ids = dismissed[-self._history_limit:] if self._history_limit else []
            self._save()
        return before - len(self._active)
