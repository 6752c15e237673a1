# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Solace Event Bus — in-process pub/sub between the engine and its consumers.

The engine never calls UI code. It announces what happened and whoever
cares (celebration overlay, notification scheduler, analytics) listens:

    from engine.events import bus, Events

    bus.on(Events.BADGE_AWARDED, show_celebration)
    bus.on(Events.PROTECTION_DENIED, log_denial, priority=10)
    bus.once(Events.STREAK_UPDATED, first_streak_hint)

Dispatch is synchronous and ordered by subscriber priority (higher first).
A failing handler is logged and never reaches the emitter.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set

logger = logging.getLogger("solace.events")

# Handlers emitting from inside handlers stop nesting here
_MAX_EMIT_DEPTH = 3


# ============================================================================
# EVENT TYPES
# ============================================================================

class Events:
    """Registry of all event types. Use these constants, not raw strings."""

    # --- Activity & streaks ---
    ACTIVITY_RECORDED = "activity_recorded"
    STREAK_UPDATED = "streak_updated"
    STREAK_RESET = "streak_reset"

    # --- Protection quota ---
    PROTECTION_USED = "protection_used"
    PROTECTION_DENIED = "protection_denied"

    # --- Badges ---
    BADGE_AWARDED = "badge_awarded"

    # --- Insights & triggers ---
    INSIGHTS_GENERATED = "insights_generated"
    TRIGGERS_DETECTED = "triggers_detected"
    TRIGGER_DISMISSED = "trigger_dismissed"


# ============================================================================
# EVENT DATA
# ============================================================================

@dataclass
class Event:
    """A single emitted event."""
    type: str
    data: Dict[str, Any]
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    source: Optional[str] = None


@dataclass
class Subscriber:
    """A registered event handler."""
    callback: Callable[[Event], None]
    priority: int = 0  # higher = called first
    once: bool = False
    source: Optional[str] = None


# ============================================================================
# EVENT BUS
# ============================================================================

class EventBus:
    """Priority-ordered synchronous dispatch with a bounded history."""

    def __init__(self, history_size: int = 100):
        self._subscribers: Dict[str, List[Subscriber]] = {}
        self._history: List[Event] = []
        self._history_size = history_size
        self._lock = threading.Lock()
        self._muted: Set[str] = set()
        self._emit_count = 0
        self._local = threading.local()

    def _subscribe(self, event_type: str, sub: Subscriber) -> None:
        with self._lock:
            subs = self._subscribers.setdefault(event_type, [])
            subs.append(sub)
            # stable: equal priorities keep registration order
            subs.sort(key=lambda s: -s.priority)

    def on(
        self,
        event_type: str,
        callback: Callable[[Event], None],
        priority: int = 0,
        source: Optional[str] = None,
    ) -> None:
        """Subscribe callback to event_type."""
        self._subscribe(event_type, Subscriber(callback, priority, False, source))

    def once(
        self,
        event_type: str,
        callback: Callable[[Event], None],
        priority: int = 0,
        source: Optional[str] = None,
    ) -> None:
        """Subscribe to an event, auto-remove after first call."""
        self._subscribe(event_type, Subscriber(callback, priority, True, source))

    def off(self, event_type: str, callback: Callable) -> bool:
        """Unsubscribe a callback. Returns True if found and removed."""
        with self._lock:
            subs = self._subscribers.get(event_type)
            if not subs:
                return False
            kept = [s for s in subs if s.callback is not callback]
            self._subscribers[event_type] = kept
            return len(kept) < len(subs)

    def emit(
        self,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
    ) -> Event:
        """
        Dispatch an event to its subscribers and return it.

        Muted events are recorded in history but not dispatched.
        """
        event = Event(type=event_type, data=data or {}, source=source)

        depth = getattr(self._local, "depth", 0)
        if depth >= _MAX_EMIT_DEPTH:
            logger.warning("Emit depth %d reached for %s, skipping", depth, event_type)
            return event

        with self._lock:
            self._emit_count += 1
            self._history.append(event)
            if len(self._history) > self._history_size:
                del self._history[:-self._history_size]
            if event_type in self._muted:
                return event
            subs = list(self._subscribers.get(event_type, []))

        self._local.depth = depth + 1
        try:
            fired = []
            for sub in subs:
                try:
                    sub.callback(event)
                except Exception as e:
                    logger.error(
                        "Event handler error: %s -> %s: %s",
                        event_type, sub.source or getattr(sub.callback, "__name__", "?"), e,
                    )
                if sub.once:
                    fired.append(sub)
        finally:
            self._local.depth = depth

        if fired:
            gone = {id(s) for s in fired}
            with self._lock:
                remaining = self._subscribers.get(event_type, [])
                self._subscribers[event_type] = [s for s in remaining if id(s) not in gone]

        return event

    def mute(self, event_type: str) -> None:
        with self._lock:
            self._muted.add(event_type)

    def unmute(self, event_type: str) -> None:
        with self._lock:
            self._muted.discard(event_type)

    # --- Introspection ---

    def history(self, event_type: Optional[str] = None, limit: int = 20) -> List[Event]:
        """Most recent events, oldest first."""
        with self._lock:
            events = self._history
            if event_type:
                events = [e for e in events if e.type == event_type]
            return list(events[-limit:])

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            counts = {k: len(v) for k, v in self._subscribers.items() if v}
            return {
                "total_emitted": self._emit_count,
                "history_size": len(self._history),
                "subscriber_counts": counts,
                "total_subscribers": sum(counts.values()),
                "muted_events": sorted(self._muted),
            }

    def reset(self) -> None:
        """Clear all subscribers and history. For testing."""
        with self._lock:
            self._subscribers.clear()
            self._history.clear()
            self._muted.clear()
            self._emit_count = 0


# ============================================================================
# SINGLETON: the global event bus
# ============================================================================

bus = EventBus()
