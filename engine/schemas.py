# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Solace Schema Registry — Pydantic models for every record the engine touches.

Single source of truth for activity records, streak state, protection
usages, badge awards, insights and proactive triggers. Catches field drift,
type mismatches and invariant violations at construction time.

Usage:
    from engine.schemas import ActivityRecord, StreakState

    record = ActivityRecord(id="a1", kind="mood", occurred_at=now, mood=4)
    state = StreakState.model_validate(row_dict)

All models use extra="allow" so persisted data with unknown fields
won't break; the extra fields just go unvalidated.
"""

import json
import logging
import os
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, model_validator

logger = logging.getLogger("solace.schemas")


# ============================================================================
# Base config, inherited by every model
# ============================================================================

class SolaceModel(BaseModel):
    """Base for all Solace schemas. Allows extra fields for forward compat."""
    model_config = {"extra": "allow"}


# ============================================================================
# Custom exceptions
# ============================================================================

class SolaceError(Exception):
    """Base class for every error the engine raises on purpose."""

class SolaceNotFoundError(SolaceError):
    """Raised when a requested item (badge, trigger, record) doesn't exist."""

class SolaceValidationError(SolaceError):
    """Raised when input fails validation (unknown kind, bad argument)."""

class ActivityLogError(SolaceError):
    """Raised when the activity log cannot be read or written."""


# ============================================================================
# Vocabulary
# ============================================================================

ActivityKind = Literal["mood", "journal", "exercise"]
StreakKind = Literal["mood", "journal", "exercise", "overall"]
ExerciseStatus = Literal["in_progress", "completed", "abandoned"]
Priority = Literal["high", "medium", "low"]

ACTIVITY_KINDS = ("mood", "journal", "exercise")
STREAK_KINDS = ACTIVITY_KINDS + ("overall",)

# Display order for triggers and insights: high < medium < low
PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


def require_kind(kind: str, allowed=STREAK_KINDS) -> str:
    """Return kind unchanged, or raise SolaceValidationError."""
    if kind not in allowed:
        raise SolaceValidationError(
            f"Unknown kind '{kind}'. Expected one of: {', '.join(allowed)}"
        )
    return kind


# ============================================================================
# ACTIVITY
# ============================================================================

class ActivityRecord(SolaceModel):
    """One immutable entry in the activity log."""
    model_config = {"frozen": True}

    id: str
    kind: ActivityKind
    occurred_at: datetime
    mood: Optional[int] = Field(default=None, ge=1, le=5)
    activities: List[str] = Field(default_factory=list)
    note: Optional[str] = None
    # journal
    title: Optional[str] = None
    text: Optional[str] = None
    # exercise
    exercise_id: Optional[str] = None
    status: Optional[ExerciseStatus] = None

    @model_validator(mode="after")
    def _payload_matches_kind(self):
        if self.kind == "mood" and self.mood is None:
            raise ValueError("mood records require a mood value (1-5)")
        if self.kind == "exercise" and self.status is None:
            raise ValueError("exercise records require a status")
        return self


class DailySummary(SolaceModel):
    """One calendar day's mood entries reduced to a mean."""
    date: date
    entries: List[ActivityRecord] = Field(default_factory=list)
    average_mood: float


# ============================================================================
# STREAKS & PROTECTION
# ============================================================================

class StreakState(SolaceModel):
    """Persisted streak counters for one kind."""
    kind: StreakKind
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_activity_date: Optional[date] = None
    streak_start_date: Optional[date] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _longest_covers_current(self):
        if self.longest_streak < self.current_streak:
            raise ValueError(
                f"longest_streak ({self.longest_streak}) < "
                f"current_streak ({self.current_streak}) for {self.kind}"
            )
        return self


class ProtectionUsage(SolaceModel):
    """One consumed streak-protection token."""
    id: str
    used_at: datetime
    reason: Optional[str] = None


# ============================================================================
# BADGES
# ============================================================================

BadgeCategory = Literal["milestone", "streak", "explorer", "consistency", "growth", "special"]
BadgeRarity = Literal["common", "uncommon", "rare", "epic", "legendary"]


class BadgeDefinition(SolaceModel):
    """Static catalog entry. `requirement` is parsed by the rule engine."""
    id: str
    name: str
    description: str
    icon: str
    category: BadgeCategory
    rarity: BadgeRarity
    requirement: Dict[str, Any]


class BadgeAward(SolaceModel):
    """A badge earned once, forever."""
    id: str
    badge_id: str
    earned_at: datetime
    metadata: Optional[Dict[str, Any]] = None


# ============================================================================
# INSIGHTS & TRIGGERS
# ============================================================================

InsightType = Literal[
    "streak", "trend", "day-pattern", "activity-correlation", "time-pattern", "milestone",
]
TriggerType = Literal[
    "struggling", "inactive", "tough_day_ahead", "mood_dip", "check_in_after_exercise",
]


class Insight(SolaceModel):
    """Descriptive observation about past mood patterns."""
    id: str
    type: InsightType
    title: str
    description: str
    priority: Priority = "medium"
    icon: Optional[str] = None
    direction: Optional[Literal["improving", "declining"]] = None


class ProactiveTrigger(SolaceModel):
    """Signal that outreach might help. `context` is handed on verbatim."""
    id: str
    type: TriggerType
    title: str
    message: str
    context: str
    priority: Priority
    detected_at: datetime
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class TriggerInboxState(SolaceModel):
    """Durable part of the trigger subsystem."""
    dismissed_trigger_ids: List[str] = Field(default_factory=list)
    last_checked_at: Optional[datetime] = None


# ============================================================================
# UTILITY: validated load/save helpers
# ============================================================================

T = TypeVar("T", bound=SolaceModel)


def load_validated(path: Path, schema: Type[T], default: Any = None) -> T:
    """
    Load JSON from file and validate against schema.

    Args:
        path: Path to JSON file
        schema: Pydantic model class to validate against
        default: Default value if file doesn't exist or is invalid.
                 If None, returns schema() with all defaults.
    """
    if not path.exists():
        if default is not None:
            return schema.model_validate(default)
        return schema()

    try:
        data = json.loads(path.read_text())
        return schema.model_validate(data)
    except (json.JSONDecodeError, ValidationError, OSError) as e:
        logger.warning("Ignoring unreadable %s (%s): %s", path.name, schema.__name__, e)
        if default is not None:
            return schema.model_validate(default)
        return schema()


def _atomic_rename(tmp: Path, dest: Path):
    """Flush, fsync, then rename — crash-safe atomic write."""
    fd = os.open(str(tmp), os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
    os.replace(str(tmp), str(dest))


def save_validated(path: Path, model: SolaceModel, atomic: bool = True):
    """
    Save a validated model to JSON file.

    Args:
        path: Destination path
        model: Pydantic model instance
        atomic: If True, write to .tmp then rename (default: True)
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    content = model.model_dump_json(indent=2, exclude_none=False)

    if atomic:
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(content)
        _atomic_rename(tmp, path)
    else:
        path.write_text(content)
