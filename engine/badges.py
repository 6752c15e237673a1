# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Badge catalog and requirement variants.

Each BadgeDefinition stores its requirement as a plain dict so the catalog
can be shipped as data. parse_requirement() turns it into one of the typed
variants below, discriminated on "type". Anything that doesn't parse is
left for the rule engine to skip.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from engine.schemas import ActivityKind, BadgeDefinition, SolaceModel, StreakKind


# ============================================================================
# REQUIREMENT VARIANTS
# ============================================================================

class EntryCount(SolaceModel):
    type: Literal["entry_count"]
    kind: ActivityKind
    count: int = Field(ge=1)


class StreakDays(SolaceModel):
    type: Literal["streak_days"]
    streak_kind: StreakKind = "overall"
    days: int = Field(ge=1)


class TotalDaysTracked(SolaceModel):
    type: Literal["total_days_tracked"]
    days: int = Field(ge=1)


class ActivitiesUsed(SolaceModel):
    type: Literal["activities_used"]
    count: int = Field(ge=1)


class AllMoodsLogged(SolaceModel):
    type: Literal["all_moods_logged"]


class MoodImprovement(SolaceModel):
    """Recent window's mean daily mood vs the window before it."""
    type: Literal["mood_improvement"]
    percentage: float = Field(gt=0)
    window_days: int = Field(default=14, ge=1)


class FirstOfKind(SolaceModel):
    """A named special condition, e.g. "comeback_streak"."""
    type: Literal["first_of_kind"]
    action: str


Requirement = Annotated[
    Union[EntryCount, StreakDays, TotalDaysTracked, ActivitiesUsed,
          AllMoodsLogged, MoodImprovement, FirstOfKind],
    Field(discriminator="type"),
]

_REQUIREMENT = TypeAdapter(Requirement)


def parse_requirement(raw: Dict[str, Any]) -> Requirement:
    """Raises pydantic.ValidationError for unknown or malformed variants."""
    return _REQUIREMENT.validate_python(raw)


# ============================================================================
# CATALOG
# ============================================================================

def _badge(badge_id, name, description, icon, category, rarity, **requirement) -> BadgeDefinition:
    return BadgeDefinition(
        id=badge_id, name=name, description=description, icon=icon,
        category=category, rarity=rarity, requirement=requirement,
    )


BADGE_DEFINITIONS: List[BadgeDefinition] = [
    # --- Milestones: mood ---
    _badge("first_mood", "First Step", "Logged your first mood",
           "footsteps", "milestone", "common", type="entry_count", kind="mood", count=1),
    _badge("mood_10", "Getting Started", "Logged 10 moods",
           "happy-outline", "milestone", "common", type="entry_count", kind="mood", count=10),
    _badge("mood_50", "Mood Tracker", "Logged 50 moods",
           "happy", "milestone", "uncommon", type="entry_count", kind="mood", count=50),
    _badge("mood_100", "Self-Awareness Champion", "Logged 100 moods",
           "ribbon", "milestone", "rare", type="entry_count", kind="mood", count=100),
    _badge("mood_365", "Year of Reflection", "Logged 365 moods",
           "trophy", "milestone", "epic", type="entry_count", kind="mood", count=365),

    # --- Milestones: journal ---
    _badge("first_journal", "Dear Diary", "Wrote your first journal entry",
           "book-outline", "milestone", "common", type="entry_count", kind="journal", count=1),
    _badge("journal_10", "Storyteller", "Wrote 10 journal entries",
           "book", "milestone", "uncommon", type="entry_count", kind="journal", count=10),
    _badge("journal_50", "Reflective Writer", "Wrote 50 journal entries",
           "library", "milestone", "rare", type="entry_count", kind="journal", count=50),

    # --- Milestones: exercise ---
    _badge("first_exercise", "Mind Explorer", "Completed your first exercise",
           "fitness-outline", "milestone", "common", type="entry_count", kind="exercise", count=1),
    _badge("exercise_10", "Wellness Seeker", "Completed 10 exercises",
           "fitness", "milestone", "uncommon", type="entry_count", kind="exercise", count=10),
    _badge("exercise_50", "Mindfulness Master", "Completed 50 exercises",
           "medal", "milestone", "rare", type="entry_count", kind="exercise", count=50),

    # --- Streaks ---
    _badge("streak_3", "Building Momentum", "3-day streak",
           "flame-outline", "streak", "common", type="streak_days", streak_kind="overall", days=3),
    _badge("streak_7", "Week Warrior", "7-day streak",
           "flame", "streak", "uncommon", type="streak_days", streak_kind="overall", days=7),
    _badge("streak_14", "Habit Former", "14-day streak",
           "bonfire-outline", "streak", "rare", type="streak_days", streak_kind="overall", days=14),
    _badge("streak_30", "Monthly Master", "30-day streak",
           "bonfire", "streak", "epic", type="streak_days", streak_kind="overall", days=30),
    _badge("streak_100", "Centurion", "100-day streak",
           "star", "streak", "legendary", type="streak_days", streak_kind="overall", days=100),

    # --- Explorer ---
    _badge("mood_spectrum", "Full Spectrum", "Logged all 5 mood levels",
           "color-palette", "explorer", "uncommon", type="all_moods_logged"),
    _badge("activity_explorer", "Activity Explorer", "Used 5 different activity tags",
           "compass", "explorer", "uncommon", type="activities_used", count=5),
    _badge("activity_master", "Activity Master", "Used all 10 activity tags",
           "globe", "explorer", "rare", type="activities_used", count=10),

    # --- Consistency ---
    _badge("week_complete", "Complete Week", "Tracked every day for a week",
           "calendar-outline", "consistency", "uncommon", type="total_days_tracked", days=7),
    _badge("month_complete", "Complete Month", "Tracked 30 days total",
           "calendar", "consistency", "rare", type="total_days_tracked", days=30),
    _badge("quarter_complete", "Quarterly Champion", "Tracked 90 days total",
           "calendar-number", "consistency", "epic", type="total_days_tracked", days=90),

    # --- Growth ---
    _badge("mood_up_10", "Rising Tide", "10% mood improvement over 2 weeks",
           "trending-up", "growth", "rare", type="mood_improvement", percentage=10, window_days=14),
    _badge("mood_up_25", "Transformation", "25% mood improvement over a month",
           "arrow-up-circle", "growth", "epic", type="mood_improvement", percentage=25, window_days=30),
    _badge("comeback_kid", "Comeback Kid", "Returned after a break and built a new streak",
           "refresh", "growth", "rare", type="first_of_kind", action="comeback_streak"),
]

_BY_ID = {b.id: b for b in BADGE_DEFINITIONS}


def get_badge(badge_id: str) -> Optional[BadgeDefinition]:
    return _BY_ID.get(badge_id)
