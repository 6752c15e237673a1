# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Activity tags a mood entry can carry."""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class ActivityTag:
    id: str
    label: str
    icon: str


ACTIVITY_TAGS: List[ActivityTag] = [
    ActivityTag("work", "Work", "briefcase"),
    ActivityTag("exercise", "Exercise", "fitness"),
    ActivityTag("social", "Social", "people"),
    ActivityTag("family", "Family", "home"),
    ActivityTag("sleep", "Sleep", "moon"),
    ActivityTag("food", "Food", "restaurant"),
    ActivityTag("nature", "Nature", "leaf"),
    ActivityTag("creative", "Creative", "color-palette"),
    ActivityTag("relax", "Relax", "cafe"),
    ActivityTag("health", "Health", "medkit"),
]

_BY_ID = {t.id: t for t in ACTIVITY_TAGS}


def get_tag(tag_id: str) -> Optional[ActivityTag]:
    return _BY_ID.get(tag_id)
