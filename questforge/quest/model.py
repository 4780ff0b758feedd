"""Quest engine data models for questforge.

This module defines the core data structures of the quest system: the
immutable QuestTemplate loaded from data files, the stateful Quest instance
a player accepts and completes, and the Reward attached to both.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from .objectives import ObjectiveKind


class QuestType(str, Enum):
    KILL = "KILL"
    COLLECT = "COLLECT"
    REACH_LEVEL = "REACH_LEVEL"
    EXPLORE = "EXPLORE"
    DELIVER = "DELIVER"

    @property
    def objective_kind(self) -> ObjectiveKind:
        return ObjectiveKind(self.value)


# Spellings found in older data files
_TYPE_ALIASES = {
    "LEVEL": QuestType.REACH_LEVEL,
    "REACHLEVEL": QuestType.REACH_LEVEL,
    "DELIVERY": QuestType.DELIVER,
}


def parse_quest_type(raw: Optional[str]) -> Optional[QuestType]:
    """Parse a type string (case-insensitive). Returns None when unknown."""
    if not raw:
        return None
    name = raw.strip().upper().replace("-", "_")
    if name in _TYPE_ALIASES:
        return _TYPE_ALIASES[name]
    try:
        return QuestType(name)
    except ValueError:
        return None


class Category(str, Enum):
    MAIN = "MAIN"
    SIDE = "SIDE"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"

    @property
    def repeatable(self) -> bool:
        return self in (Category.DAILY, Category.WEEKLY)


def parse_category(raw: Optional[str], default: Category = Category.SIDE) -> Category:
    if not raw:
        return default
    try:
        return Category(raw.strip().upper())
    except ValueError:
        return default


class QuestStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CLAIMED = "CLAIMED"
    FAILED = "FAILED"


@dataclass
class Reward:
    """Experience, currency and items granted when a quest is claimed.

    ``items`` maps item id to quantity; entries with a quantity below 1
    are dropped.
    """
    experience: int = 0
    currency: int = 0
    items: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        if self.experience < 0 or self.currency < 0:
            raise ValueError(f"Reward values must be >= 0 (exp={self.experience}, currency={self.currency})")
        self.items = {item_id: qty for item_id, qty in self.items.items() if qty >= 1}

    def is_empty(self) -> bool:
        return self.experience == 0 and self.currency == 0 and not self.items

    def scaled(self, extra_experience: int = 0, extra_currency: int = 0) -> "Reward":
        """Copy of this reward with flat bonuses added."""
        return Reward(
            experience=self.experience + extra_experience,
            currency=self.currency + extra_currency,
            items=dict(self.items),
        )


@dataclass(frozen=True)
class QuestTemplate:
    """Immutable quest definition used to stamp out quest instances."""
    id: str
    title: str
    description: str = ""
    quest_type: str = "KILL"  # raw type string, parsed by the converter
    category: Category = Category.SIDE
    required_level: int = 1
    objectives: Dict[str, int] = field(default_factory=dict)
    reward: Reward = field(default_factory=Reward)
    repeatable: bool = False
    tags: Tuple[str, ...] = ()
    prerequisites: Tuple[str, ...] = ()  # template ids that must be completed first
    unlocks: Tuple[str, ...] = ()  # template ids offered once this one completes
    variable_targets: Tuple[str, ...] = ()
    variable_quantity: Optional[Tuple[int, int]] = None  # inclusive (min, max)

    @property
    def has_variable_fields(self) -> bool:
        return bool(self.variable_targets) or self.variable_quantity is not None

    @property
    def is_repeatable(self) -> bool:
        return self.repeatable or self.category.repeatable

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


@dataclass
class Quest:
    """A concrete, stateful quest instance.

    ``progress`` always has exactly the keys of ``objectives`` and every
    value stays within ``[0, target]``.
    """
    id: str
    title: str
    description: str = ""
    quest_type: QuestType = QuestType.KILL
    category: Category = Category.SIDE
    required_level: int = 1
    objectives: Dict[str, int] = field(default_factory=dict)
    reward: Reward = field(default_factory=Reward)
    status: QuestStatus = QuestStatus.AVAILABLE
    progress: Dict[str, int] = field(default_factory=dict)
    template_id: Optional[str] = None
    variable: bool = False  # objectives were resolved at random
    tier: Optional[str] = None  # tier code for tiered daily quests
    tags: Tuple[str, ...] = ()
    prerequisites: Tuple[str, ...] = ()
    unlocks: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.template_id is None:
            self.template_id = self.id
        known = dict(self.progress)
        self.progress = {}
        self.restore_progress(known)

    def has_objective(self, key: str) -> bool:
        return key in self.objectives

    def remaining(self, key: str) -> int:
        if key not in self.objectives:
            return 0
        return self.objectives[key] - self.progress.get(key, 0)

    def add_progress(self, key: str, delta: int) -> bool:
        """Add ``delta`` to an objective, capped at its target.

        Returns:
            True if the stored progress changed
        """
        if key not in self.objectives or delta <= 0:
            return False
        current = self.progress.get(key, 0)
        updated = min(current + delta, self.objectives[key])
        self.progress[key] = updated
        return updated != current

    def raise_progress(self, key: str, value: int) -> bool:
        """Set an objective to ``value`` if that moves it forward (level style)."""
        if key not in self.objectives:
            return False
        current = self.progress.get(key, 0)
        updated = max(current, min(value, self.objectives[key]))
        self.progress[key] = updated
        return updated != current

    def restore_progress(self, saved: Dict[str, int]) -> None:
        """Overlay saved counters, clamped to ``[0, target]``. Unknown keys are ignored."""
        for key, target in self.objectives.items():
            value = saved.get(key, 0)
            try:
                value = int(value)
            except (TypeError, ValueError):
                value = 0
            self.progress[key] = max(0, min(value, target))

    def fill_progress(self) -> None:
        for key, target in self.objectives.items():
            self.progress[key] = target

    def is_satisfied(self) -> bool:
        """True when every objective has reached its target."""
        if not self.objectives:
            return False
        return all(self.progress.get(key, 0) >= target for key, target in self.objectives.items())

    @property
    def is_repeatable(self) -> bool:
        return self.category.repeatable
