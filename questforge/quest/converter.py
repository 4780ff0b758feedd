"""Template to quest instance conversion.

The converter stamps a concrete Quest out of a QuestTemplate. Fixed
templates are copied verbatim; templates with variable targets and/or a
variable quantity range get a randomly resolved objective plus a
synthesized title and description. Repeatable (daily/weekly) templates
receive a fresh ``{category}_{type}_{epochMillis}`` id on every call.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, Dict, Optional, Tuple

from .model import Category, Quest, QuestTemplate, QuestType, parse_quest_type
from .objectives import Objective, objective_key

logger = logging.getLogger(__name__)

# type -> (title noun, description verb)
_PHRASES = {
    QuestType.KILL: ("Hunt", "Defeat"),
    QuestType.COLLECT: ("Gathering", "Gather"),
    QuestType.EXPLORE: ("Expedition", "Explore"),
    QuestType.DELIVER: ("Delivery", "Deliver"),
    QuestType.REACH_LEVEL: ("Training", "Reach level"),
}

_CATEGORY_PREFIX = {
    Category.DAILY: "Daily",
    Category.WEEKLY: "Weekly",
}


def resolve_quest_type(raw: str, template_id: str = "?") -> QuestType:
    """Parse a template type string, degrading to KILL when it is unknown."""
    quest_type = parse_quest_type(raw)
    if quest_type is None:
        logger.warning(f"Template {template_id}: unknown quest type {raw!r}, using KILL")
        return QuestType.KILL
    return quest_type


def pick_quantity(rng: random.Random, bounds: Tuple[int, int]) -> int:
    """Uniform integer in ``[min, max]``; exactly ``min`` when min >= max."""
    low, high = bounds
    if low >= high:
        return low
    return rng.randint(low, high)


def _label(target: str) -> str:
    return target.replace("_", " ").strip().title()


def describe(quest_type: QuestType, category: Category, objectives: Dict[str, int]) -> Tuple[str, str]:
    """Build a title and description for resolved objectives.

    Example:
        describe(QuestType.KILL, Category.DAILY, {"kill_wolf": 7})
        -> ("Daily Wolf Hunt (7)", "Defeat 7 Wolf.")
    """
    noun, verb = _PHRASES[quest_type]
    prefix = _CATEGORY_PREFIX.get(category)
    if not objectives:
        title = f"{prefix} {noun}" if prefix else noun
        return title, ""

    key, qty = next(iter(objectives.items()))
    target = _label(Objective.from_key(key).target)
    if quest_type == QuestType.REACH_LEVEL:
        subject = noun
        description = f"{verb} {qty}."
    elif quest_type == QuestType.EXPLORE and qty == 1:
        subject = f"{target} {noun}".strip()
        description = f"{verb} {target}."
    else:
        subject = f"{target} {noun}".strip()
        description = f"{verb} {qty} {target}.".replace("  ", " ")
    title = f"{subject} ({qty})"
    if prefix:
        title = f"{prefix} {title}"
    return title, description


class TemplateConverter:
    """Expands templates into quest instances.

    Args:
        rng: Random source for variable targets and quantities
        clock: Callable returning the current time in seconds (epoch)
    """

    def __init__(self, rng: Optional[random.Random] = None, clock: Callable[[], float] = time.time):
        self.rng = rng or random.Random()
        self.clock = clock
        self._last_millis = 0

    def convert(self, template: QuestTemplate) -> Quest:
        """Create a fresh quest instance from a template.

        Never raises for malformed type strings: they degrade to KILL.

        Args:
            template: Template to expand

        Returns:
            New Quest in AVAILABLE status
        """
        quest_type = resolve_quest_type(template.quest_type, template.id)
        objectives, variable = self.resolve_objectives(template, quest_type)
        quest_id = self.instance_id(template.category, quest_type) if template.is_repeatable else template.id
        return self._build(template, quest_type, quest_id, objectives, variable)

    def rebuild(self, template: QuestTemplate, quest_id: str, objectives: Optional[Dict[str, int]] = None) -> Quest:
        """Recreate an instance with a known id and (optionally) known objectives.

        Used when restoring saved quests: nothing is drawn at random when
        ``objectives`` is given.
        """
        quest_type = resolve_quest_type(template.quest_type, template.id)
        if objectives:
            variable = template.has_variable_fields
            resolved = dict(objectives)
        else:
            resolved, variable = self.resolve_objectives(template, quest_type)
        return self._build(template, quest_type, quest_id, resolved, variable)

    def resolve_objectives(self, template: QuestTemplate, quest_type: QuestType) -> Tuple[Dict[str, int], bool]:
        """Resolve the objective map of a template.

        Returns:
            (objectives, variable) where ``variable`` tells whether anything
            was drawn at random
        """
        targets = template.variable_targets
        bounds = template.variable_quantity
        if not targets and bounds is None:
            return dict(template.objectives), False

        if bounds is not None:
            quantity = pick_quantity(self.rng, bounds)
        else:
            quantity = next(iter(template.objectives.values()), 1)

        if not targets:
            return {key: quantity for key in template.objectives}, True

        target = self.rng.choice(list(targets))
        return {objective_key(quest_type.objective_kind, target): quantity}, True

    def instance_id(self, category: Category, quest_type: QuestType) -> str:
        """Fresh ``{category}_{type}_{epochMillis}`` id, unique per converter."""
        millis = int(self.clock() * 1000)
        if millis <= self._last_millis:
            millis = self._last_millis + 1
        self._last_millis = millis
        return f"{category.value}_{quest_type.value}_{millis}".lower()

    def _build(
        self,
        template: QuestTemplate,
        quest_type: QuestType,
        quest_id: str,
        objectives: Dict[str, int],
        variable: bool,
    ) -> Quest:
        if variable:
            title, description = describe(quest_type, template.category, objectives)
        else:
            title, description = template.title, template.description
        return Quest(
            id=quest_id,
            template_id=template.id,
            title=title,
            description=description,
            quest_type=quest_type,
            category=template.category,
            required_level=template.required_level,
            objectives=objectives,
            reward=template.reward.scaled(),
            variable=variable,
            tags=template.tags,
            prerequisites=template.prerequisites,
            unlocks=template.unlocks,
        )
