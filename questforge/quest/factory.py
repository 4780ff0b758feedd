"""Quest factory: template lookup plus conversion."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .converter import TemplateConverter
from .model import Category, Quest, QuestType
from .store import TemplateStore

logger = logging.getLogger(__name__)

# Templates this many levels below the player still count as level-appropriate
LEVEL_WINDOW = 3


class QuestFactory:
    """Creates quest instances from the templates of a store.

    Args:
        store: Source of templates
        converter: Template converter (a fresh one if omitted)
    """

    def __init__(self, store: TemplateStore, converter: Optional[TemplateConverter] = None):
        self.store = store
        self.converter = converter or TemplateConverter()

    def create(self, template_id: str) -> Optional[Quest]:
        """Create an instance of a template, or None if the id is unknown."""
        template = self.store.get(template_id)
        if template is None:
            logger.warning(f"Unknown quest template: {template_id}")
            return None
        return self.converter.convert(template)

    def create_dynamic(self, category: Category, quest_type: QuestType) -> Optional[Quest]:
        """Create a repeatable quest from the first template of this category and type.

        Returns:
            A new instance with a fresh id, or None if no template matches
        """
        template = self.store.first_of_type(category, quest_type)
        if template is None:
            logger.warning(f"No {category.value} template of type {quest_type.value}")
            return None
        return self.converter.convert(template)

    def create_level_appropriate(self, player_level: int, exclude: Iterable[str] = ()) -> Optional[Quest]:
        """Create a quest from a random main/side template close to the player's level.

        Templates between ``player_level - LEVEL_WINDOW`` and ``player_level``
        qualify; daily and weekly templates do not.

        Args:
            player_level: Current player level
            exclude: Template ids that must not be picked (e.g. already tracked)

        Returns:
            A new instance, or None if no template qualifies
        """
        skipped = set(exclude)
        low = max(1, player_level - LEVEL_WINDOW)
        candidates = [
            t for t in self.store.by_level_range(low, player_level)
            if not t.category.repeatable and t.id not in skipped
        ]
        if not candidates:
            logger.info(f"No quest template fits level {player_level}")
            return None
        template = self.converter.rng.choice(candidates)
        return self.converter.convert(template)
