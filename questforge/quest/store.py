"""Template store: lookup and filtering over loaded quest templates."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from .loader import load_all_templates
from .model import Category, QuestTemplate, QuestType, parse_quest_type

logger = logging.getLogger(__name__)


class TemplateStore:
    """Holds the immutable quest templates, indexed by id and category.

    The store has no behaviour beyond lookup. Templates are replaced as a
    whole by ``reload``; callers must not reload while a session is running
    (see QuestSession.reload_templates).
    """

    def __init__(self, templates: Optional[Iterable[QuestTemplate]] = None):
        self._templates: Dict[str, QuestTemplate] = {}
        self._loader: Optional[Callable[[], Dict[Category, List[QuestTemplate]]]] = None
        if templates:
            self.add_all(templates)

    @classmethod
    def from_directory(cls, data_dir: Union[str, Path, None] = None, strict: Optional[bool] = None) -> "TemplateStore":
        """Build a store from the category files of a data directory.

        Args:
            data_dir: Quest data directory (default from config)
            strict: Raise on invalid templates instead of skipping them

        Returns:
            A loaded TemplateStore that can later be reloaded from the same source
        """
        store = cls()
        store._loader = lambda: load_all_templates(data_dir, strict=strict)
        store.reload()
        return store

    def add(self, template: QuestTemplate) -> None:
        if template.id in self._templates:
            logger.warning(f"Template {template.id} registered twice, replacing the previous one")
        self._templates[template.id] = template

    def add_all(self, templates: Iterable[QuestTemplate]) -> None:
        for template in templates:
            self.add(template)

    def reload(self) -> int:
        """Reload every template from the source the store was built from.

        Returns:
            Number of templates loaded (0 for stores built in memory)
        """
        if self._loader is None:
            return 0
        by_category = self._loader()
        self._templates = {}
        for templates in by_category.values():
            self.add_all(templates)
        logger.info(f"Template store loaded {len(self._templates)} templates")
        return len(self._templates)

    def get(self, template_id: str) -> Optional[QuestTemplate]:
        return self._templates.get(template_id)

    def has(self, template_id: str) -> bool:
        return template_id in self._templates

    def all(self) -> List[QuestTemplate]:
        return list(self._templates.values())

    def by_category(self, category: Category) -> List[QuestTemplate]:
        return [t for t in self._templates.values() if t.category == category]

    def by_type(self, category: Category, quest_type: QuestType) -> List[QuestTemplate]:
        """Templates of a category whose type string parses to ``quest_type``."""
        return [
            t for t in self.by_category(category)
            if parse_quest_type(t.quest_type) == quest_type
        ]

    def first_of_type(self, category: Category, quest_type: QuestType) -> Optional[QuestTemplate]:
        matches = self.by_type(category, quest_type)
        return matches[0] if matches else None

    def by_tag(self, tag: str) -> List[QuestTemplate]:
        return [t for t in self._templates.values() if t.has_tag(tag)]

    def by_level_range(self, min_level: int, max_level: int) -> List[QuestTemplate]:
        return [t for t in self._templates.values() if min_level <= t.required_level <= max_level]

    def ids_for_level(self, player_level: int, category: Optional[Category] = None) -> List[str]:
        """Ids of the templates a player of this level may take, sorted by required level."""
        candidates = self.by_category(category) if category else self.all()
        eligible = [t for t in candidates if t.required_level <= player_level]
        eligible.sort(key=lambda t: (t.required_level, t.id))
        return [t.id for t in eligible]

    def count(self, category: Optional[Category] = None) -> int:
        if category is None:
            return len(self._templates)
        return len(self.by_category(category))

    def __len__(self) -> int:
        return len(self._templates)

    def __contains__(self, template_id: str) -> bool:
        return template_id in self._templates
