"""Item definitions and registry.

The registry doubles as the ItemCatalog used by the reward resolver:
``create(item_id)`` hands out a fresh Item for a known id.
"""
from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Item:
    """Base item definition."""
    id: str
    name: str
    type: str = "material"  # consumable, material, quest, equipment
    stack_max: int = 1
    value: int = 0
    rarity: str = "COMMON"
    tags: List[str] = field(default_factory=list)
    description: str = ""

    def __post_init__(self):
        if self.stack_max < 1:
            self.stack_max = 1

    def has_tag(self, tag: str) -> bool:
        """Check if item has a specific tag."""
        return tag in self.tags


class ItemRegistry:
    """Registry for managing item definitions."""

    def __init__(self):
        self.items: Dict[str, Item] = {}

    def register_item(self, item: Item):
        """Register a new item."""
        self.items[item.id] = item

    def get_item(self, item_id: str) -> Optional[Item]:
        """Get item definition by ID."""
        return self.items.get(item_id)

    def get_all_items(self) -> List[Item]:
        return list(self.items.values())

    def create(self, item_id: str) -> Optional[Item]:
        """Create an item instance, or None for unknown ids."""
        item = self.items.get(item_id)
        if item is None:
            return None
        return replace(item, tags=list(item.tags))

    def load_from_file(self, filepath: str) -> int:
        """Load items from JSON file. Returns number of items loaded."""
        if not os.path.exists(filepath):
            return 0

        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Error loading items from {filepath}: {e}")
            return 0

        loaded_count = 0
        for item_data in data.get('items', []):
            try:
                self.register_item(self._create_item_from_data(item_data))
                loaded_count += 1
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to load item {item_data.get('id', 'unknown')}: {e}")
        return loaded_count

    def _create_item_from_data(self, data: Dict[str, Any]) -> Item:
        """Create Item instance from JSON data."""
        return Item(
            id=data['id'],
            name=data['name'],
            type=data.get('type', 'material'),
            stack_max=int(data.get('stack_max', 1)),
            value=int(data.get('value', 0)),
            rarity=data.get('rarity', 'COMMON'),
            tags=list(data.get('tags', [])),
            description=data.get('description', ""),
        )
