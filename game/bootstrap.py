"""Bootstrap utilities: load quest templates and items, create a ready QuestSession."""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Tuple

from config import get_quest_data_dir
from questforge.inventory import Inventory
from questforge.items import ItemRegistry
from questforge.player import PlayerState
from questforge.quest import QuestSession, TemplateStore

logger = logging.getLogger(__name__)

ASSETS_DIR = Path(__file__).resolve().parent.parent / "assets"
ITEMS_FILE = ASSETS_DIR / "items.json"


def load_item_registry(items_file: Path = ITEMS_FILE) -> ItemRegistry:
    registry = ItemRegistry()
    count = registry.load_from_file(str(items_file))
    logger.info(f"-- Loaded {count} items --")
    return registry


def create_session(
    data_dir: Optional[Path] = None,
    items_file: Path = ITEMS_FILE,
    player_level: int = 1,
    inventory_slots: int = 20,
) -> Tuple[QuestSession, PlayerState, Inventory]:
    """Build a quest session with a fresh player and inventory.

    Level ups of the player are forwarded to the quest router.

    Returns:
        (session, player, inventory), with the session already started
    """
    store = TemplateStore.from_directory(data_dir or get_quest_data_dir())
    registry = load_item_registry(items_file)
    session = QuestSession(store, item_catalog=registry)
    player = PlayerState(level=player_level)
    player.on_level_up = session.router.on_level_reached
    inventory = Inventory(registry, max_slots=inventory_slots)
    session.start(player)
    return session, player, inventory
