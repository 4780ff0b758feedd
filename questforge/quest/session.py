"""Quest session: explicit wiring of the quest subsystem.

A QuestSession owns one set of collaborators (converter, factory, daily
generator, manager, router, resolver, codec). Several sessions can live
side by side; nothing is shared through module globals.
"""

from __future__ import annotations

import logging
import random
import time
from datetime import date
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from ..core.persistence import load_game, save_game
from .converter import TemplateConverter
from .daily import DailyQuestGenerator
from .factory import QuestFactory
from .history import QuestHistory
from .manager import QuestManager
from .model import Category, Quest, QuestType
from .persistence import QuestCodec, QuestLoadResult
from .rewards import Inventory, ItemCatalog, Player, RewardResolver
from .router import ProgressRouter
from .store import TemplateStore

logger = logging.getLogger(__name__)

# Below this many acceptable quests, start() offers a level-appropriate one
MIN_AVAILABLE_QUESTS = 3


class QuestSession:
    """Quest subsystem of one running game.

    Args:
        store: Loaded templates
        converter: Template converter (built from ``rng``/``clock`` if omitted)
        item_catalog: Creates reward items
        rng: Random source for variable templates
        clock: Current time in seconds, used for dynamic ids
        today_provider: Current day, used for dailies and expiry
    """

    def __init__(
        self,
        store: TemplateStore,
        converter: Optional[TemplateConverter] = None,
        item_catalog: Optional[ItemCatalog] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
        today_provider: Callable[[], date] = date.today,
    ):
        self.store = store
        self.today_provider = today_provider
        self.converter = converter or TemplateConverter(rng, clock)
        self.factory = QuestFactory(store, self.converter)
        self.daily = DailyQuestGenerator(today_provider)
        self.history = QuestHistory()
        self.resolver = RewardResolver(item_catalog)
        self.manager = QuestManager(self.resolver, self.history, today_provider)
        self.manager.unlock_handler = self.factory.create
        self.router = ProgressRouter(self.manager)
        self.codec = QuestCodec(store, self.converter, self.daily, today_provider)
        self.started = False

    def start(self, player: Player) -> int:
        """Offer the story and side quests, today's dailies and, if the player
        has few quests to pick from, a level-appropriate one.

        Quests already tracked (e.g. restored from a save) or already in
        the history are not offered again.

        Returns:
            Number of quests offered
        """
        offered = 0
        for category in (Category.MAIN, Category.SIDE):
            for template in self.store.by_category(category):
                if template.is_repeatable:
                    continue
                quest = self.factory.create(template.id)
                if quest is not None and self.manager.offer(quest):
                    offered += 1
        offered += self.refresh_daily(player.get_level())
        if self.offer_level_appropriate(player) is not None:
            offered += 1
        self.started = True
        logger.info(f"Quest session started with {offered} new quests")
        return offered

    def stop(self) -> None:
        self.started = False

    def refresh_daily(self, player_level: int, today: Optional[date] = None) -> int:
        """Expire stale quests and add the day's tiered dailies (once per day).

        Returns:
            Number of daily quests added
        """
        day = today or self.today_provider()
        self.manager.cleanup_expired(day)
        if not self.manager.needs_daily_refresh(day):
            return 0
        quests = self.daily.generate_daily_quests(player_level, day)
        return self.manager.add_daily_quests(quests, day)

    def offer_level_appropriate(self, player: Player, minimum: int = MIN_AVAILABLE_QUESTS) -> Optional[Quest]:
        """Top up the offer with one quest near the player's level.

        Nothing is added while the player can already accept ``minimum``
        quests. Templates already tracked, finished or in the history are
        not picked again.

        Returns:
            The offered quest, or None
        """
        level = player.get_level()
        if len(self.manager.available_for(level)) >= minimum:
            return None
        exclude = {q.template_id for q in self.manager.all_quests()}
        exclude.update(self.manager.completed_template_ids)
        exclude.update(entry.quest_id for entry in self.history.entries)
        quest = self.factory.create_level_appropriate(level, exclude)
        if quest is None or not self.manager.offer(quest):
            return None
        logger.info(f"Offered level-appropriate quest {quest.id} at level {level}")
        return quest

    def create_dynamic_quest(self, category: Category, quest_type: QuestType) -> Optional[Quest]:
        """Create and offer a repeatable quest from the templates of a category."""
        quest = self.factory.create_dynamic(category, quest_type)
        if quest is None or not self.manager.offer(quest):
            return None
        return quest

    def accept(self, quest_id: str, player: Player) -> bool:
        return self.manager.accept(quest_id, player)

    def claim(self, quest_id: str, player: Player, inventory: Optional[Inventory]) -> bool:
        return self.manager.claim_reward(quest_id, player, inventory)

    # ---------------- Persistence ----------------

    def save_section(self) -> dict:
        return self.codec.encode_section(self.manager)

    def load_section(self, data: dict, player_level: int, today: Optional[date] = None) -> QuestLoadResult:
        result = self.codec.decode_section(data, self.manager, player_level, today)
        # Restored dailies may belong to an earlier day
        self.manager.daily_generated_on = None
        return result

    def save(self, player: Player, slot_name: str = "quicksave", saves_dir: Union[str, Path, None] = None) -> str:
        """Write the quest state to a save slot. Raises SaveError on failure."""
        return save_game(self.save_section(), player.get_level(), slot_name, saves_dir)

    def load(
        self,
        slot_name: Optional[str] = None,
        filepath: Optional[str] = None,
        saves_dir: Union[str, Path, None] = None,
    ) -> Tuple[QuestLoadResult, int]:
        """Restore the quest state from a save file.

        Returns:
            (load result, saved player level)

        Raises:
            SaveError: If the file cannot be read
        """
        payload = load_game(slot_name=slot_name, filepath=filepath, saves_dir=saves_dir)
        player_level = int(payload["player"].get("level", 1))
        return self.load_section(payload["quests"], player_level), player_level

    # ---------------- Templates ----------------

    def reload_templates(self) -> bool:
        """Reload templates from their source; refused while the session runs."""
        if self.started:
            logger.warning("Template reload refused: a quest session is running")
            return False
        self.store.reload()
        return True
