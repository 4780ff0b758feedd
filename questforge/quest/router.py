"""Progress routing from gameplay events to objective keys.

Combat, exploration and inventory code report what happened through the
on_* hooks below; each hook maps the event to exactly one objective key
and forwards it to the QuestManager.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .manager import QuestManager
from .model import Quest
from .objectives import Objective, ObjectiveKind

logger = logging.getLogger(__name__)


def _normalize(raw_id: str) -> str:
    """Game ids arrive in any case (``FOREST_SLIME``); keys use lowercase."""
    return raw_id.strip().lower().replace(" ", "_")


class ProgressRouter:
    """Maps game-world events to quest progress.

    Args:
        manager: Lifecycle engine receiving the updates
        on_completed: Optional callback invoked with each quest completed
            by an event (e.g. to show a notification)
    """

    def __init__(self, manager: QuestManager, on_completed: Optional[Callable[[Quest], None]] = None):
        self.manager = manager
        self.on_completed = on_completed

    def on_monster_defeated(self, monster_id: str, count: int = 1) -> List[Quest]:
        return self._forward(Objective(ObjectiveKind.KILL, _normalize(monster_id)), count)

    def on_item_collected(self, item_id: str, quantity: int = 1) -> List[Quest]:
        return self._forward(Objective(ObjectiveKind.COLLECT, _normalize(item_id)), quantity)

    def on_location_explored(self, location_id: str) -> List[Quest]:
        return self._forward(Objective(ObjectiveKind.EXPLORE, _normalize(location_id)), 1)

    def on_item_delivered(self, item_id: str, quantity: int = 1) -> List[Quest]:
        return self._forward(Objective(ObjectiveKind.DELIVER, _normalize(item_id)), quantity)

    def on_custom_event(self, key: str, amount: int = 1) -> List[Quest]:
        """Forward an arbitrary objective key (e.g. ``complete_dungeon``)."""
        return self._forward(Objective.from_key(_normalize(key)), amount)

    def on_level_reached(self, level: int) -> List[Quest]:
        finished = self.manager.update_level(level)
        self._notify(finished)
        return finished

    def _forward(self, objective: Objective, amount: int) -> List[Quest]:
        logger.debug(f"Progress event {objective.key} +{amount}")
        finished = self.manager.update_objective(objective, amount)
        self._notify(finished)
        return finished

    def _notify(self, finished: List[Quest]) -> None:
        if self.on_completed is None:
            return
        for quest in finished:
            self.on_completed(quest)
