"""Quest lifecycle management.

QuestManager owns the three quest collections (available, active,
completed) and drives every quest through its lifecycle: accept,
progress updates, completion, reward claim, failure, abandon and expiry.
Status changes themselves go through the fsm module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Set

from . import fsm
from .history import FinalStatus, QuestHistory
from .ids import QuestIdParser
from .model import Category, Quest, QuestStatus, QuestType
from .objectives import Objective
from .rewards import GrantReceipt, Inventory, Player, RewardResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestStatistics:
    available: int
    active: int
    claimable: int
    claimed: int

    @property
    def total(self) -> int:
        return self.available + self.active + self.claimable + self.claimed

    @property
    def completion_rate(self) -> float:
        """Percentage of tracked quests whose reward was claimed (0.0 when none)."""
        if self.total == 0:
            return 0.0
        return self.claimed / self.total * 100


class QuestManager:
    """Tracks the player's quests and their lifecycle.

    One progress event is broadcast to every active quest with the
    matching objective key, and every quest it satisfies completes.

    Args:
        resolver: Grants rewards on claim
        history: Log of finished quests
        today_provider: Callable returning the current day
    """

    def __init__(
        self,
        resolver: Optional[RewardResolver] = None,
        history: Optional[QuestHistory] = None,
        today_provider: Callable[[], date] = date.today,
    ):
        self.resolver = resolver or RewardResolver()
        self.history = history if history is not None else QuestHistory()
        self.today_provider = today_provider
        self.available: Dict[str, Quest] = {}
        self.active: Dict[str, Quest] = {}
        self.completed: Dict[str, Quest] = {}  # COMPLETED and CLAIMED
        self.claimed_ids: Set[str] = set()
        self.completed_template_ids: Set[str] = set()
        self.receipts: Dict[str, GrantReceipt] = {}
        # Builds follow-up quests from the template ids a completed quest unlocks
        self.unlock_handler: Optional[Callable[[str], Optional[Quest]]] = None
        self.daily_generated_on: Optional[date] = None

    # ---------------- Lookup ----------------

    def get_quest(self, quest_id: str) -> Optional[Quest]:
        """Get a tracked quest by id.

        Args:
            quest_id: Quest id to look up

        Returns:
            Quest object or None if not tracked
        """
        for collection in (self.active, self.available, self.completed):
            if quest_id in collection:
                return collection[quest_id]
        return None

    def is_tracked(self, quest_id: str) -> bool:
        return self.get_quest(quest_id) is not None

    def all_quests(self) -> List[Quest]:
        return [*self.available.values(), *self.active.values(), *self.completed.values()]

    def active_quests(self) -> List[Quest]:
        return list(self.active.values())

    def available_for(self, player_level: int) -> List[Quest]:
        """Available quests the player could accept right now."""
        return [
            q for q in self.available.values()
            if fsm.can_accept(q, player_level, self.completed_template_ids)
        ]

    def claimable(self) -> List[Quest]:
        return [q for q in self.completed.values() if q.status == QuestStatus.COMPLETED]

    def claimed(self) -> List[Quest]:
        return [q for q in self.completed.values() if q.status == QuestStatus.CLAIMED]

    def by_category(self, category: Category) -> List[Quest]:
        return [q for q in self.all_quests() if q.category == category]

    def count_by_type(self, quest_type: QuestType) -> int:
        """Number of available quests of a type."""
        return sum(1 for q in self.available.values() if q.quest_type == quest_type)

    def statistics(self) -> QuestStatistics:
        return QuestStatistics(
            available=len(self.available),
            active=len(self.active),
            claimable=len(self.claimable()),
            claimed=len(self.claimed()),
        )

    # ---------------- Offering ----------------

    def offer(self, quest: Quest) -> bool:
        """Make a quest available to the player.

        Args:
            quest: Quest in AVAILABLE status

        Returns:
            False if the quest is already tracked, finished, or not AVAILABLE
        """
        if quest.status != QuestStatus.AVAILABLE:
            logger.warning(f"Cannot offer quest {quest.id} in status {quest.status.value}")
            return False
        if self.is_tracked(quest.id) or self.history.contains(quest.id):
            return False
        self.available[quest.id] = quest
        return True

    def offer_all(self, quests: Iterable[Quest]) -> int:
        return sum(1 for quest in quests if self.offer(quest))

    def add_daily_quests(self, quests: Iterable[Quest], today: Optional[date] = None) -> int:
        """Offer a freshly generated daily set.

        Quests already tracked or already in the history are skipped, so
        running the same day's generation twice adds nothing.

        Returns:
            Number of quests added
        """
        added = self.offer_all(quests)
        self.daily_generated_on = today or self.today_provider()
        if added:
            logger.info(f"Added {added} daily quests for {self.daily_generated_on.isoformat()}")
        return added

    def needs_daily_refresh(self, today: Optional[date] = None) -> bool:
        return self.daily_generated_on != (today or self.today_provider())

    # ---------------- Lifecycle ----------------

    def accept(self, quest_id: str, player: Player) -> bool:
        """Accept an available quest.

        Args:
            quest_id: Id of the quest to accept
            player: Player accepting (level is checked)

        Returns:
            True if the quest is now active (or already completed, for
            level quests satisfied on accept)
        """
        quest = self.available.get(quest_id)
        if quest is None:
            return False
        if not fsm.accept_quest(quest, player.get_level(), self.completed_template_ids):
            return False

        del self.available[quest_id]
        self.active[quest_id] = quest
        logger.info(f"Quest accepted: {quest_id}")
        if fsm.complete_if_satisfied(quest):
            self._on_completed(quest)
        return True

    def update_progress(self, key: str, delta: int = 1) -> List[Quest]:
        """Forward a progress delta to every active quest with this objective key.

        Args:
            key: Objective key (e.g. ``kill_slime``)
            delta: Amount to add; values <= 0 are ignored

        Returns:
            Quests completed by this update
        """
        if delta <= 0:
            return []
        finished = []
        for quest in list(self.active.values()):
            if not quest.has_objective(key):
                continue
            if fsm.apply_progress(quest, key, delta):
                self._on_completed(quest)
                finished.append(quest)
            else:
                logger.debug(f"Quest {quest.id} progress {key}: {quest.progress[key]}/{quest.objectives[key]}")
        return finished

    def update_objective(self, objective: Objective, delta: int = 1) -> List[Quest]:
        return self.update_progress(objective.key, delta)

    def update_level(self, level: int) -> List[Quest]:
        """Apply a new player level to every active level objective.

        Returns:
            Quests completed by this update
        """
        finished = []
        for quest in list(self.active.values()):
            if fsm.apply_level(quest, level):
                self._on_completed(quest)
                finished.append(quest)
        return finished

    def complete_quest(self, quest_id: str) -> bool:
        """Complete an active quest whose objectives are all satisfied."""
        quest = self.active.get(quest_id)
        if quest is None or not fsm.complete_if_satisfied(quest):
            return False
        self._on_completed(quest)
        return True

    def claim_reward(self, quest_id: str, player: Player, inventory: Optional[Inventory]) -> bool:
        """Claim the reward of a completed quest.

        On failure (e.g. inventory full) the quest stays COMPLETED and can
        be claimed again; what was already granted is not granted twice.

        Returns:
            True if the quest is now CLAIMED
        """
        quest = self.completed.get(quest_id)
        if quest is None or quest.status != QuestStatus.COMPLETED:
            return False

        receipt = self.receipts.setdefault(quest_id, GrantReceipt())
        if not self.resolver.grant(quest.reward, player, inventory, receipt):
            logger.info(f"Reward for {quest_id} not fully granted, quest stays completed")
            return False

        fsm.mark_claimed(quest)
        self.claimed_ids.add(quest_id)
        self.receipts.pop(quest_id, None)
        self.history.record(quest, FinalStatus.COMPLETED, self.today_provider(), reward_claimed=True)
        logger.info(f"Reward claimed: {quest_id}")
        return True

    def fail(self, quest_id: str, reason: str = "") -> bool:
        """Fail an active quest. Failed quests leave the tracked collections."""
        quest = self.active.get(quest_id)
        if quest is None or not fsm.fail_quest(quest):
            return False
        del self.active[quest_id]
        self.history.record(quest, FinalStatus.FAILED, self.today_provider(), reason=reason)
        return True

    def abandon(self, quest_id: str) -> bool:
        """Abandon an active quest (main quests cannot be abandoned).

        Returns:
            True if the quest was dropped
        """
        quest = self.active.get(quest_id)
        if quest is None or quest.category == Category.MAIN:
            return False
        del self.active[quest_id]
        self.history.record(quest, FinalStatus.ABANDONED, self.today_provider())
        return True

    def cleanup_expired(self, today: Optional[date] = None) -> List[str]:
        """Remove stale daily/weekly quests from the available and active sets.

        Returns:
            Ids of the quests moved to the history
        """
        day = today or self.today_provider()
        removed = []
        for collection in (self.available, self.active):
            for quest_id in [qid for qid in collection if QuestIdParser.is_expired(qid, day)]:
                quest = collection.pop(quest_id)
                self.history.record(
                    quest, FinalStatus.EXPIRED, day,
                    expiryReason="date_changed",
                    originalDate=str(QuestIdParser.extract_date(quest_id)),
                )
                removed.append(quest_id)
        return removed

    def replace_all_for_load(
        self,
        available: Iterable[Quest],
        active: Iterable[Quest],
        completed: Iterable[Quest],
    ) -> None:
        """Replace every collection with restored quests.

        Quests are filed by their status; duplicates keep their first
        occurrence and quests in an unexpected status are dropped.
        """
        self.available, self.active, self.completed = {}, {}, {}
        self.claimed_ids = set()
        self.receipts = {}
        self.completed_template_ids = set()

        targets = {
            QuestStatus.AVAILABLE: self.available,
            QuestStatus.ACTIVE: self.active,
            QuestStatus.COMPLETED: self.completed,
            QuestStatus.CLAIMED: self.completed,
        }
        for quest in [*available, *active, *completed]:
            collection = targets.get(quest.status)
            if collection is None:
                logger.warning(f"Dropping restored quest {quest.id} in status {quest.status.value}")
                continue
            if self.is_tracked(quest.id):
                logger.warning(f"Dropping duplicate restored quest {quest.id}")
                continue
            collection[quest.id] = quest
            if quest.status in (QuestStatus.COMPLETED, QuestStatus.CLAIMED):
                self.completed_template_ids.add(quest.template_id)
            if quest.status == QuestStatus.CLAIMED:
                self.claimed_ids.add(quest.id)

    def _on_completed(self, quest: Quest) -> None:
        self.active.pop(quest.id, None)
        self.completed[quest.id] = quest
        self.completed_template_ids.add(quest.template_id)
        logger.info(f"Quest completed: {quest.id}")

        if self.unlock_handler is None:
            return
        for template_id in quest.unlocks:
            if self.is_tracked(template_id):
                continue
            follow_up = self.unlock_handler(template_id)
            if follow_up is not None and self.offer(follow_up):
                logger.info(f"Quest {quest.id} unlocked {follow_up.id}")
