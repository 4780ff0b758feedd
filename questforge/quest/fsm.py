"""Finite State Machine for quest status.

This module holds the status transitions of a single quest.
States: AVAILABLE -> ACTIVE -> COMPLETED -> CLAIMED, plus terminal FAILED.
"""

from __future__ import annotations

import logging
from typing import Iterable

from .model import Quest, QuestStatus, QuestType
from .objectives import REACH_LEVEL_KEY

logger = logging.getLogger(__name__)

_TRANSITIONS = {
    QuestStatus.AVAILABLE: {QuestStatus.ACTIVE},
    QuestStatus.ACTIVE: {QuestStatus.COMPLETED, QuestStatus.FAILED},
    QuestStatus.COMPLETED: {QuestStatus.CLAIMED},
    QuestStatus.CLAIMED: set(),
    QuestStatus.FAILED: set(),
}


def can_transition(quest: Quest, new_status: QuestStatus) -> bool:
    return new_status in _TRANSITIONS[quest.status]


def transition(quest: Quest, new_status: QuestStatus) -> bool:
    """Move a quest to ``new_status`` if the state machine allows it.

    Returns:
        True if the status changed
    """
    if not can_transition(quest, new_status):
        logger.debug(f"Rejected transition {quest.id}: {quest.status.value} -> {new_status.value}")
        return False
    quest.status = new_status
    return True


def can_accept(quest: Quest, player_level: int, completed_ids: Iterable[str] = ()) -> bool:
    """Check if a quest can be accepted.

    Args:
        quest: Quest to check
        player_level: Current level of the player
        completed_ids: Template ids the player has already completed

    Returns:
        True if the quest is AVAILABLE, the level is sufficient and every
        prerequisite is completed
    """
    if quest.status != QuestStatus.AVAILABLE:
        return False
    if player_level < quest.required_level:
        return False
    done = set(completed_ids)
    return all(prereq in done for prereq in quest.prerequisites)


def accept_quest(quest: Quest, player_level: int, completed_ids: Iterable[str] = ()) -> bool:
    """Accept a quest: AVAILABLE -> ACTIVE.

    Level objectives are seeded with the current level, so a REACH_LEVEL
    quest accepted above its target is satisfied right away (the caller
    completes it).
    """
    if not can_accept(quest, player_level, completed_ids):
        return False
    transition(quest, QuestStatus.ACTIVE)
    if quest.quest_type == QuestType.REACH_LEVEL or quest.has_objective(REACH_LEVEL_KEY):
        quest.raise_progress(REACH_LEVEL_KEY, player_level)
    return True


def apply_progress(quest: Quest, key: str, delta: int) -> bool:
    """Add progress to an active quest.

    Returns:
        True if the quest is now satisfied and was moved to COMPLETED
    """
    if quest.status != QuestStatus.ACTIVE:
        return False
    if not quest.add_progress(key, delta):
        return False
    return complete_if_satisfied(quest)


def apply_level(quest: Quest, level: int) -> bool:
    """Level-style update of the ``reach_level`` objective.

    Returns:
        True if the quest was moved to COMPLETED
    """
    if quest.status != QuestStatus.ACTIVE:
        return False
    if not quest.raise_progress(REACH_LEVEL_KEY, level):
        return False
    return complete_if_satisfied(quest)


def complete_if_satisfied(quest: Quest) -> bool:
    if quest.status == QuestStatus.ACTIVE and quest.is_satisfied():
        return transition(quest, QuestStatus.COMPLETED)
    return False


def fail_quest(quest: Quest) -> bool:
    return transition(quest, QuestStatus.FAILED)


def mark_claimed(quest: Quest) -> bool:
    return transition(quest, QuestStatus.CLAIMED)
