"""Tiered daily quest generation.

The player's level selects one of five tiers. Each tier has a fixed table
of kill and collect targets with baseline rewards; the generator turns the
table into up to two kill quests, one collect quest and, for high tiers,
a bonus dungeon quest. Rewards grow linearly with the player's level.

Generation is deterministic for a given (level, day): the ids embed the
day, tier and sequence, which is what allows same-day regeneration and
expiry checks without any stored template.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

import config
from .ids import QuestIdParser, TieredId
from .model import Category, Quest, QuestType, Reward
from .objectives import ObjectiveKind, objective_key

logger = logging.getLogger(__name__)

DUNGEON_OBJECTIVE = "complete_dungeon"


class Tier(Enum):
    A = ("A", 1, 10, "Novice")
    B = ("B", 11, 20, "Adept")
    C = ("C", 21, 30, "Expert")
    D = ("D", 31, 40, "Master")
    S = ("S", 41, 50, "Legendary")

    def __init__(self, code: str, min_level: int, max_level: int, label: str):
        self.code = code
        self.min_level = min_level
        self.max_level = max_level
        self.label = label

    @classmethod
    def for_level(cls, level: int) -> "Tier":
        """Tier whose range contains ``level``; clamps below 1 to A and above 50 to S."""
        for tier in cls:
            if tier.min_level <= level <= tier.max_level:
                return tier
        if level > cls.S.max_level:
            return cls.S
        return cls.A

    @classmethod
    def from_code(cls, code: str) -> Optional["Tier"]:
        for tier in cls:
            if tier.code == code:
                return tier
        return None

    @property
    def has_bonus_quest(self) -> bool:
        return self.min_level >= config.HIGH_TIER_MIN_LEVEL


@dataclass(frozen=True)
class DailyTarget:
    """Baseline of one daily objective: target id, count and rewards."""
    target: str
    count: int
    experience: int
    gold: int


KILL_TARGETS: Dict[Tier, Tuple[DailyTarget, ...]] = {
    Tier.A: (DailyTarget("forest_slime", 5, 50, 30), DailyTarget("forest_goblin", 3, 80, 50)),
    Tier.B: (DailyTarget("wild_boar", 4, 120, 80), DailyTarget("cave_troll", 3, 150, 100)),
    Tier.C: (DailyTarget("forest_wolf", 4, 200, 150), DailyTarget("skeleton_warrior", 3, 250, 180)),
    Tier.D: (DailyTarget("fire_dragon", 2, 500, 350), DailyTarget("ice_giant", 3, 400, 300)),
    Tier.S: (DailyTarget("magma_dragon", 1, 1000, 800), DailyTarget("void_reaper", 1, 1200, 1000)),
}

COLLECT_TARGETS: Dict[Tier, Tuple[DailyTarget, ...]] = {
    Tier.A: (DailyTarget("health_potion", 3, 60, 40),),
    Tier.B: (DailyTarget("mana_potion", 5, 100, 70),),
    Tier.C: (DailyTarget("rare_ore", 3, 200, 150),),
    Tier.D: (DailyTarget("legendary_material", 2, 400, 300),),
    Tier.S: (DailyTarget("mythic_shard", 1, 800, 600),),
}

SPECIAL_BASE_EXPERIENCE = 500
SPECIAL_BASE_GOLD = 300

MAX_KILL_QUESTS = 2


def _label(target: str) -> str:
    return target.replace("_", " ").title()


class DailyQuestGenerator:
    """Builds the tiered daily quest set.

    Args:
        today_provider: Callable returning the current day (default: date.today)
    """

    def __init__(self, today_provider: Callable[[], date] = date.today):
        self.today_provider = today_provider

    def generate_daily_quests(self, player_level: int, today: Optional[date] = None) -> List[Quest]:
        """Generate the daily quests for a player level.

        Args:
            player_level: Current player level (selects the tier and scales rewards)
            today: Day to generate for (default: today_provider())

        Returns:
            Kill quests, then the collect quest, then the bonus quest if any
        """
        day = today or self.today_provider()
        tier = Tier.for_level(player_level)
        quests: List[Quest] = []
        quests.extend(self._kill_quests(day, tier, player_level))
        quests.extend(self._collect_quests(day, tier, player_level))
        if tier.has_bonus_quest:
            quests.append(self._special_quest(day, tier, player_level))
        logger.info(f"Generated {len(quests)} daily quests for level {player_level} (tier {tier.code})")
        return quests

    def regenerate(self, quest_id: str, player_level: int) -> Optional[Quest]:
        """Rebuild a single tiered daily quest from its id.

        The level is not part of the id, so rewards are scaled with the
        level given here.

        Returns:
            The quest, or None if the id is not a valid tiered daily id
        """
        parsed = QuestIdParser.parse_tiered(quest_id)
        if parsed is None:
            return None
        tier = Tier.from_code(parsed.tier_code)
        if tier is None:
            return None

        if parsed.kind == "kill":
            table = KILL_TARGETS[tier][:MAX_KILL_QUESTS]
            if not 1 <= parsed.sequence <= len(table):
                return None
            return self._kill_quest(parsed, tier, table[parsed.sequence - 1], player_level)
        if parsed.kind == "collect":
            table = COLLECT_TARGETS[tier]
            if parsed.sequence != 1 or not table:
                return None
            return self._collect_quest(parsed, tier, table[0], player_level)
        if parsed.sequence != 1 or not tier.has_bonus_quest:
            return None
        return self._special_quest(parsed.day, tier, player_level)

    def _kill_quests(self, day: date, tier: Tier, level: int) -> List[Quest]:
        quests = []
        for index, target in enumerate(KILL_TARGETS[tier][:MAX_KILL_QUESTS], start=1):
            quest_id = TieredId("kill", day, tier.code, index)
            quests.append(self._kill_quest(quest_id, tier, target, level))
        return quests

    def _kill_quest(self, quest_id: TieredId, tier: Tier, target: DailyTarget, level: int) -> Quest:
        reward = Reward(
            experience=target.experience + level * config.KILL_EXP_PER_LEVEL,
            currency=target.gold + level * config.KILL_GOLD_PER_LEVEL,
        )
        name = _label(target.target)
        return Quest(
            id=quest_id.format(),
            template_id=quest_id.format(),
            title=f"[{tier.label}] {name} Hunt",
            description=f"Defeat {target.count} {name}.",
            quest_type=QuestType.KILL,
            category=Category.DAILY,
            required_level=tier.min_level,
            objectives={objective_key(ObjectiveKind.KILL, target.target): target.count},
            reward=reward,
            tier=tier.code,
            tags=("daily", "combat"),
        )

    def _collect_quests(self, day: date, tier: Tier, level: int) -> List[Quest]:
        table = COLLECT_TARGETS[tier]
        if not table:
            return []
        return [self._collect_quest(TieredId("collect", day, tier.code, 1), tier, table[0], level)]

    def _collect_quest(self, quest_id: TieredId, tier: Tier, target: DailyTarget, level: int) -> Quest:
        reward = Reward(
            experience=target.experience + level * config.COLLECT_EXP_PER_LEVEL,
            currency=target.gold + level * config.COLLECT_GOLD_PER_LEVEL,
        )
        name = _label(target.target)
        return Quest(
            id=quest_id.format(),
            template_id=quest_id.format(),
            title=f"[{tier.label}] {name} Gathering",
            description=f"Gather {target.count} {name}.",
            quest_type=QuestType.COLLECT,
            category=Category.DAILY,
            required_level=tier.min_level,
            objectives={objective_key(ObjectiveKind.COLLECT, target.target): target.count},
            reward=reward,
            tier=tier.code,
            tags=("daily", "gathering"),
        )

    def _special_quest(self, day: date, tier: Tier, level: int) -> Quest:
        quest_id = TieredId("special", day, tier.code, 1).format()
        reward = Reward(
            experience=SPECIAL_BASE_EXPERIENCE + level * config.SPECIAL_EXP_PER_LEVEL,
            currency=SPECIAL_BASE_GOLD + level * config.SPECIAL_GOLD_PER_LEVEL,
        )
        return Quest(
            id=quest_id,
            template_id=quest_id,
            title=f"[{tier.label}] Dungeon Clear",
            description="Clear a dungeon once.",
            quest_type=QuestType.EXPLORE,
            category=Category.DAILY,
            required_level=tier.min_level,
            objectives={DUNGEON_OBJECTIVE: 1},
            reward=reward,
            tier=tier.code,
            tags=("daily", "dungeon"),
        )
