"""Minimal player state used as the reward target.

Only what the quest system needs: level, experience and currency. Level
ups call ``on_level_up`` so the caller can forward them to the quest
router.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, List, Optional


def experience_for_next_level(level: int) -> int:
    return level * 100


@dataclass
class PlayerState:
    level: int = 1
    experience: int = 0
    currency: int = 0
    on_level_up: Optional[Callable[[int], None]] = field(default=None, repr=False, compare=False)

    def get_level(self) -> int:
        return self.level

    def grant_experience(self, amount: int) -> List[int]:
        """Add experience, levelling up as often as it allows.

        Returns:
            Levels reached by this grant (empty if none)
        """
        if amount <= 0:
            return []
        self.experience += amount
        reached = []
        while self.experience >= experience_for_next_level(self.level):
            self.experience -= experience_for_next_level(self.level)
            self.level += 1
            reached.append(self.level)
        if reached and self.on_level_up is not None:
            self.on_level_up(self.level)
        return reached

    def grant_currency(self, amount: int) -> None:
        if amount > 0:
            self.currency += amount
