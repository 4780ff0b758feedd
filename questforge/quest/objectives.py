"""Objective keys for the quest system.

An objective key is the string that joins templates, progress maps and
gameplay events (``kill_slime``, ``collect_herb``, ``reach_level``...).
In code objectives are handled as a small tagged value, ``Objective``,
which converts to and from the string form used in data files and saves.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ObjectiveKind(str, Enum):
    KILL = "KILL"
    COLLECT = "COLLECT"
    REACH_LEVEL = "REACH_LEVEL"
    EXPLORE = "EXPLORE"
    DELIVER = "DELIVER"
    CUSTOM = "CUSTOM"


REACH_LEVEL_KEY = "reach_level"

# kind -> key prefix (REACH_LEVEL and CUSTOM have no prefix)
_PREFIXES = {
    ObjectiveKind.KILL: "kill",
    ObjectiveKind.COLLECT: "collect",
    ObjectiveKind.EXPLORE: "explore",
    ObjectiveKind.DELIVER: "deliver",
}


@dataclass(frozen=True)
class Objective:
    """A single countable condition: what to do and to whom/what.

    Examples:
        Objective(ObjectiveKind.KILL, "slime").key == "kill_slime"
        Objective.from_key("reach_level").kind == ObjectiveKind.REACH_LEVEL
        Objective.from_key("complete_dungeon").kind == ObjectiveKind.CUSTOM
    """
    kind: ObjectiveKind
    target: str = ""

    @property
    def key(self) -> str:
        if self.kind == ObjectiveKind.REACH_LEVEL:
            return REACH_LEVEL_KEY
        if self.kind == ObjectiveKind.CUSTOM:
            return self.target
        return f"{_PREFIXES[self.kind]}_{self.target}"

    @classmethod
    def from_key(cls, key: str) -> "Objective":
        """Parse a legacy string key. Unknown prefixes become CUSTOM objectives."""
        if key == REACH_LEVEL_KEY:
            return cls(ObjectiveKind.REACH_LEVEL)
        prefix, sep, target = key.partition("_")
        if sep and target:
            for kind, kind_prefix in _PREFIXES.items():
                if prefix == kind_prefix:
                    return cls(kind, target)
        return cls(ObjectiveKind.CUSTOM, key)

    def __str__(self) -> str:
        return self.key


def action_prefix(kind: ObjectiveKind) -> Optional[str]:
    """Key prefix for an objective kind, or None when the kind has no prefix."""
    return _PREFIXES.get(kind)


def objective_key(kind: ObjectiveKind, target: str = "") -> str:
    """Shortcut for ``Objective(kind, target).key``."""
    return Objective(kind, target).key
