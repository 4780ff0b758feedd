"""Quest history log.

Keeps one entry per quest that left the active set for good: claimed,
expired, abandoned or failed. The log is saved together with the quest
section so the player's record survives across sessions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from .ids import QuestIdParser
from .model import Quest

logger = logging.getLogger(__name__)


class FinalStatus(str, Enum):
    COMPLETED = "COMPLETED"
    EXPIRED = "EXPIRED"
    ABANDONED = "ABANDONED"
    FAILED = "FAILED"


@dataclass
class HistoryEntry:
    quest_id: str
    title: str
    final_status: FinalStatus
    recorded_on: date
    quest_type: str = ""
    category: str = ""
    tier: Optional[str] = None
    reward_claimed: bool = False
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_daily(self) -> bool:
        return QuestIdParser.is_daily(self.quest_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questId": self.quest_id,
            "title": self.title,
            "finalStatus": self.final_status.value,
            "date": self.recorded_on.isoformat(),
            "questType": self.quest_type,
            "category": self.category,
            "tier": self.tier,
            "rewardClaimed": self.reward_claimed,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        """Parse a saved entry. Raises KeyError/ValueError on malformed data."""
        return cls(
            quest_id=data["questId"],
            title=data.get("title", data["questId"]),
            final_status=FinalStatus(data["finalStatus"]),
            recorded_on=datetime.strptime(data["date"], "%Y-%m-%d").date(),
            quest_type=data.get("questType", ""),
            category=data.get("category", ""),
            tier=data.get("tier"),
            reward_claimed=bool(data.get("rewardClaimed", False)),
            metadata={str(k): str(v) for k, v in data.get("metadata", {}).items()},
        )


class QuestHistory:
    """Append-only log of finished quests."""

    def __init__(self):
        self.entries: List[HistoryEntry] = []

    def record(
        self,
        quest: Quest,
        final_status: FinalStatus,
        today: date,
        reward_claimed: bool = False,
        **metadata: str,
    ) -> HistoryEntry:
        """Add an entry for a live quest object."""
        entry = HistoryEntry(
            quest_id=quest.id,
            title=quest.title,
            final_status=final_status,
            recorded_on=today,
            quest_type=quest.quest_type.value,
            category=quest.category.value,
            tier=quest.tier or QuestIdParser.extract_tier(quest.id),
            reward_claimed=reward_claimed,
            metadata=dict(metadata),
        )
        self.entries.append(entry)
        logger.info(f"Quest {quest.id} recorded as {final_status.value}")
        return entry

    def record_expired(self, quest_id: str, today: date, reason: str, title: Optional[str] = None) -> HistoryEntry:
        """Add an EXPIRED entry for a saved quest that is not rebuilt anymore."""
        original = QuestIdParser.extract_date(quest_id)
        metadata = {"expiryReason": reason}
        if original is not None:
            metadata["originalDate"] = original.isoformat()
        entry = HistoryEntry(
            quest_id=quest_id,
            title=title or quest_id,
            final_status=FinalStatus.EXPIRED,
            recorded_on=today,
            tier=QuestIdParser.extract_tier(quest_id),
            metadata=metadata,
        )
        self.entries.append(entry)
        logger.info(f"Quest {quest_id} expired ({reason})")
        return entry

    def load(self, raw_entries: List[Dict[str, Any]]) -> int:
        """Replace the log with saved entries, skipping malformed ones.

        Returns:
            Number of entries loaded
        """
        self.entries = []
        for raw in raw_entries:
            try:
                self.entries.append(HistoryEntry.from_dict(raw))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping malformed history entry {raw!r}: {e}")
        return len(self.entries)

    def to_list(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]

    def contains(self, quest_id: str) -> bool:
        return any(entry.quest_id == quest_id for entry in self.entries)

    def by_status(self, final_status: FinalStatus) -> List[HistoryEntry]:
        return [entry for entry in self.entries if entry.final_status == final_status]

    def expired(self) -> List[HistoryEntry]:
        return self.by_status(FinalStatus.EXPIRED)

    def completed(self) -> List[HistoryEntry]:
        return self.by_status(FinalStatus.COMPLETED)

    def daily_history(self, days: int, today: date) -> List[HistoryEntry]:
        """Daily-quest entries recorded in the last ``days`` days, newest first."""
        since = today - timedelta(days=days)
        entries = [e for e in self.entries if e.is_daily and e.recorded_on > since]
        return sorted(entries, key=lambda e: e.recorded_on, reverse=True)

    def success_rate(self) -> float:
        """Share of COMPLETED entries among all entries (0.0 when empty)."""
        if not self.entries:
            return 0.0
        return len(self.completed()) / len(self.entries)

    def prune(self, keep_days: int, today: date) -> int:
        """Drop entries older than ``keep_days`` days. 0 keeps everything.

        Returns:
            Number of entries removed
        """
        if keep_days <= 0:
            return 0
        cutoff = today - timedelta(days=keep_days)
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.recorded_on >= cutoff]
        return before - len(self.entries)

    def __len__(self) -> int:
        return len(self.entries)
