"""Quest id conventions.

Three id families exist:

* tiered daily ids, ``daily_{kind}_{yyyyMMdd}_{tierCode}{seq:02d}``
  (e.g. ``daily_kill_20261019_A01``), produced by DailyQuestGenerator;
* dynamic repeatable ids, ``{category}_{type}_{epochMillis}``
  (e.g. ``weekly_collect_1760000000000``), produced by TemplateConverter
  for daily/weekly templates and any template flagged repeatable;
* static ids, which are simply template ids.

QuestIdParser recovers everything encoded in the first two families so
that saved quests can be rebuilt and expiry can be decided from the id
alone.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

import config
from .model import Category, QuestType

DATE_FORMAT = "%Y%m%d"
TIERED_KINDS = ("kill", "collect", "special")

_TIERED_RE = re.compile(r"^daily_(kill|collect|special)_(\d{8})_([ABCDS])(\d{2})$")
_DYNAMIC_RE = re.compile(
    r"^(" + "|".join(c.value.lower() for c in Category) + r")_("
    + "|".join(t.value.lower() for t in QuestType) + r")_(\d{10,})$"
)


@dataclass(frozen=True)
class TieredId:
    kind: str
    day: date
    tier_code: str
    sequence: int

    def format(self) -> str:
        return f"daily_{self.kind}_{self.day.strftime(DATE_FORMAT)}_{self.tier_code}{self.sequence:02d}"


@dataclass(frozen=True)
class DynamicId:
    category: Category
    quest_type: QuestType
    millis: int

    @property
    def created(self) -> datetime:
        return datetime.fromtimestamp(self.millis / 1000)

    @property
    def day(self) -> date:
        return self.created.date()


def format_day(day: date) -> str:
    return day.strftime(DATE_FORMAT)


class QuestIdParser:
    """Parsing helpers for generated quest ids."""

    @staticmethod
    def is_daily(quest_id: Optional[str]) -> bool:
        return bool(quest_id) and quest_id.startswith("daily_")

    @staticmethod
    def is_weekly(quest_id: Optional[str]) -> bool:
        return bool(quest_id) and quest_id.startswith("weekly_")

    @staticmethod
    def parse_tiered(quest_id: Optional[str]) -> Optional[TieredId]:
        if not quest_id:
            return None
        match = _TIERED_RE.match(quest_id)
        if not match:
            return None
        kind, raw_day, tier_code, seq = match.groups()
        try:
            day = datetime.strptime(raw_day, DATE_FORMAT).date()
        except ValueError:
            return None
        return TieredId(kind=kind, day=day, tier_code=tier_code, sequence=int(seq))

    @staticmethod
    def parse_dynamic(quest_id: Optional[str]) -> Optional[DynamicId]:
        if not quest_id:
            return None
        match = _DYNAMIC_RE.match(quest_id)
        if not match:
            return None
        category, quest_type, millis = match.groups()
        return DynamicId(
            category=Category(category.upper()),
            quest_type=QuestType(quest_type.upper()),
            millis=int(millis),
        )

    @classmethod
    def is_generated(cls, quest_id: Optional[str]) -> bool:
        """True for tiered daily and dynamic repeatable ids."""
        return cls.parse_tiered(quest_id) is not None or cls.parse_dynamic(quest_id) is not None

    @classmethod
    def extract_date(cls, quest_id: Optional[str]) -> Optional[date]:
        tiered = cls.parse_tiered(quest_id)
        if tiered:
            return tiered.day
        dynamic = cls.parse_dynamic(quest_id)
        if dynamic:
            return dynamic.day
        return None

    @classmethod
    def extract_tier(cls, quest_id: Optional[str]) -> Optional[str]:
        tiered = cls.parse_tiered(quest_id)
        return tiered.tier_code if tiered else None

    @classmethod
    def extract_sequence(cls, quest_id: Optional[str]) -> Optional[int]:
        tiered = cls.parse_tiered(quest_id)
        return tiered.sequence if tiered else None

    @classmethod
    def is_expired(cls, quest_id: Optional[str], today: date, weekly_days: Optional[int] = None) -> bool:
        """Decide staleness from the id alone.

        Daily ids (tiered or dynamic) expire once their day is before
        ``today``. Weekly ids expire ``weekly_days`` days after creation.
        Static ids and repeatable main/side ids never expire.
        """
        if weekly_days is None:
            weekly_days = config.WEEKLY_EXPIRY_DAYS
        tiered = cls.parse_tiered(quest_id)
        if tiered:
            return tiered.day < today
        dynamic = cls.parse_dynamic(quest_id)
        if dynamic is None:
            return False
        if dynamic.category == Category.WEEKLY:
            return (today - dynamic.day).days >= weekly_days
        if dynamic.category == Category.DAILY:
            return dynamic.day < today
        return False
