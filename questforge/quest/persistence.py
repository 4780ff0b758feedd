"""Quest save/load codec.

A saved quest is a compact record: ``{"questId", "progress", "status"}``.
Titles, descriptions, rewards and targets are not stored; they are derived
again from the id on load:

* tiered daily ids are regenerated by DailyQuestGenerator;
* dynamic repeatable ids are rebuilt from the template recorded with
  them (older saves: the first template of their category and type);
* static ids are looked up in the template store.

Quests whose objectives were drawn at random also store their resolved
``"objectives"`` map, and quests with a dynamic id store the
``"templateId"`` they were made from, so rebuilding them is exact.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

import jsonschema

import config
from .converter import TemplateConverter
from .daily import DailyQuestGenerator
from .history import QuestHistory
from .ids import DynamicId, QuestIdParser
from .manager import QuestManager
from .model import Quest, QuestStatus, QuestTemplate
from .rewards import GrantReceipt
from .schema import QUEST_RECORD_SCHEMA, SAVE_SECTION_SCHEMA
from .store import TemplateStore

logger = logging.getLogger(__name__)

_RESTORABLE = {QuestStatus.AVAILABLE, QuestStatus.ACTIVE, QuestStatus.COMPLETED, QuestStatus.CLAIMED}


@dataclass
class QuestLoadResult:
    """Outcome of decoding a save section."""
    active: List[Quest] = field(default_factory=list)
    completed: List[Quest] = field(default_factory=list)
    expired: List[str] = field(default_factory=list)
    dropped: List[str] = field(default_factory=list)

    @property
    def restored_count(self) -> int:
        return len(self.active) + len(self.completed)


class QuestCodec:
    """Converts quests to and from their saved form.

    Args:
        store: Templates for static and dynamic ids
        converter: Rebuilds template-based instances
        daily: Regenerates tiered daily quests
        today_provider: Callable returning the current day (expiry checks)
    """

    def __init__(
        self,
        store: TemplateStore,
        converter: Optional[TemplateConverter] = None,
        daily: Optional[DailyQuestGenerator] = None,
        today_provider: Callable[[], date] = date.today,
    ):
        self.store = store
        self.converter = converter or TemplateConverter()
        self.daily = daily or DailyQuestGenerator(today_provider)
        self.today_provider = today_provider

    # ---------------- Single records ----------------

    def to_record(self, quest: Quest) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "questId": quest.id,
            "progress": dict(quest.progress),
            "status": quest.status.value,
        }
        if quest.variable:
            record["objectives"] = dict(quest.objectives)
        if quest.template_id and quest.template_id != quest.id:
            record["templateId"] = quest.template_id
        return record

    def from_record(
        self,
        record: Dict[str, Any],
        player_level: int = 1,
        today: Optional[date] = None,
        history: Optional[QuestHistory] = None,
    ) -> Optional[Quest]:
        """Rebuild a live quest from a saved record.

        Args:
            record: Saved record
            player_level: Level used to scale regenerated daily rewards
            today: Current day for expiry (default: today_provider())
            history: Receives an EXPIRED entry when the record is stale

        Returns:
            The quest with progress and status restored, or None if the
            record is expired or cannot be decoded
        """
        quest, _ = self._restore(record, player_level, today or self.today_provider(), history)
        return quest

    def build(
        self,
        quest_id: str,
        player_level: int = 1,
        objectives: Optional[Dict[str, int]] = None,
        template_id: Optional[str] = None,
    ) -> Optional[Quest]:
        """Recreate the AVAILABLE form of a quest from its id.

        Args:
            quest_id: Saved quest id
            player_level: Level used to scale regenerated daily rewards
            objectives: Saved objectives of a randomly resolved quest
            template_id: Saved template of a dynamic id

        Returns:
            The quest, or None if the id cannot be resolved
        """
        if QuestIdParser.parse_tiered(quest_id):
            return self.daily.regenerate(quest_id, player_level)

        dynamic = QuestIdParser.parse_dynamic(quest_id)
        if dynamic is not None:
            template = self._dynamic_template(quest_id, dynamic, template_id)
            if template is None:
                return None
            if template.has_variable_fields and not objectives:
                logger.warning(f"Quest {quest_id} saved without objectives, drawing new ones")
            return self.converter.rebuild(template, quest_id, objectives)

        template = self.store.get(quest_id)
        if template is None:
            return None
        return self.converter.rebuild(template, quest_id, objectives if template.has_variable_fields else None)

    def _dynamic_template(self, quest_id: str, dynamic: DynamicId, template_id: Optional[str]) -> Optional[QuestTemplate]:
        """Template a dynamic id was made from.

        Saves written before ``templateId`` was recorded fall back to the
        first repeatable template of the id's category and type.
        """
        if template_id:
            template = self.store.get(template_id)
            if template is not None and template.category == dynamic.category:
                return template
            logger.warning(f"Quest {quest_id}: saved template {template_id} is gone, using first {dynamic.category.value} template")
        matches = self.store.by_type(dynamic.category, dynamic.quest_type)
        repeatable = [t for t in matches if t.is_repeatable]
        candidates = repeatable or matches
        return candidates[0] if candidates else None

    def _restore(
        self,
        record: Any,
        player_level: int,
        today: date,
        history: Optional[QuestHistory],
    ) -> Tuple[Optional[Quest], str]:
        """Returns (quest, outcome) where outcome is restored, expired or dropped."""
        try:
            jsonschema.validate(record, QUEST_RECORD_SCHEMA)
        except jsonschema.ValidationError as e:
            logger.warning(f"Dropping malformed quest record {record!r}: {e.message}")
            return None, "dropped"

        quest_id = record["questId"]
        if QuestIdParser.is_expired(quest_id, today):
            if history is not None:
                history.record_expired(quest_id, today, reason="date_changed")
            return None, "expired"

        try:
            status = QuestStatus(str(record.get("status", "ACTIVE")).upper())
        except ValueError:
            logger.warning(f"Dropping quest {quest_id}: unknown status {record.get('status')!r}")
            return None, "dropped"
        if status not in _RESTORABLE:
            logger.warning(f"Dropping quest {quest_id}: status {status.value} is not restorable")
            return None, "dropped"

        quest = self.build(quest_id, player_level, record.get("objectives"), record.get("templateId"))
        if quest is None:
            logger.warning(f"Dropping quest {quest_id}: cannot rebuild from id")
            return None, "dropped"

        _apply_saved_state(quest, record.get("progress", {}), status)
        return quest, "restored"

    # ---------------- Whole section ----------------

    def encode_section(self, manager: QuestManager) -> Dict[str, Any]:
        """Build the quest section of a save document."""
        today = self.today_provider()
        manager.history.prune(config.HISTORY_RETENTION_DAYS, today)
        completed_objectives = {
            q.id: dict(q.objectives) for q in manager.completed.values() if q.variable
        }
        section: Dict[str, Any] = {
            "activeQuests": [self.to_record(q) for q in manager.active.values()],
            "completedQuestIds": list(manager.completed),
            "claimedRewardIds": sorted(manager.claimed_ids),
            "history": manager.history.to_list(),
        }
        if completed_objectives:
            section["completedObjectives"] = completed_objectives
        completed_templates = {
            q.id: q.template_id for q in manager.completed.values()
            if q.template_id and q.template_id != q.id
        }
        if completed_templates:
            section["completedTemplateIds"] = completed_templates
        # Partly granted rewards, so a retry after loading pays only the rest
        pending = {
            quest_id: receipt.to_dict() for quest_id, receipt in manager.receipts.items()
            if quest_id in manager.completed and receipt.is_started()
        }
        if pending:
            section["pendingGrants"] = pending
        return section

    def decode_section(
        self,
        data: Dict[str, Any],
        manager: QuestManager,
        player_level: int = 1,
        today: Optional[date] = None,
    ) -> QuestLoadResult:
        """Restore a save section into the manager.

        Every record is decoded on its own: one bad record is logged and
        dropped while the rest loads normally. Stale daily/weekly quests
        move to the history instead of the active set.

        Args:
            data: Quest section of a save document
            manager: Manager whose collections are replaced
            player_level: Level used to regenerate daily rewards
            today: Current day (default: today_provider())

        Returns:
            QuestLoadResult describing what was restored
        """
        day = today or self.today_provider()
        result = QuestLoadResult()
        try:
            jsonschema.validate(data, SAVE_SECTION_SCHEMA)
        except jsonschema.ValidationError as e:
            logger.warning(f"Quest save section is malformed, starting empty: {e.message}")
            manager.replace_all_for_load([], [], [])
            return result

        manager.history.load(data.get("history", []))

        for record in data.get("activeQuests", []):
            quest, outcome = self._restore(record, player_level, day, manager.history)
            if quest is not None:
                result.active.append(quest)
            elif outcome == "expired":
                result.expired.append(record["questId"])
            else:
                result.dropped.append(record.get("questId", "?") if isinstance(record, dict) else "?")

        claimed = set(data.get("claimedRewardIds", []))
        completed_objectives = data.get("completedObjectives") or {}
        completed_templates = data.get("completedTemplateIds") or {}
        for quest_id in data.get("completedQuestIds", []):
            is_claimed = quest_id in claimed
            if QuestIdParser.is_expired(quest_id, day):
                if not is_claimed:
                    manager.history.record_expired(quest_id, day, reason="unclaimed")
                    result.expired.append(quest_id)
                continue
            quest = self.build(
                quest_id, player_level, completed_objectives.get(quest_id), completed_templates.get(quest_id)
            )
            if quest is None:
                logger.warning(f"Dropping completed quest {quest_id}: cannot rebuild from id")
                result.dropped.append(quest_id)
                continue
            _apply_saved_state(quest, {}, QuestStatus.CLAIMED if is_claimed else QuestStatus.COMPLETED)
            result.completed.append(quest)

        manager.replace_all_for_load([], result.active, result.completed)
        _restore_receipts(manager, data.get("pendingGrants") or {})
        logger.info(
            f"Restored {result.restored_count} quests "
            f"({len(result.expired)} expired, {len(result.dropped)} dropped)"
        )
        return result


def _restore_receipts(manager: QuestManager, pending: Dict[str, Any]) -> None:
    for quest_id, raw in pending.items():
        quest = manager.completed.get(quest_id)
        if quest is None or quest.status != QuestStatus.COMPLETED:
            continue
        try:
            manager.receipts[quest_id] = GrantReceipt.from_dict(raw)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring malformed grant receipt for {quest_id}: {e}")


def _apply_saved_state(quest: Quest, progress: Dict[str, Any], status: QuestStatus) -> None:
    """Overlay saved progress and status, keeping status and progress consistent."""
    if status == QuestStatus.AVAILABLE:
        quest.restore_progress({})
    elif status in (QuestStatus.COMPLETED, QuestStatus.CLAIMED):
        quest.fill_progress()
    else:
        quest.restore_progress(progress)
        if quest.is_satisfied():
            status = QuestStatus.COMPLETED
    quest.status = status
