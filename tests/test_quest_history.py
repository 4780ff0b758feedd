"""Test the quest history log."""

import sys
import os
from datetime import date, timedelta
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from questforge.quest.history import FinalStatus, HistoryEntry, QuestHistory
from questforge.quest.model import Category, Quest, QuestType

TODAY = date(2026, 10, 19)


def _quest(quest_id, category=Category.DAILY):
    return Quest(id=quest_id, title=quest_id, quest_type=QuestType.KILL, category=category,
                 objectives={"kill_slime": 1})


def test_success_rate():
    history = QuestHistory()
    assert history.success_rate() == 0.0
    history.record(_quest("a"), FinalStatus.COMPLETED, TODAY, reward_claimed=True)
    history.record(_quest("b"), FinalStatus.COMPLETED, TODAY, reward_claimed=True)
    history.record(_quest("c"), FinalStatus.ABANDONED, TODAY)
    history.record_expired("daily_kill_20261018_A01", TODAY, reason="date_changed")
    assert history.success_rate() == 0.5


def test_daily_history_window():
    history = QuestHistory()
    history.record(_quest("daily_kill_20261010_A01"), FinalStatus.COMPLETED, TODAY - timedelta(days=9))
    history.record(_quest("daily_kill_20261017_A01"), FinalStatus.COMPLETED, TODAY - timedelta(days=2))
    history.record_expired("daily_collect_20261018_A01", TODAY, reason="date_changed")
    history.record(_quest("quest_001", Category.MAIN), FinalStatus.COMPLETED, TODAY)

    recent = history.daily_history(7, TODAY)
    assert [e.quest_id for e in recent] == ["daily_collect_20261018_A01", "daily_kill_20261017_A01"]
    assert recent[0].tier == "A"


def test_serialization_and_pruning():
    history = QuestHistory()
    history.record(_quest("old"), FinalStatus.FAILED, TODAY - timedelta(days=40), reason="timeout")
    history.record(_quest("new"), FinalStatus.COMPLETED, TODAY, reward_claimed=True)

    saved = history.to_list()
    assert saved[1]["questId"] == "new"
    assert saved[1]["date"] == "2026-10-19"
    assert saved[1]["rewardClaimed"] is True

    loaded = QuestHistory()
    assert loaded.load(saved + [{"questId": "broken"}, {"finalStatus": "COMPLETED"}]) == 2
    assert loaded.entries[0].metadata == {"reason": "timeout"}
    assert HistoryEntry.from_dict(saved[1]).final_status == FinalStatus.COMPLETED

    assert loaded.prune(30, TODAY) == 1
    assert [e.quest_id for e in loaded.entries] == ["new"]
    assert loaded.prune(0, TODAY) == 0
