"""Test routing of gameplay events to quest progress."""

import sys
import os
from datetime import date
import pytest
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from questforge.quest.manager import QuestManager
from questforge.quest.model import Quest, QuestStatus, QuestType
from questforge.quest.router import ProgressRouter


class MockPlayer:
    def __init__(self, level=1):
        self.level = level

    def get_level(self):
        return self.level

    def grant_experience(self, amount):
        pass

    def grant_currency(self, amount):
        pass


@pytest.fixture
def setup():
    manager = QuestManager(today_provider=lambda: date(2026, 10, 19))
    completed = []
    router = ProgressRouter(manager, on_completed=completed.append)
    return manager, router, completed


def _activate(manager, quest_id, objectives, **kwargs):
    quest = Quest(id=quest_id, title=quest_id, objectives=objectives, **kwargs)
    manager.offer(quest)
    manager.accept(quest_id, MockPlayer())
    return quest


def test_monster_defeated(setup):
    manager, router, completed = setup
    quest = _activate(manager, "hunt", {"kill_forest_slime": 2})

    assert router.on_monster_defeated("FOREST_SLIME") == []
    assert quest.progress["kill_forest_slime"] == 1
    assert router.on_monster_defeated("forest_slime") == [quest]
    assert quest.status == QuestStatus.COMPLETED
    assert completed == [quest]


def test_item_collected_and_delivered(setup):
    manager, router, _ = setup
    gather = _activate(manager, "gather", {"collect_health_potion": 3})
    deliver = _activate(manager, "deliver", {"deliver_sealed_letter": 1})

    router.on_item_collected("Health Potion", 2)
    assert gather.progress["collect_health_potion"] == 2
    # Collecting is not delivering
    router.on_item_collected("sealed_letter")
    assert deliver.progress["deliver_sealed_letter"] == 0

    router.on_item_delivered("sealed_letter")
    assert deliver.status == QuestStatus.COMPLETED


def test_location_and_custom_events(setup):
    manager, router, completed = setup
    ruins = _activate(manager, "ruins", {"explore_old_ruins": 1})
    dungeon = _activate(manager, "dungeon", {"complete_dungeon": 2}, quest_type=QuestType.EXPLORE)

    router.on_location_explored("old_ruins")
    router.on_custom_event("complete_dungeon")
    router.on_custom_event("complete_dungeon", 5)

    assert ruins.status == QuestStatus.COMPLETED
    assert dungeon.progress["complete_dungeon"] == 2
    assert completed == [ruins, dungeon]


def test_level_reached(setup):
    manager, router, completed = setup
    quest = _activate(manager, "grow", {"reach_level": 5}, quest_type=QuestType.REACH_LEVEL)

    router.on_level_reached(3)
    assert quest.progress["reach_level"] == 3
    router.on_level_reached(5)
    assert completed == [quest]


def test_unrelated_events_do_nothing(setup):
    manager, router, completed = setup
    quest = _activate(manager, "hunt", {"kill_wolf": 1})
    router.on_monster_defeated("slime")
    router.on_custom_event("talk_to_mayor")
    assert quest.progress["kill_wolf"] == 0
    assert completed == []
