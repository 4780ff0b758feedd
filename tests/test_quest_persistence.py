"""Test quest save records, section encoding and restore on load."""

import sys
import os
import random
from datetime import date, datetime
import pytest
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from questforge.quest.converter import TemplateConverter
from questforge.quest.daily import DailyQuestGenerator
from questforge.quest.factory import QuestFactory
from questforge.quest.history import FinalStatus, QuestHistory
from questforge.quest.manager import QuestManager
from questforge.quest.model import Category, QuestStatus, QuestTemplate, QuestType, Reward
from questforge.quest.persistence import QuestCodec
from questforge.quest.store import TemplateStore

TODAY = date(2026, 10, 19)
NOW = datetime(2026, 10, 19, 10, 30).timestamp()


class MockPlayer:
    def __init__(self, level=1):
        self.level = level
        self.experience = 0
        self.currency = 0

    def get_level(self):
        return self.level

    def grant_experience(self, amount):
        self.experience += amount

    def grant_currency(self, amount):
        self.currency += amount


class MockInventory:
    def try_add_item(self, item, quantity):
        return True


def _store():
    return TemplateStore([
        QuestTemplate(
            id="quest_001", title="Slime Hunter", quest_type="KILL", category=Category.MAIN,
            objectives={"kill_slime": 5}, reward=Reward(experience=50, currency=100),
        ),
        QuestTemplate(
            id="quest_002", title="Jelly", quest_type="COLLECT", category=Category.MAIN,
            objectives={"collect_slime_jelly": 3}, reward=Reward(experience=80),
        ),
        QuestTemplate(
            id="quest_007", title="Pest Control", quest_type="KILL", category=Category.SIDE,
            objectives={"kill_rat": 6}, variable_targets=("rat", "giant_spider", "bat"),
            variable_quantity=(4, 8),
        ),
        QuestTemplate(
            id="weekly_kill_template", title="Weekly Bounty", quest_type="KILL",
            category=Category.WEEKLY, required_level=1, objectives={"kill_bounty_target": 30},
            repeatable=True, variable_targets=("orc", "troll", "bandit"), variable_quantity=(20, 40),
        ),
    ])


@pytest.fixture
def env():
    store = _store()
    converter = TemplateConverter(rng=random.Random(9), clock=lambda: NOW)
    today = lambda: TODAY
    codec = QuestCodec(store, converter, DailyQuestGenerator(today), today_provider=today)
    manager = QuestManager(today_provider=today)
    return store, converter, codec, manager


def _activate(manager, quest, level=1):
    manager.offer(quest)
    manager.accept(quest.id, MockPlayer(level))
    return quest


def test_static_record_roundtrip(env):
    store, converter, codec, manager = env
    quest = _activate(manager, QuestFactory(store, converter).create("quest_001"))
    manager.update_progress("kill_slime", 3)

    record = codec.to_record(quest)
    assert record == {"questId": "quest_001", "progress": {"kill_slime": 3}, "status": "ACTIVE"}

    restored = codec.from_record(record)
    assert restored.id == quest.id
    assert restored.title == "Slime Hunter"
    assert restored.objectives == quest.objectives
    assert restored.progress == quest.progress
    assert restored.status == quest.status
    assert restored.reward == quest.reward


def test_variable_quest_keeps_resolved_objectives(env):
    store, converter, codec, manager = env
    quest = _activate(manager, converter.convert(store.get("quest_007")))
    key = next(iter(quest.objectives))
    manager.update_progress(key, 2)

    record = codec.to_record(quest)
    assert record["objectives"] == quest.objectives

    # A different random source cannot change what was saved
    other = QuestCodec(store, TemplateConverter(rng=random.Random(1234)), today_provider=lambda: TODAY)
    for _ in range(10):
        restored = other.from_record(record)
        assert restored.objectives == quest.objectives
        assert restored.progress == {key: 2}
        assert restored.title == quest.title


def test_dynamic_weekly_roundtrip(env):
    store, converter, codec, manager = env
    quest = _activate(manager, converter.convert(store.get("weekly_kill_template")))
    assert quest.id.startswith("weekly_kill_")
    key = next(iter(quest.objectives))
    manager.update_progress(key, 7)

    restored = codec.from_record(codec.to_record(quest))
    assert restored.id == quest.id
    assert restored.category == Category.WEEKLY
    assert restored.template_id == "weekly_kill_template"
    assert restored.objectives == quest.objectives
    assert restored.progress[key] == 7


def test_tiered_daily_roundtrip(env):
    _, _, codec, manager = env
    quests = DailyQuestGenerator().generate_daily_quests(7, TODAY)
    quest = _activate(manager, quests[1], level=7)
    manager.update_progress("kill_forest_goblin", 2)

    record = codec.to_record(quest)
    assert "objectives" not in record
    restored = codec.from_record(record, player_level=7)
    assert restored.id == "daily_kill_20261019_A02"
    assert restored.reward == quest.reward
    assert restored.progress == {"kill_forest_goblin": 2}
    assert restored.status == QuestStatus.ACTIVE


def test_stale_daily_is_excluded(env):
    _, _, codec, manager = env
    history = QuestHistory()
    record = {"questId": "daily_kill_20261017_A01", "progress": {"kill_forest_slime": 2}, "status": "ACTIVE"}

    assert codec.from_record(record, player_level=3, history=history) is None
    assert len(history.expired()) == 1
    assert history.expired()[0].metadata["originalDate"] == "2026-10-17"

    result = codec.decode_section({"activeQuests": [record]}, manager, player_level=3)
    assert result.expired == ["daily_kill_20261017_A01"]
    assert result.active == []
    assert manager.get_quest("daily_kill_20261017_A01") is None
    assert manager.history.expired()[0].quest_id == "daily_kill_20261017_A01"


def test_saved_progress_is_clamped(env):
    _, _, codec, _ = env
    over = codec.from_record({"questId": "quest_001", "progress": {"kill_slime": 99, "kill_ghost": 4}})
    assert over.progress == {"kill_slime": 5}
    assert over.status == QuestStatus.COMPLETED

    negative = codec.from_record({"questId": "quest_001", "progress": {"kill_slime": -3}})
    assert negative.progress == {"kill_slime": 0}
    assert negative.status == QuestStatus.ACTIVE


def test_corrupt_records_do_not_break_the_load(env):
    _, _, codec, manager = env
    section = {
        "activeQuests": [
            {"questId": "quest_001", "progress": {"kill_slime": 1}, "status": "ACTIVE"},
            {"questId": "no_such_template", "progress": {}, "status": "ACTIVE"},
            {"progress": {"kill_slime": 1}},
            "garbage",
            {"questId": "quest_002", "progress": {}, "status": "SLEEPING"},
            {"questId": "daily_kill_20261019_A09", "progress": {}, "status": "ACTIVE"},
        ],
        "completedQuestIds": ["vanished_quest"],
    }
    result = codec.decode_section(section, manager, player_level=1)
    assert [q.id for q in result.active] == ["quest_001"]
    assert len(result.dropped) == 6
    assert list(manager.active) == ["quest_001"]


def test_malformed_section_starts_empty(env):
    _, _, codec, manager = env
    manager.offer(QuestFactory(codec.store, codec.converter).create("quest_001"))
    result = codec.decode_section({"activeQuests": "nope"}, manager)
    assert result.restored_count == 0
    assert manager.all_quests() == []


def test_section_roundtrip(env):
    store, converter, codec, manager = env
    factory = QuestFactory(store, converter)
    player = MockPlayer(level=7)

    claimed = _activate(manager, factory.create("quest_001"))
    unclaimed = _activate(manager, factory.create("quest_002"))
    variable = _activate(manager, factory.create("quest_007"))
    daily = _activate(manager, DailyQuestGenerator().generate_daily_quests(7, TODAY)[2], level=7)
    manager.update_progress("kill_slime", 5)
    manager.update_progress("collect_slime_jelly", 3)
    manager.update_progress("collect_health_potion", 1)
    assert manager.claim_reward("quest_001", player, MockInventory())

    section = codec.encode_section(manager)
    assert section["completedQuestIds"] == ["quest_001", "quest_002"]
    assert section["claimedRewardIds"] == ["quest_001"]
    assert len(section["history"]) == 1

    restored = QuestManager(today_provider=lambda: TODAY)
    result = codec.decode_section(section, restored, player_level=7)
    assert result.dropped == [] and result.expired == []

    assert set(restored.active) == {variable.id, daily.id}
    assert restored.active[variable.id].objectives == variable.objectives
    assert restored.active[daily.id].progress == {"collect_health_potion": 1}
    assert restored.completed["quest_001"].status == QuestStatus.CLAIMED
    assert restored.completed["quest_002"].status == QuestStatus.COMPLETED
    assert restored.completed["quest_002"].progress == {"collect_slime_jelly": 3}
    assert restored.claimed_ids == {"quest_001"}
    assert restored.history.entries[0].final_status == FinalStatus.COMPLETED

    # The unclaimed quest can still be claimed after loading
    assert restored.claim_reward("quest_002", player, MockInventory())


def test_stale_unclaimed_completion_goes_to_history(env):
    _, _, codec, manager = env
    section = {
        "activeQuests": [],
        "completedQuestIds": ["daily_collect_20261018_A01", "daily_kill_20261018_A01"],
        "claimedRewardIds": ["daily_kill_20261018_A01"],
    }
    result = codec.decode_section(section, manager, player_level=4)
    assert result.expired == ["daily_collect_20261018_A01"]
    assert manager.completed == {}
    assert manager.history.expired()[0].metadata["expiryReason"] == "unclaimed"


class TestDynamicTemplates:
    """Dynamic ids rebuild from the template they were made from."""

    def _codec(self, *templates):
        store = TemplateStore(templates)
        converter = TemplateConverter(rng=random.Random(3), clock=lambda: NOW)
        return QuestCodec(store, converter, today_provider=lambda: TODAY), converter

    def test_repeatable_side_template_roundtrip(self):
        bounty = QuestTemplate(
            id="side_bounty", title="Town Bounty", quest_type="KILL", category=Category.SIDE,
            objectives={"kill_bandit": 6}, reward=Reward(experience=40), repeatable=True,
        )
        codec, converter = self._codec(bounty)
        manager = QuestManager(today_provider=lambda: TODAY)
        quest = _activate(manager, converter.convert(bounty))
        assert quest.id.startswith("side_kill_")
        manager.update_progress("kill_bandit", 2)

        restored = QuestManager(today_provider=lambda: TODAY)
        result = codec.decode_section(codec.encode_section(manager), restored)
        assert result.dropped == []
        assert restored.active[quest.id].progress == {"kill_bandit": 2}
        assert restored.active[quest.id].template_id == "side_bounty"

    def test_second_template_of_same_type(self):
        orcs = QuestTemplate(
            id="wk_a", title="Orc Purge", quest_type="KILL", category=Category.WEEKLY,
            objectives={"kill_orc": 30}, reward=Reward(experience=300), repeatable=True,
        )
        trolls = QuestTemplate(
            id="wk_b", title="Troll Purge", quest_type="KILL", category=Category.WEEKLY,
            objectives={"kill_troll": 10}, reward=Reward(experience=500), repeatable=True,
        )
        codec, converter = self._codec(orcs, trolls)
        manager = QuestManager(today_provider=lambda: TODAY)
        quest = _activate(manager, converter.convert(trolls))
        manager.update_progress("kill_troll", 4)

        record = codec.to_record(quest)
        assert record["templateId"] == "wk_b"
        restored = codec.from_record(record)
        assert restored.objectives == {"kill_troll": 10}
        assert restored.progress == {"kill_troll": 4}
        assert restored.reward.experience == 500
        assert restored.title == "Troll Purge"

        # Records written without a template fall back to the first one
        del record["templateId"]
        assert codec.from_record(record).template_id == "wk_a"

    def test_completed_dynamic_quest_keeps_its_template(self):
        orcs = QuestTemplate(
            id="wk_a", title="Orc Purge", quest_type="KILL", category=Category.WEEKLY,
            objectives={"kill_orc": 30}, repeatable=True,
        )
        trolls = QuestTemplate(
            id="wk_b", title="Troll Purge", quest_type="KILL", category=Category.WEEKLY,
            objectives={"kill_troll": 10}, reward=Reward(currency=90), repeatable=True,
        )
        codec, converter = self._codec(orcs, trolls)
        manager = QuestManager(today_provider=lambda: TODAY)
        quest = _activate(manager, converter.convert(trolls))
        manager.update_progress("kill_troll", 10)

        section = codec.encode_section(manager)
        assert section["completedTemplateIds"] == {quest.id: "wk_b"}
        restored = QuestManager(today_provider=lambda: TODAY)
        codec.decode_section(section, restored)
        assert restored.completed[quest.id].reward.currency == 90
        assert restored.completed[quest.id].status == QuestStatus.COMPLETED


class FullInventory:
    def __init__(self):
        self.full = True
        self.items = {}

    def try_add_item(self, item, quantity):
        if self.full:
            return False
        self.items[item] = self.items.get(item, 0) + quantity
        return True


def test_partial_grant_survives_save_and_load(env):
    store, converter, codec, manager = env
    potion_quest = QuestTemplate(
        id="quest_potion", title="Potion Run", quest_type="KILL", category=Category.SIDE,
        objectives={"kill_slime": 1},
        reward=Reward(experience=40, currency=25, items={"health_potion": 2}),
    )
    store.add(potion_quest)
    player = MockPlayer()
    inventory = FullInventory()
    _activate(manager, converter.convert(potion_quest))
    manager.update_progress("kill_slime", 1)
    assert not manager.claim_reward("quest_potion", player, inventory)
    assert player.experience == 40

    section = codec.encode_section(manager)
    assert section["pendingGrants"]["quest_potion"]["experience"] is True

    restored = QuestManager(today_provider=lambda: TODAY)
    codec.decode_section(section, restored)
    inventory.full = False
    assert restored.claim_reward("quest_potion", player, inventory)
    assert player.experience == 40
    assert player.currency == 25
    assert inventory.items == {"health_potion": 2}
    assert "pendingGrants" not in codec.encode_section(restored)
