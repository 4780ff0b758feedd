"""Test tiered daily quest generation and id parsing."""

import sys
import os
import re
from datetime import date, datetime
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from questforge.quest.daily import DailyQuestGenerator, Tier, DUNGEON_OBJECTIVE
from questforge.quest.ids import QuestIdParser
from questforge.quest.model import Category, QuestType

TODAY = date(2026, 10, 19)


def _millis(dt):
    return int(dt.timestamp() * 1000)


class TestTiers:
    """Level to tier mapping."""

    def test_ranges(self):
        assert Tier.for_level(1) == Tier.A
        assert Tier.for_level(7) == Tier.A
        assert Tier.for_level(10) == Tier.A
        assert Tier.for_level(11) == Tier.B
        assert Tier.for_level(25) == Tier.C
        assert Tier.for_level(40) == Tier.D
        assert Tier.for_level(41) == Tier.S
        assert Tier.for_level(50) == Tier.S

    def test_out_of_range(self):
        assert Tier.for_level(0) == Tier.A
        assert Tier.for_level(-3) == Tier.A
        assert Tier.for_level(99) == Tier.S

    def test_codes(self):
        assert Tier.from_code("C") == Tier.C
        assert Tier.from_code("Z") is None
        assert Tier.A.label == "Novice"
        assert not Tier.B.has_bonus_quest
        assert Tier.C.has_bonus_quest


def test_level_seven_player_gets_tier_a_quests():
    quests = DailyQuestGenerator().generate_daily_quests(7, TODAY)
    ids = [q.id for q in quests]
    assert ids == [
        "daily_kill_20261019_A01",
        "daily_kill_20261019_A02",
        "daily_collect_20261019_A01",
    ]
    assert all(re.match(r"^daily_(kill|collect)_20261019_A\d{2}$", qid) for qid in ids)

    slime = quests[0]
    assert slime.tier == "A"
    assert slime.category == Category.DAILY
    assert slime.quest_type == QuestType.KILL
    assert slime.objectives == {"kill_forest_slime": 5}
    # Baseline 50/30 plus 7 levels of scaling
    assert slime.reward.experience == 50 + 7 * 10
    assert slime.reward.currency == 30 + 7 * 5
    assert slime.required_level == 1

    potion = quests[2]
    assert potion.quest_type == QuestType.COLLECT
    assert potion.objectives == {"collect_health_potion": 3}
    assert potion.reward.experience == 60 + 7 * 8
    assert potion.reward.currency == 40 + 7 * 4


def test_bonus_quest_only_for_high_tiers():
    generator = DailyQuestGenerator()
    adept = generator.generate_daily_quests(15, TODAY)
    assert len(adept) == 3
    assert not any(q.id.startswith("daily_special_") for q in adept)

    expert = generator.generate_daily_quests(25, TODAY)
    assert len(expert) == 4
    special = expert[-1]
    assert special.id == "daily_special_20261019_C01"
    assert special.quest_type == QuestType.EXPLORE
    assert special.objectives == {DUNGEON_OBJECTIVE: 1}
    assert special.reward.experience == 500 + 25 * 20
    assert special.reward.currency == 300 + 25 * 15
    assert special.required_level == 21


def test_generation_is_deterministic_per_day():
    generator = DailyQuestGenerator(today_provider=lambda: TODAY)
    first = generator.generate_daily_quests(33)
    second = generator.generate_daily_quests(33)
    assert [(q.id, q.objectives, q.reward) for q in first] == [(q.id, q.objectives, q.reward) for q in second]

    tomorrow = generator.generate_daily_quests(33, date(2026, 10, 20))
    assert tomorrow[0].id == "daily_kill_20261020_D01"


def test_regenerate_from_id():
    generator = DailyQuestGenerator()
    generated = generator.generate_daily_quests(7, TODAY)
    for quest in generated:
        rebuilt = generator.regenerate(quest.id, 7)
        assert rebuilt.id == quest.id
        assert rebuilt.title == quest.title
        assert rebuilt.objectives == quest.objectives
        assert rebuilt.reward == quest.reward

    assert generator.regenerate("daily_kill_20261019_A03", 7) is None
    assert generator.regenerate("daily_collect_20261019_A02", 7) is None
    assert generator.regenerate("daily_special_20261019_A01", 7) is None
    assert generator.regenerate("quest_001", 7) is None


class TestQuestIdParser:
    """Parsing and expiry of generated ids."""

    def test_tiered_ids(self):
        parsed = QuestIdParser.parse_tiered("daily_kill_20261019_B02")
        assert parsed.kind == "kill"
        assert parsed.day == TODAY
        assert parsed.tier_code == "B"
        assert parsed.sequence == 2
        assert parsed.format() == "daily_kill_20261019_B02"

        assert QuestIdParser.is_daily("daily_kill_20261019_B02")
        assert QuestIdParser.extract_date("daily_collect_20261019_A01") == TODAY
        assert QuestIdParser.extract_tier("daily_special_20261019_S01") == "S"
        assert QuestIdParser.extract_sequence("daily_kill_20261019_D02") == 2

    def test_rejects_other_ids(self):
        assert QuestIdParser.parse_tiered("daily_kill_20261399_A01") is None
        assert QuestIdParser.parse_tiered("daily_kill_20261019_X01") is None
        assert QuestIdParser.parse_tiered("quest_001") is None
        assert QuestIdParser.parse_tiered(None) is None
        assert QuestIdParser.extract_date("quest_001") is None
        assert not QuestIdParser.is_daily("quest_001")
        assert not QuestIdParser.is_generated("daily_kill_template")

    def test_dynamic_ids(self):
        parsed = QuestIdParser.parse_dynamic("weekly_reach_level_1760000000000")
        assert parsed.category == Category.WEEKLY
        assert parsed.quest_type == QuestType.REACH_LEVEL
        assert parsed.millis == 1760000000000
        assert QuestIdParser.parse_dynamic("monthly_kill_1760000000000") is None
        assert QuestIdParser.parse_dynamic("side_kill_1760000000000").category == Category.SIDE
        assert QuestIdParser.is_weekly("weekly_kill_1760000000000")

    def test_expiry(self):
        assert QuestIdParser.is_expired("daily_kill_20261017_A01", TODAY)
        assert QuestIdParser.is_expired("daily_kill_20261018_A01", TODAY)
        assert not QuestIdParser.is_expired("daily_kill_20261019_A01", TODAY)
        assert not QuestIdParser.is_expired("quest_001", TODAY)

        yesterday = _millis(datetime(2026, 10, 18, 12, 0))
        this_morning = _millis(datetime(2026, 10, 19, 8, 0))
        assert QuestIdParser.is_expired(f"daily_collect_{yesterday}", TODAY)
        assert not QuestIdParser.is_expired(f"daily_collect_{this_morning}", TODAY)

        three_days = _millis(datetime(2026, 10, 16, 12, 0))
        eight_days = _millis(datetime(2026, 10, 11, 12, 0))
        assert not QuestIdParser.is_expired(f"weekly_kill_{three_days}", TODAY)
        assert QuestIdParser.is_expired(f"weekly_kill_{eight_days}", TODAY)
        assert not QuestIdParser.is_expired(f"weekly_kill_{eight_days}", TODAY, weekly_days=10)
        # Repeatable side quests carry no day limit
        assert not QuestIdParser.is_expired(f"side_kill_{eight_days}", TODAY)
