"""Central configuration for questforge.

All tunables of the quest subsystem live here (data directory, reward
coefficients, tier thresholds, expiry windows, validation strictness).
Every value has a sensible default and can be overridden through
environment variables prefixed with ``QF_``.
"""
from __future__ import annotations
import os
from pathlib import Path


def _get_int_env(name: str, default: int, minval: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw)
        if minval is not None and v < minval:
            return default
        return v
    except ValueError:
        return default


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    return val in {"1", "true", "yes", "on"}


# ---------------- Template data ----------------
DEFAULT_QUEST_DATA_DIR = Path(__file__).resolve().parent / "assets" / "quests"


def get_quest_data_dir() -> Path:
    """Directory holding the per-category template files. Var: QF_QUEST_DATA_DIR."""
    raw = os.getenv("QF_QUEST_DATA_DIR")
    if raw is None or not raw.strip():
        return DEFAULT_QUEST_DATA_DIR
    return Path(raw.strip())


# File name per category, relative to the data directory
QUEST_FILES = {
    "MAIN": "main-quests.json",
    "SIDE": "side-quests.json",
    "DAILY": "daily-quests.json",
    "WEEKLY": "weekly-quests.json",
}

# Raise on schema errors instead of skipping the template
STRICT_TEMPLATE_VALIDATION: bool = _get_bool_env("QF_STRICT_VALIDATION", False)


# ---------------- Saves ----------------
DEFAULT_SAVES_DIR = Path("data/saves")


def get_saves_dir() -> Path:
    """Directory holding save files. Var: QF_SAVES_DIR (default data/saves)."""
    raw = os.getenv("QF_SAVES_DIR")
    if raw is None or not raw.strip():
        return DEFAULT_SAVES_DIR
    return Path(raw.strip())


# ---------------- Daily tiers ----------------
# Tiers whose minimum level reaches this threshold get the bonus dungeon quest
HIGH_TIER_MIN_LEVEL: int = _get_int_env("QF_HIGH_TIER_MIN_LEVEL", 20, minval=1)

# Level scaling of the tiered daily rewards (per player level)
KILL_EXP_PER_LEVEL: int = _get_int_env("QF_KILL_EXP_PER_LEVEL", 10, minval=0)
KILL_GOLD_PER_LEVEL: int = _get_int_env("QF_KILL_GOLD_PER_LEVEL", 5, minval=0)
COLLECT_EXP_PER_LEVEL: int = _get_int_env("QF_COLLECT_EXP_PER_LEVEL", 8, minval=0)
COLLECT_GOLD_PER_LEVEL: int = _get_int_env("QF_COLLECT_GOLD_PER_LEVEL", 4, minval=0)
SPECIAL_EXP_PER_LEVEL: int = _get_int_env("QF_SPECIAL_EXP_PER_LEVEL", 20, minval=0)
SPECIAL_GOLD_PER_LEVEL: int = _get_int_env("QF_SPECIAL_GOLD_PER_LEVEL", 15, minval=0)


# ---------------- Rewards ----------------
# Currency granted instead of a reward item the catalog cannot create
ITEM_FALLBACK_CURRENCY: int = _get_int_env("QF_ITEM_FALLBACK_CURRENCY", 50, minval=0)


# ---------------- Expiry ----------------
# Age (days) after which a weekly quest instance is considered stale
WEEKLY_EXPIRY_DAYS: int = _get_int_env("QF_WEEKLY_EXPIRY_DAYS", 7, minval=1)

# How many days of history entries are kept on save (0 = keep everything)
HISTORY_RETENTION_DAYS: int = _get_int_env("QF_HISTORY_RETENTION_DAYS", 30, minval=0)


__all__ = [
    # Data
    "DEFAULT_QUEST_DATA_DIR", "get_quest_data_dir", "QUEST_FILES", "STRICT_TEMPLATE_VALIDATION",
    # Saves
    "DEFAULT_SAVES_DIR", "get_saves_dir",
    # Tiers
    "HIGH_TIER_MIN_LEVEL",
    "KILL_EXP_PER_LEVEL", "KILL_GOLD_PER_LEVEL",
    "COLLECT_EXP_PER_LEVEL", "COLLECT_GOLD_PER_LEVEL",
    "SPECIAL_EXP_PER_LEVEL", "SPECIAL_GOLD_PER_LEVEL",
    # Rewards
    "ITEM_FALLBACK_CURRENCY",
    # Expiry
    "WEEKLY_EXPIRY_DAYS", "HISTORY_RETENTION_DAYS",
]
