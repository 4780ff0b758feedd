"""Quest template loader from structured JSON files.

This module loads quest templates from the per-category JSON files
(main, side, daily, weekly), validating each record against
QUEST_TEMPLATE_SCHEMA and converting it into an immutable QuestTemplate.
A malformed record is skipped; a category that yields nothing falls back
to a small built-in template set.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import jsonschema

import config
from .model import Category, QuestTemplate, Reward
from .schema import QUEST_TEMPLATE_SCHEMA

logger = logging.getLogger(__name__)


class TemplateValidationError(ValueError):
    """Raised in strict mode when a template record fails validation."""
    pass


def validate_template(data: Any) -> List[str]:
    """Validate a single template record.

    Args:
        data: Parsed JSON record

    Returns:
        List of validation error messages (empty if valid)
    """
    if not isinstance(data, dict):
        return ["Template must be an object"]

    errors = []
    try:
        jsonschema.validate(data, QUEST_TEMPLATE_SCHEMA)
    except jsonschema.ValidationError as e:
        path = ".".join(str(p) for p in e.absolute_path) or "<root>"
        errors.append(f"{path}: {e.message}")
        return errors

    if not data["id"].strip():
        errors.append("id must not be blank")
    if not data["title"].strip():
        errors.append("title must not be blank")
    return errors


def parse_template(data: Dict[str, Any], category: Optional[Category] = None) -> QuestTemplate:
    """Convert a validated record into a QuestTemplate.

    Args:
        data: Template record (already validated)
        category: Category of the file the record comes from; a
            ``category`` field in the record wins over it

    Returns:
        Parsed QuestTemplate
    """
    if data.get("category"):
        try:
            category = Category(str(data["category"]).upper())
        except ValueError:
            logger.warning(f"Template {data.get('id')}: unknown category {data['category']!r}")
    category = category or Category.SIDE

    variable_quantity = None
    vq = data.get("variableQuantity")
    if vq:
        variable_quantity = (int(vq["min"]), int(vq["max"]))

    return QuestTemplate(
        id=data["id"],
        title=data["title"],
        description=data.get("description", ""),
        quest_type=data["type"],
        category=category,
        required_level=int(data.get("requiredLevel", 1)),
        objectives={key: int(value) for key, value in data.get("objectives", {}).items()},
        reward=_parse_reward(data.get("reward", {})),
        repeatable=bool(data.get("repeatable", category.repeatable)),
        tags=tuple(data.get("tags", [])),
        prerequisites=tuple(data.get("prerequisites", [])),
        unlocks=tuple(data.get("unlocks", [])),
        variable_targets=tuple(data.get("variableTargets") or ()),
        variable_quantity=variable_quantity,
    )


def _parse_reward(reward_data: Dict[str, Any]) -> Reward:
    """Parse a reward record; repeated item ids are summed."""
    items: Dict[str, int] = {}
    for item in reward_data.get("items", []):
        item_id = item["itemId"]
        items[item_id] = items.get(item_id, 0) + int(item.get("quantity", 1))
    return Reward(
        experience=int(reward_data.get("experience", 0)),
        currency=int(reward_data.get("gold", 0)),
        items=items,
    )


def load_templates_file(
    path: Union[str, Path],
    category: Category,
    strict: Optional[bool] = None,
) -> List[QuestTemplate]:
    """Load all valid templates from one category file.

    Args:
        path: Path to the JSON file (a list of records, or ``{"quests": [...]}``)
        category: Category assigned to records without their own
        strict: Raise TemplateValidationError on the first invalid record
            instead of skipping it (default: config.STRICT_TEMPLATE_VALIDATION)

    Returns:
        List of parsed templates (empty if the file is missing or unreadable)
    """
    if strict is None:
        strict = config.STRICT_TEMPLATE_VALIDATION

    file_path = Path(path)
    if not file_path.exists():
        logger.warning(f"Quest file not found: {file_path}")
        return []

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Cannot read quest file {file_path}: {e}")
        return []

    if isinstance(raw, dict):
        raw = raw.get("quests", [])
    if not isinstance(raw, list):
        logger.warning(f"Quest file {file_path} must contain a list of templates")
        return []

    templates = []
    seen = set()
    for index, record in enumerate(raw):
        errors = validate_template(record)
        if errors:
            record_id = record.get("id", f"#{index}") if isinstance(record, dict) else f"#{index}"
            message = f"Invalid template {record_id} in {file_path.name}: {'; '.join(errors)}"
            if strict:
                raise TemplateValidationError(message)
            logger.warning(message)
            continue
        if record["id"] in seen:
            logger.warning(f"Duplicate template id {record['id']} in {file_path.name}, keeping the first")
            continue
        seen.add(record["id"])
        templates.append(parse_template(record, category))

    logger.info(f"Loaded {len(templates)} {category.value} templates from {file_path.name}")
    return templates


def load_all_templates(
    data_dir: Union[str, Path, None] = None,
    strict: Optional[bool] = None,
) -> Dict[Category, List[QuestTemplate]]:
    """Load every category file from the quest data directory.

    Categories that yield no valid template fall back to default_templates().

    Args:
        data_dir: Directory holding the category files (default from config)
        strict: See load_templates_file

    Returns:
        Mapping category -> templates
    """
    base = Path(data_dir) if data_dir is not None else config.get_quest_data_dir()
    result: Dict[Category, List[QuestTemplate]] = {}
    for category in Category:
        file_name = config.QUEST_FILES[category.value]
        templates = load_templates_file(base / file_name, category, strict=strict)
        if not templates:
            templates = default_templates(category)
            if templates:
                logger.warning(f"Using {len(templates)} built-in {category.value} templates")
        result[category] = templates
    return result


def default_templates(category: Category) -> List[QuestTemplate]:
    """Built-in templates used when a category file yields nothing."""
    if category == Category.MAIN:
        return [QuestTemplate(
            id="quest_001",
            title="Slime Hunter",
            description="Defeat 5 slimes near the village.",
            quest_type="KILL",
            category=Category.MAIN,
            required_level=1,
            objectives={"kill_slime": 5},
            reward=Reward(experience=50, currency=100, items={"health_potion": 2}),
            unlocks=("quest_002",),
            tags=("beginner", "combat"),
        )]
    if category == Category.SIDE:
        return [QuestTemplate(
            id="quest_005",
            title="Growing Adventurer",
            description="Reach level 5.",
            quest_type="LEVEL",
            category=Category.SIDE,
            required_level=1,
            objectives={"reach_level": 5},
            reward=Reward(experience=100, currency=150, items={"health_potion": 3}),
            unlocks=("quest_006",),
            tags=("progression", "reward"),
        )]
    if category == Category.DAILY:
        return [QuestTemplate(
            id="daily_kill_template",
            title="Daily Hunt",
            description="Defeat today's target monster.",
            quest_type="KILL",
            category=Category.DAILY,
            required_level=1,
            objectives={"kill_daily_target": 8},
            reward=Reward(experience=80, currency=120),
            repeatable=True,
            tags=("daily", "combat"),
            variable_targets=("slime", "goblin", "orc", "skeleton", "spider", "wolf"),
            variable_quantity=(5, 12),
        )]
    return []
