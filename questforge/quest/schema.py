"""JSON schema definitions for quest data.

QUEST_TEMPLATE_SCHEMA describes one template record of the per-category
quest files; SAVE_SECTION_SCHEMA describes the quest section embedded in
a save document.
"""

QUEST_TEMPLATE_SCHEMA = {
    "type": "object",
    "required": ["id", "title", "type", "requiredLevel", "objectives", "reward"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "title": {"type": "string", "minLength": 1},
        "description": {"type": "string"},
        "type": {"type": "string", "minLength": 1},  # unknown values degrade to KILL
        "category": {"type": "string"},
        "requiredLevel": {"type": "integer", "minimum": 1},
        "objectives": {
            "type": "object",
            "minProperties": 1,
            "additionalProperties": {"type": "integer", "minimum": 1}
        },
        "reward": {
            "type": "object",
            "properties": {
                "experience": {"type": "integer", "minimum": 0},
                "gold": {"type": "integer", "minimum": 0},
                "items": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["itemId"],
                        "properties": {
                            "itemId": {"type": "string", "minLength": 1},
                            "quantity": {"type": "integer", "minimum": 1},
                            "rarity": {"type": "string"}
                        }
                    }
                }
            }
        },
        "prerequisites": {"type": "array", "items": {"type": "string"}},
        "unlocks": {"type": "array", "items": {"type": "string"}},
        "repeatable": {"type": "boolean"},
        "timeLimit": {"type": "integer", "minimum": 0},  # accepted in data files, not enforced
        "tags": {"type": "array", "items": {"type": "string"}},
        "variableTargets": {"type": ["array", "null"], "items": {"type": "string", "minLength": 1}},
        "variableQuantity": {
            "type": ["object", "null"],
            "required": ["min", "max"],
            "properties": {
                "min": {"type": "integer", "minimum": 1},
                "max": {"type": "integer", "minimum": 1}
            }
        }
    }
}

QUEST_RECORD_SCHEMA = {
    "type": "object",
    "required": ["questId"],
    "properties": {
        "questId": {"type": "string", "minLength": 1},
        "progress": {"type": "object", "additionalProperties": {"type": "integer"}},
        "status": {"type": "string"},
        "objectives": {"type": "object", "additionalProperties": {"type": "integer", "minimum": 1}},
        "templateId": {"type": "string", "minLength": 1}
    }
}

SAVE_SECTION_SCHEMA = {
    "type": "object",
    "properties": {
        "activeQuests": {"type": "array"},  # records are checked one by one
        "completedQuestIds": {"type": "array", "items": {"type": "string"}},
        "claimedRewardIds": {"type": "array", "items": {"type": "string"}},
        "history": {"type": "array", "items": {"type": "object"}},
        "completedObjectives": {"type": "object", "additionalProperties": {"type": "object"}},
        "completedTemplateIds": {"type": "object", "additionalProperties": {"type": "string"}},
        "pendingGrants": {"type": "object", "additionalProperties": {"type": "object"}}
    }
}
