"""Save/Load system for questforge.

Writes the quest section (see questforge.quest.persistence) together with
the few player facts needed to rebuild it into versioned JSON save files.
"""
from __future__ import annotations
import json
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import config

# Save format version - increment when making breaking changes
SAVE_VERSION = 1


class SaveError(Exception):
    """Exception raised for save/load operations."""
    pass


def _saves_dir(saves_dir: Union[str, Path, None]) -> Path:
    path = Path(saves_dir) if saves_dir is not None else config.get_saves_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def serialize_save(quest_section: Dict[str, Any], player_level: int) -> Dict[str, Any]:
    """Build a save document around a quest section."""
    return {
        "_save_metadata": {
            "version": SAVE_VERSION,
            "timestamp": time.time(),
            "date_saved": datetime.now().isoformat(),
        },
        "player": {"level": player_level},
        "quests": quest_section,
    }


def deserialize_save(data: Dict[str, Any]) -> Dict[str, Any]:
    """Check the metadata of a save document and return its payload.

    Returns:
        ``{"player": {...}, "quests": {...}}``

    Raises:
        SaveError: If the document is newer than SAVE_VERSION or not an object
    """
    if not isinstance(data, dict):
        raise SaveError("Save document must be a JSON object")
    metadata = data.get("_save_metadata", {})
    save_version = metadata.get("version", 0)
    if save_version > SAVE_VERSION:
        raise SaveError(f"Save file version {save_version} is newer than supported version {SAVE_VERSION}")
    return {
        "player": data.get("player", {}),
        "quests": data.get("quests", {}),
    }


def save_game(
    quest_section: Dict[str, Any],
    player_level: int = 1,
    slot_name: str = "quicksave",
    saves_dir: Union[str, Path, None] = None,
) -> str:
    """Save the quest state to a named slot.

    Args:
        quest_section: Output of QuestCodec.encode_section
        player_level: Current player level
        slot_name: Name of the save slot (default: "quicksave")
        saves_dir: Directory for save files (default from config)

    Returns:
        Path to the save file

    Raises:
        SaveError: If save operation fails
    """
    try:
        directory = _saves_dir(saves_dir)
        save_data = serialize_save(quest_section, player_level)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        filepath = directory / f"{slot_name}_{timestamp}.json"
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(save_data, f, indent=2, ensure_ascii=False)
        return str(filepath)
    except (OSError, TypeError, ValueError) as e:
        raise SaveError(f"Failed to save game: {e}")


def load_game(
    slot_name: Optional[str] = None,
    filepath: Optional[str] = None,
    saves_dir: Union[str, Path, None] = None,
) -> Dict[str, Any]:
    """Load a save file.

    Args:
        slot_name: Name of save slot to load latest from
        filepath: Specific file path to load from
        saves_dir: Directory for save files (default from config)

    Returns:
        ``{"player": {...}, "quests": {...}}``

    Raises:
        SaveError: If load operation fails
    """
    try:
        if filepath:
            load_path = Path(filepath)
        elif slot_name:
            saves = [s for s in _saves_dir(saves_dir).glob(f"{slot_name}_*.json") if _slot_of(s) == slot_name]
            if not saves:
                raise SaveError(f"No saves found for slot '{slot_name}'")
            # Newest first
            saves.sort(key=lambda x: x.stat().st_mtime, reverse=True)
            load_path = saves[0]
        else:
            raise SaveError("Must specify either slot_name or filepath")

        if not load_path.exists():
            raise SaveError(f"Save file not found: {load_path}")

        with open(load_path, 'r', encoding='utf-8') as f:
            save_data = json.load(f)
        return deserialize_save(save_data)
    except SaveError:
        raise
    except (OSError, ValueError) as e:
        raise SaveError(f"Failed to load game: {e}")


def _slot_of(save_file: Path) -> str:
    # {slot}_{YYYYmmdd}_{HHMMSS}_{micros}
    return save_file.stem.rsplit("_", 3)[0]


def list_saves(saves_dir: Union[str, Path, None] = None) -> List[Dict[str, Any]]:
    """List all available save files with metadata, newest first.

    Corrupted files are skipped.
    """
    saves = []
    for save_file in _saves_dir(saves_dir).glob("*.json"):
        try:
            with open(save_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError):
            continue
        if not isinstance(data, dict):
            continue

        metadata = data.get("_save_metadata", {})
        quests = data.get("quests", {})
        saves.append({
            "filename": save_file.name,
            "filepath": str(save_file),
            "slot_name": _slot_of(save_file),
            "timestamp": metadata.get("timestamp", save_file.stat().st_mtime),
            "date_saved": metadata.get("date_saved", "Unknown"),
            "version": metadata.get("version", 0),
            "player_level": data.get("player", {}).get("level", 1),
            "active_quests": len(quests.get("activeQuests", [])),
        })

    saves.sort(key=lambda x: x["timestamp"], reverse=True)
    return saves


def delete_save(
    slot_name: Optional[str] = None,
    filepath: Optional[str] = None,
    saves_dir: Union[str, Path, None] = None,
) -> bool:
    """Delete a save file, or every save of a slot.

    Returns:
        True if something was deleted

    Raises:
        SaveError: If deletion fails
    """
    try:
        if filepath:
            Path(filepath).unlink()
            return True
        elif slot_name:
            saves = [s for s in _saves_dir(saves_dir).glob(f"{slot_name}_*.json") if _slot_of(s) == slot_name]
            for save_file in saves:
                save_file.unlink()
            return len(saves) > 0
        else:
            raise SaveError("Must specify either slot_name or filepath")
    except SaveError:
        raise
    except OSError as e:
        raise SaveError(f"Failed to delete save: {e}")
