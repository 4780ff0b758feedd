"""Quest engine package for questforge."""

from .model import Quest, QuestTemplate, Reward, QuestType, QuestStatus, Category, parse_quest_type
from .objectives import Objective, ObjectiveKind
from .loader import load_all_templates, load_templates_file, validate_template, TemplateValidationError
from .store import TemplateStore
from .converter import TemplateConverter
from .factory import QuestFactory
from .ids import QuestIdParser
from .daily import DailyQuestGenerator, Tier
from .rewards import RewardResolver, GrantReceipt, ItemCatalog
from .manager import QuestManager, QuestStatistics
from .router import ProgressRouter
from .history import QuestHistory, HistoryEntry, FinalStatus
from .persistence import QuestCodec, QuestLoadResult
from .session import QuestSession

__all__ = [
    'Quest', 'QuestTemplate', 'Reward', 'QuestType', 'QuestStatus', 'Category', 'parse_quest_type',
    'Objective', 'ObjectiveKind',
    'load_all_templates', 'load_templates_file', 'validate_template', 'TemplateValidationError',
    'TemplateStore',
    'TemplateConverter',
    'QuestFactory',
    'QuestIdParser',
    'DailyQuestGenerator', 'Tier',
    'RewardResolver', 'GrantReceipt', 'ItemCatalog',
    'QuestManager', 'QuestStatistics',
    'ProgressRouter',
    'QuestHistory', 'HistoryEntry', 'FinalStatus',
    'QuestCodec', 'QuestLoadResult',
    'QuestSession',
]
