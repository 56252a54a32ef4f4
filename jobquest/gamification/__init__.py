"""
Gamification system for the job application tracker

This module implements the progression engine with:
- XP and leveling system
- Daily login streaks
- Achievement system
- Daily and weekly quests
"""

from jobquest.gamification.engine import ProgressionEngine
from jobquest.gamification.events import EventBus
from jobquest.gamification.level_system import LevelConfig, calculate_level_info, xp_for_level
from jobquest.gamification.quest_system import QuestScheduler
from jobquest.gamification.store import InMemoryProgressStore, JsonFileProgressStore

__all__ = [
    "ProgressionEngine",
    "EventBus",
    "LevelConfig",
    "calculate_level_info",
    "xp_for_level",
    "QuestScheduler",
    "InMemoryProgressStore",
    "JsonFileProgressStore",
]
