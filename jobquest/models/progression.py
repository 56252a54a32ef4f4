"""Progression models for gamification"""
from enum import Enum
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class AchievementCategory(str, Enum):
    """Achievement categories"""
    APPLICATIONS = "Applications"
    INTERVIEWS = "Interviews"
    STREAKS = "Streaks"
    MILESTONES = "Milestones"
    QUESTS = "Quests"


class ConditionKind(str, Enum):
    """Unlock condition kinds; each compares one state metric to a threshold"""
    TOTAL_APPLICATIONS_AT_LEAST = "total_applications_at_least"
    TOTAL_INTERVIEWS_AT_LEAST = "total_interviews_at_least"
    COMPLETED_INTERVIEWS_AT_LEAST = "completed_interviews_at_least"
    STREAK_AT_LEAST = "streak_at_least"
    LEVEL_AT_LEAST = "level_at_least"
    TOTAL_XP_AT_LEAST = "total_xp_at_least"
    QUESTS_COMPLETED_AT_LEAST = "quests_completed_at_least"


class QuestCadence(str, Enum):
    """How often a quest set rolls over"""
    DAILY = "daily"
    WEEKLY = "weekly"


class ApplicationEvent(str, Enum):
    """Job-application domain events the engine reacts to"""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    STATUS_CHANGED = "status_changed"
    NOTES_ADDED = "notes_added"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEW_COMPLETED = "interview_completed"


class UserProgressionState(BaseModel):
    """Per-user XP, level, streak and activity counters"""
    user_id: str
    level: int = Field(default=1, ge=1)
    current_xp: int = Field(default=0, ge=0)  # XP since the last level boundary
    total_xp: int = Field(default=0, ge=0)
    next_level_xp: int = Field(default=100, ge=0)  # XP needed to clear `level`
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_login_date: Optional[date] = None
    total_applications: int = Field(default=0, ge=0)
    total_interviews: int = Field(default=0, ge=0)
    completed_interviews: int = Field(default=0, ge=0)
    achievements_unlocked: int = Field(default=0, ge=0)
    quests_completed: int = Field(default=0, ge=0)
    title: str = "Job Seeker Novice"


class AchievementCondition(BaseModel):
    """Serializable unlock predicate"""
    kind: ConditionKind
    threshold: int = Field(ge=1)


class AchievementDefinition(BaseModel):
    """Achievement catalog entry"""
    id: str
    name: str
    description: str
    category: AchievementCategory
    xp_reward: int = Field(gt=0)
    icon: str
    condition: AchievementCondition


class AchievementRecord(AchievementDefinition):
    """User's copy of an achievement with unlock state"""
    unlocked: bool = False
    unlocked_at: Optional[datetime] = None


class QuestTemplate(BaseModel):
    """Quest pool entry"""
    id: str
    name: str
    description: str
    cadence: QuestCadence
    xp_reward: int = Field(gt=0)
    target: int = Field(gt=0)
    condition_tag: str


class QuestInstance(QuestTemplate):
    """Active quest generated from a template"""
    progress: int = Field(default=0, ge=0)
    completed: bool = False
    claimed_reward: bool = False
    generated_date: date
    generated_week: str  # ISO week key, e.g. "2026-W42"


class QuestBoard(BaseModel):
    """Active daily and weekly quests"""
    daily: list[QuestInstance] = Field(default_factory=list)
    weekly: list[QuestInstance] = Field(default_factory=list)

    def all_quests(self) -> list[QuestInstance]:
        """Daily quests first, then weekly"""
        return [*self.daily, *self.weekly]
