"""
Static Progression Catalogs

XP action amounts, level titles, the achievement catalog and the quest
template pools. These are configuration, not user input: malformed entries
fail loudly at import time through pydantic validation and
validate_catalogs().
"""

from typing import Dict, List, Tuple

from jobquest.exceptions import CatalogError
from jobquest.models.progression import (
    AchievementCategory,
    AchievementCondition,
    AchievementDefinition,
    ApplicationEvent,
    ConditionKind,
    QuestCadence,
    QuestTemplate,
)


# ============================================
# XP Actions
# ============================================

XP_ACTIONS: Dict[str, int] = {
    # Application actions
    "APPLICATION_CREATED": 50,
    "APPLICATION_UPDATED": 10,
    "APPLICATION_DELETED": 5,
    "APPLICATION_STATUS_CHANGED": 15,

    # Interview actions
    "INTERVIEW_SCHEDULED": 75,
    "INTERVIEW_COMPLETED": 100,
    "INTERVIEW_NOTES_ADDED": 20,

    # Daily actions
    "DAILY_LOGIN": 25,
    "STREAK_MAINTAINED": 50,
    "PROFILE_UPDATED": 30,

    # Quest completions (overridden by the quest's own reward)
    "QUEST_DAILY_COMPLETED": 100,
    "QUEST_WEEKLY_COMPLETED": 500,

    # Milestone actions
    "FIRST_APPLICATION": 100,
    "TENTH_APPLICATION": 250,
    "FIFTY_APPLICATIONS": 1000,
    "HUNDRED_APPLICATIONS": 2500,

    # Special actions
    "EXPORT_DATA": 15,
    "IMPORT_DATA": 20,
    "ACHIEVEMENT_UNLOCKED": 50,  # overridden per achievement
}

ACHIEVEMENT_REWARD_ACTION = "ACHIEVEMENT_UNLOCKED"
LOGIN_QUEST_TAG = "logins_this_week"

QUEST_REWARD_ACTIONS: Dict[QuestCadence, str] = {
    QuestCadence.DAILY: "QUEST_DAILY_COMPLETED",
    QuestCadence.WEEKLY: "QUEST_WEEKLY_COMPLETED",
}

# Application event -> XP action awarded for it
APPLICATION_EVENT_XP_ACTIONS: Dict[ApplicationEvent, str] = {
    ApplicationEvent.CREATED: "APPLICATION_CREATED",
    ApplicationEvent.UPDATED: "APPLICATION_UPDATED",
    ApplicationEvent.DELETED: "APPLICATION_DELETED",
    ApplicationEvent.STATUS_CHANGED: "APPLICATION_STATUS_CHANGED",
    ApplicationEvent.NOTES_ADDED: "INTERVIEW_NOTES_ADDED",
    ApplicationEvent.INTERVIEW_SCHEDULED: "INTERVIEW_SCHEDULED",
    ApplicationEvent.INTERVIEW_COMPLETED: "INTERVIEW_COMPLETED",
}

# Application event -> quest condition tags it advances
APPLICATION_EVENT_QUEST_TAGS: Dict[ApplicationEvent, List[str]] = {
    ApplicationEvent.CREATED: ["applications_today", "applications_this_week"],
    ApplicationEvent.UPDATED: ["applications_updated_today"],
    ApplicationEvent.DELETED: [],
    ApplicationEvent.STATUS_CHANGED: ["status_updates_today", "status_updates_this_week"],
    ApplicationEvent.NOTES_ADDED: ["notes_added_today"],
    ApplicationEvent.INTERVIEW_SCHEDULED: ["interviews_scheduled_today", "interviews_scheduled_this_week"],
    ApplicationEvent.INTERVIEW_COMPLETED: ["interviews_completed_this_week"],
}


# ============================================
# Level Titles (level threshold, title)
# ============================================

LEVEL_TITLES: List[Tuple[int, str]] = [
    (1, "Job Seeker Novice"),
    (5, "Application Apprentice"),
    (10, "Resume Warrior"),
    (15, "Interview Knight"),
    (20, "Career Crusader"),
    (30, "Opportunity Hunter"),
    (40, "Professional Pioneer"),
    (50, "Employment Elite"),
    (60, "Career Champion"),
    (70, "Job Master"),
    (80, "Legendary Applicant"),
    (90, "Career Conqueror"),
    (100, "Ultimate Job Tracker"),
]


# ============================================
# Achievement Catalog (evaluation order matters for reward order)
# ============================================

def _achievement(
    id: str,
    name: str,
    description: str,
    category: AchievementCategory,
    xp_reward: int,
    icon: str,
    kind: ConditionKind,
    threshold: int,
) -> AchievementDefinition:
    return AchievementDefinition(
        id=id,
        name=name,
        description=description,
        category=category,
        xp_reward=xp_reward,
        icon=icon,
        condition=AchievementCondition(kind=kind, threshold=threshold),
    )


ACHIEVEMENT_CATALOG: List[AchievementDefinition] = [
    # ========== APPLICATIONS ==========
    _achievement(
        "first_application", "First Steps", "Submit your first job application",
        AchievementCategory.APPLICATIONS, 100, "🎯",
        ConditionKind.TOTAL_APPLICATIONS_AT_LEAST, 1,
    ),
    _achievement(
        "ten_applications", "Getting Serious", "Submit 10 job applications",
        AchievementCategory.APPLICATIONS, 250, "📋",
        ConditionKind.TOTAL_APPLICATIONS_AT_LEAST, 10,
    ),
    _achievement(
        "fifty_applications", "Application Machine", "Submit 50 job applications",
        AchievementCategory.APPLICATIONS, 1000, "🚀",
        ConditionKind.TOTAL_APPLICATIONS_AT_LEAST, 50,
    ),
    _achievement(
        "hundred_applications", "Century Club", "Submit 100 job applications",
        AchievementCategory.APPLICATIONS, 2500, "💯",
        ConditionKind.TOTAL_APPLICATIONS_AT_LEAST, 100,
    ),

    # ========== INTERVIEWS ==========
    _achievement(
        "first_interview", "Interview Ready", "Schedule your first interview",
        AchievementCategory.INTERVIEWS, 150, "🎤",
        ConditionKind.TOTAL_INTERVIEWS_AT_LEAST, 1,
    ),
    _achievement(
        "five_interviews", "Interview Pro", "Complete 5 interviews",
        AchievementCategory.INTERVIEWS, 500, "💼",
        ConditionKind.COMPLETED_INTERVIEWS_AT_LEAST, 5,
    ),

    # ========== STREAKS ==========
    _achievement(
        "week_streak", "Week Warrior", "Maintain a 7-day login streak",
        AchievementCategory.STREAKS, 300, "🔥",
        ConditionKind.STREAK_AT_LEAST, 7,
    ),
    _achievement(
        "month_streak", "Monthly Master", "Maintain a 30-day login streak",
        AchievementCategory.STREAKS, 1500, "⚡",
        ConditionKind.STREAK_AT_LEAST, 30,
    ),

    # ========== MILESTONES ==========
    _achievement(
        "level_10", "Double Digits", "Reach level 10",
        AchievementCategory.MILESTONES, 200, "🎖️",
        ConditionKind.LEVEL_AT_LEAST, 10,
    ),
    _achievement(
        "level_25", "Quarter Century", "Reach level 25",
        AchievementCategory.MILESTONES, 750, "🏆",
        ConditionKind.LEVEL_AT_LEAST, 25,
    ),
    _achievement(
        "level_50", "Halfway Hero", "Reach level 50",
        AchievementCategory.MILESTONES, 2000, "👑",
        ConditionKind.LEVEL_AT_LEAST, 50,
    ),

    # ========== QUESTS ==========
    _achievement(
        "first_quest", "Quest Starter", "Claim your first quest reward",
        AchievementCategory.QUESTS, 100, "🗺️",
        ConditionKind.QUESTS_COMPLETED_AT_LEAST, 1,
    ),
    _achievement(
        "ten_quests", "Seasoned Adventurer", "Claim 10 quest rewards",
        AchievementCategory.QUESTS, 400, "🧭",
        ConditionKind.QUESTS_COMPLETED_AT_LEAST, 10,
    ),
]


# ============================================
# Quest Template Pools
# ============================================

DAILY_QUEST_TEMPLATES: List[QuestTemplate] = [
    QuestTemplate(
        id="daily_application",
        name="Daily Application",
        description="Submit at least 1 job application today",
        cadence=QuestCadence.DAILY,
        xp_reward=100,
        target=1,
        condition_tag="applications_today",
    ),
    QuestTemplate(
        id="daily_update",
        name="Status Update",
        description="Update the status of 3 applications",
        cadence=QuestCadence.DAILY,
        xp_reward=75,
        target=3,
        condition_tag="status_updates_today",
    ),
    QuestTemplate(
        id="daily_notes",
        name="Take Notes",
        description="Add notes to 2 applications",
        cadence=QuestCadence.DAILY,
        xp_reward=50,
        target=2,
        condition_tag="notes_added_today",
    ),
    QuestTemplate(
        id="daily_refresh",
        name="Keep It Fresh",
        description="Edit the details of 2 applications",
        cadence=QuestCadence.DAILY,
        xp_reward=50,
        target=2,
        condition_tag="applications_updated_today",
    ),
    QuestTemplate(
        id="daily_interview",
        name="Book It",
        description="Schedule an interview today",
        cadence=QuestCadence.DAILY,
        xp_reward=150,
        target=1,
        condition_tag="interviews_scheduled_today",
    ),
]

WEEKLY_QUEST_TEMPLATES: List[QuestTemplate] = [
    QuestTemplate(
        id="weekly_applications",
        name="Weekly Goal",
        description="Submit 10 job applications this week",
        cadence=QuestCadence.WEEKLY,
        xp_reward=500,
        target=10,
        condition_tag="applications_this_week",
    ),
    QuestTemplate(
        id="weekly_interviews",
        name="Interview Week",
        description="Schedule 3 interviews this week",
        cadence=QuestCadence.WEEKLY,
        xp_reward=750,
        target=3,
        condition_tag="interviews_scheduled_this_week",
    ),
    QuestTemplate(
        id="weekly_streak",
        name="Consistent Tracker",
        description="Log in every day this week",
        cadence=QuestCadence.WEEKLY,
        xp_reward=400,
        target=7,
        condition_tag="logins_this_week",
    ),
    QuestTemplate(
        id="weekly_status_sweep",
        name="Pipeline Sweep",
        description="Update the status of 10 applications this week",
        cadence=QuestCadence.WEEKLY,
        xp_reward=350,
        target=10,
        condition_tag="status_updates_this_week",
    ),
    QuestTemplate(
        id="weekly_interviews_done",
        name="Show Up",
        description="Complete 2 interviews this week",
        cadence=QuestCadence.WEEKLY,
        xp_reward=600,
        target=2,
        condition_tag="interviews_completed_this_week",
    ),
]


def validate_catalogs() -> None:
    """Check cross-entry invariants pydantic can't express on single entries"""
    seen = set()
    for achievement in ACHIEVEMENT_CATALOG:
        if achievement.id in seen:
            raise CatalogError(f"Duplicate achievement id '{achievement.id}'", entry_id=achievement.id)
        seen.add(achievement.id)

    for cadence, pool in ((QuestCadence.DAILY, DAILY_QUEST_TEMPLATES), (QuestCadence.WEEKLY, WEEKLY_QUEST_TEMPLATES)):
        for template in pool:
            if template.cadence != cadence:
                raise CatalogError(
                    f"Quest template '{template.id}' is {template.cadence.value}, expected {cadence.value}",
                    entry_id=template.id
                )
            if template.id in seen:
                raise CatalogError(f"Duplicate catalog id '{template.id}'", entry_id=template.id)
            seen.add(template.id)

    referenced_actions = [
        ACHIEVEMENT_REWARD_ACTION,
        *QUEST_REWARD_ACTIONS.values(),
        *APPLICATION_EVENT_XP_ACTIONS.values(),
    ]
    for action in referenced_actions:
        if action not in XP_ACTIONS:
            raise CatalogError(f"Unknown XP action '{action}'", entry_id=action)

    for event in ApplicationEvent:
        if event not in APPLICATION_EVENT_XP_ACTIONS or event not in APPLICATION_EVENT_QUEST_TAGS:
            raise CatalogError(f"Application event '{event.value}' is not mapped", entry_id=event.value)

    thresholds = [level for level, _ in LEVEL_TITLES]
    if not thresholds or thresholds[0] != 1 or thresholds != sorted(set(thresholds)):
        raise CatalogError("LEVEL_TITLES must start at level 1 and be strictly increasing")


validate_catalogs()
