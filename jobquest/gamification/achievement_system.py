"""
Achievement System

Evaluates the achievement catalog against a user's progression state.

Categories:
- Applications (submission counts)
- Interviews (scheduled / completed)
- Streaks (consecutive login days)
- Milestones (levels)
- Quests (claimed quest rewards)

Features:
- Conditions are data (kind + threshold), evaluated by pure dispatch
- Unlocks are monotonic: an unlocked record is never re-evaluated
- Progress tracking for locked achievements
"""

from typing import Dict, List, Optional
from datetime import datetime
import logging

from jobquest.exceptions import CatalogError
from jobquest.models.progression import (
    AchievementCondition,
    AchievementDefinition,
    AchievementRecord,
    ConditionKind,
    UserProgressionState,
)
from jobquest.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)


def condition_value(state: UserProgressionState, condition: AchievementCondition) -> int:
    """Current value of the metric a condition compares against its threshold"""
    kind = condition.kind

    if kind == ConditionKind.TOTAL_APPLICATIONS_AT_LEAST:
        return state.total_applications

    elif kind == ConditionKind.TOTAL_INTERVIEWS_AT_LEAST:
        return state.total_interviews

    elif kind == ConditionKind.COMPLETED_INTERVIEWS_AT_LEAST:
        return state.completed_interviews

    elif kind == ConditionKind.STREAK_AT_LEAST:
        return state.current_streak

    elif kind == ConditionKind.LEVEL_AT_LEAST:
        return state.level

    elif kind == ConditionKind.TOTAL_XP_AT_LEAST:
        return state.total_xp

    elif kind == ConditionKind.QUESTS_COMPLETED_AT_LEAST:
        return state.quests_completed

    raise CatalogError(f"Unknown achievement condition kind: {kind!r}")


def is_condition_met(state: UserProgressionState, condition: AchievementCondition) -> bool:
    """Check whether a condition holds for the given state"""
    return condition_value(state, condition) >= condition.threshold


def seed_achievements(catalog: List[AchievementDefinition]) -> List[AchievementRecord]:
    """Fresh, all-locked achievement list in catalog order"""
    return [AchievementRecord(**definition.model_dump()) for definition in catalog]


def reconcile_achievements(
    records: List[AchievementRecord],
    catalog: List[AchievementDefinition]
) -> List[AchievementRecord]:
    """
    Append catalog entries missing from a persisted list

    Existing records (and their unlock state) are kept as they are.

    Returns:
        The records that were appended (empty if nothing changed)
    """
    known_ids = {record.id for record in records}
    added = [
        AchievementRecord(**definition.model_dump())
        for definition in catalog
        if definition.id not in known_ids
    ]
    records.extend(added)

    if added:
        logger.info(f"Added {len(added)} new catalog achievements: {[a.id for a in added]}")

    return added


def evaluate_achievements(
    state: UserProgressionState,
    achievements: List[AchievementRecord],
    now: Optional[datetime] = None
) -> List[AchievementRecord]:
    """
    Unlock every locked achievement whose condition now holds

    Records are checked in list order, so rewards are applied in catalog
    order. Already-unlocked records are skipped, which makes repeated
    evaluation against an unchanged state a no-op.

    Args:
        state: Current progression state
        achievements: User's achievement records (mutated in place)
        now: Unlock timestamp (defaults to current UTC time)

    Returns:
        Newly unlocked records, in evaluation order
    """
    if now is None:
        now = now_utc()

    newly_unlocked = []

    for achievement in achievements:
        if achievement.unlocked:
            continue

        if is_condition_met(state, achievement.condition):
            achievement.unlocked = True
            achievement.unlocked_at = now
            newly_unlocked.append(achievement)

            logger.info(
                f"User {state.user_id} unlocked achievement: {achievement.id} "
                f"({achievement.name}) +{achievement.xp_reward} XP"
            )

    return newly_unlocked


def calculate_achievement_progress(state: UserProgressionState, achievement: AchievementRecord) -> Dict:
    """
    Calculate progress toward an achievement

    Returns:
        {
            'current': int,
            'required': int,
            'percentage': int,
            'description': str
        }
    """
    required = achievement.condition.threshold
    current = condition_value(state, achievement.condition)

    if achievement.unlocked:
        current = max(current, required)

    percentage = min(100, int(current / required * 100))

    return {
        "current": current,
        "required": required,
        "percentage": percentage,
        "description": f"{min(current, required)}/{required}",
    }
