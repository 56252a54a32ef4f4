"""Unit tests for Achievement System (jobquest/gamification/achievement_system.py)"""
from datetime import datetime, timezone

import pytest

from jobquest.exceptions import CatalogError
from jobquest.gamification.achievement_system import (
    calculate_achievement_progress,
    condition_value,
    evaluate_achievements,
    is_condition_met,
    reconcile_achievements,
    seed_achievements,
)
from jobquest.gamification.catalog import ACHIEVEMENT_CATALOG
from jobquest.models.progression import AchievementCondition, ConditionKind

NOW = datetime(2026, 3, 11, 12, 0, tzinfo=timezone.utc)


def _record(achievements, achievement_id):
    return next(a for a in achievements if a.id == achievement_id)


# ============================================================================
# Condition Tests
# ============================================================================

def test_condition_value_reads_state(fresh_state):
    fresh_state.total_applications = 4
    fresh_state.completed_interviews = 2
    fresh_state.quests_completed = 7

    assert condition_value(fresh_state, AchievementCondition(
        kind=ConditionKind.TOTAL_APPLICATIONS_AT_LEAST, threshold=1)) == 4
    assert condition_value(fresh_state, AchievementCondition(
        kind=ConditionKind.COMPLETED_INTERVIEWS_AT_LEAST, threshold=1)) == 2
    assert condition_value(fresh_state, AchievementCondition(
        kind=ConditionKind.QUESTS_COMPLETED_AT_LEAST, threshold=1)) == 7


def test_is_condition_met_at_threshold(fresh_state):
    condition = AchievementCondition(kind=ConditionKind.STREAK_AT_LEAST, threshold=7)

    fresh_state.current_streak = 6
    assert not is_condition_met(fresh_state, condition)

    fresh_state.current_streak = 7
    assert is_condition_met(fresh_state, condition)


def test_unknown_condition_kind_raises(fresh_state):
    condition = AchievementCondition.model_construct(kind="bogus", threshold=1)

    with pytest.raises(CatalogError):
        condition_value(fresh_state, condition)


# ============================================================================
# Seeding and Reconciliation Tests
# ============================================================================

def test_seed_achievements_all_locked():
    achievements = seed_achievements(ACHIEVEMENT_CATALOG)

    assert len(achievements) == len(ACHIEVEMENT_CATALOG)
    assert [a.id for a in achievements] == [d.id for d in ACHIEVEMENT_CATALOG]
    assert not any(a.unlocked for a in achievements)


def test_reconcile_appends_missing_entries():
    """Test new catalog entries are added locked, existing unlocks kept"""
    achievements = seed_achievements(ACHIEVEMENT_CATALOG[:-2])
    achievements[0].unlocked = True
    achievements[0].unlocked_at = NOW

    added = reconcile_achievements(achievements, ACHIEVEMENT_CATALOG)

    assert [a.id for a in added] == [d.id for d in ACHIEVEMENT_CATALOG[-2:]]
    assert len(achievements) == len(ACHIEVEMENT_CATALOG)
    assert achievements[0].unlocked is True
    assert not any(a.unlocked for a in added)


def test_reconcile_noop_when_complete():
    achievements = seed_achievements(ACHIEVEMENT_CATALOG)

    assert reconcile_achievements(achievements, ACHIEVEMENT_CATALOG) == []


# ============================================================================
# Evaluation Tests
# ============================================================================

def test_evaluate_unlocks_in_catalog_order(fresh_state):
    fresh_state.total_applications = 10
    achievements = seed_achievements(ACHIEVEMENT_CATALOG)

    unlocked = evaluate_achievements(fresh_state, achievements, now=NOW)

    assert [a.id for a in unlocked] == ["first_application", "ten_applications"]
    assert all(a.unlocked_at == NOW for a in unlocked)
    assert _record(achievements, "fifty_applications").unlocked is False


def test_evaluate_is_idempotent(fresh_state):
    """Test unlocked achievements are never unlocked twice"""
    fresh_state.total_applications = 1
    achievements = seed_achievements(ACHIEVEMENT_CATALOG)

    first = evaluate_achievements(fresh_state, achievements, now=NOW)
    second = evaluate_achievements(fresh_state, achievements, now=NOW)

    assert [a.id for a in first] == ["first_application"]
    assert second == []


def test_unlocks_are_permanent(fresh_state):
    """Test a streak achievement stays unlocked after the streak resets"""
    fresh_state.current_streak = 7
    achievements = seed_achievements(ACHIEVEMENT_CATALOG)
    evaluate_achievements(fresh_state, achievements, now=NOW)

    fresh_state.current_streak = 1
    evaluate_achievements(fresh_state, achievements, now=NOW)

    assert _record(achievements, "week_streak").unlocked is True


# ============================================================================
# Progress Tests
# ============================================================================

def test_progress_for_locked_achievement(fresh_state):
    fresh_state.total_applications = 3
    achievements = seed_achievements(ACHIEVEMENT_CATALOG)

    progress = calculate_achievement_progress(fresh_state, _record(achievements, "ten_applications"))

    assert progress == {"current": 3, "required": 10, "percentage": 30, "description": "3/10"}


def test_progress_for_unlocked_achievement_is_full(fresh_state):
    fresh_state.current_streak = 7
    achievements = seed_achievements(ACHIEVEMENT_CATALOG)
    evaluate_achievements(fresh_state, achievements, now=NOW)
    fresh_state.current_streak = 2

    progress = calculate_achievement_progress(fresh_state, _record(achievements, "week_streak"))

    assert progress["percentage"] == 100
    assert progress["description"] == "7/7"
