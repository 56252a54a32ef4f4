"""Unit tests for the Progression Engine (jobquest/gamification/engine.py)"""
import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from jobquest.exceptions import (
    NotInitializedError,
    PersistenceError,
    PersistenceTimeoutError,
    QuestClaimError,
)
from jobquest.gamification.events import (
    ACHIEVEMENTS_UNLOCKED,
    INITIALIZED,
    QUESTS_COMPLETED,
    XP_GAINED,
)
from jobquest.gamification.level_system import calculate_level_info
from jobquest.models.progression import (
    AchievementCategory,
    AchievementCondition,
    AchievementDefinition,
    ConditionKind,
)


def _achievement(achievement_id, kind, threshold, xp_reward=100):
    return AchievementDefinition(
        id=achievement_id,
        name=achievement_id,
        description=achievement_id,
        category=AchievementCategory.MILESTONES,
        xp_reward=xp_reward,
        icon="*",
        condition=AchievementCondition(kind=kind, threshold=threshold),
    )


def _unlocked_ids(engine):
    return [a.id for a in engine.achievements if a.unlocked]


# ============================================================================
# Initialization Tests
# ============================================================================

@pytest.mark.asyncio
async def test_initialize_new_user_counts_first_login(make_engine, store, test_user_id):
    """Test a brand new user gets the daily login bonus on first session"""
    engine = make_engine()

    progress = await engine.initialize()

    assert progress["stats"]["total_xp"] == 25
    assert progress["stats"]["level"] == 1
    assert progress["stats"]["current_xp"] == 25
    assert progress["stats"]["next_level_xp"] == 100
    assert progress["stats"]["current_streak"] == 1
    assert progress["stats"]["title"] == "Job Seeker Novice"

    stored = await store.load_stats(test_user_id)
    assert stored.total_xp == 25
    assert stored.last_login_date == engine.clock()

    assert len(await store.load_achievements(test_user_id)) == len(engine.achievements)
    quests = await store.load_quests(test_user_id)
    assert len(quests.daily) == 3
    assert len(quests.weekly) == 3


@pytest.mark.asyncio
async def test_initialize_publishes_initialized(make_engine, bus):
    engine = make_engine()
    await engine.initialize()

    payloads = bus.events_named(INITIALIZED)
    assert len(payloads) == 1
    assert payloads[0]["stats"]["total_xp"] == 25


@pytest.mark.asyncio
async def test_reinitialize_same_day_does_not_repeat_login(make_engine, store, test_user_id):
    first = make_engine()
    await first.initialize()
    await first.award_xp("PROFILE_UPDATED")
    await first.dispose()

    second = make_engine()
    progress = await second.initialize()

    assert progress["stats"]["total_xp"] == 55
    assert progress["stats"]["current_streak"] == 1


@pytest.mark.asyncio
async def test_initialize_reconciles_new_catalog_entries(make_engine):
    base = [_achievement("apps_1", ConditionKind.TOTAL_APPLICATIONS_AT_LEAST, 1)]
    first = make_engine(achievement_catalog=base)
    await first.initialize()
    await first.dispose()

    extended = base + [_achievement("apps_5", ConditionKind.TOTAL_APPLICATIONS_AT_LEAST, 5)]
    second = make_engine(achievement_catalog=extended)
    await second.initialize()

    assert [a.id for a in second.achievements] == ["apps_1", "apps_5"]
    assert not any(a.unlocked for a in second.achievements)


# ============================================================================
# XP Award Tests
# ============================================================================

@pytest.mark.asyncio
async def test_award_crosses_level_boundary(make_engine, bus):
    """Test 25 XP then +100 lands 25 XP into level 2"""
    engine = make_engine()
    await engine.initialize()

    result = await engine.award_xp("MANUAL", 100)

    assert result["leveled_up"] is True
    assert result["previous_level"] == 1
    assert result["new_level"] == 2
    assert engine.stats.total_xp == 125
    assert engine.stats.current_xp == 25
    assert engine.stats.next_level_xp == 150

    last = bus.events_named(XP_GAINED)[-1]
    assert last["amount"] == 100
    assert last["leveled_up"] is True
    assert last["level"] == 2


@pytest.mark.asyncio
async def test_award_uses_action_table(make_engine):
    engine = make_engine()
    await engine.initialize()

    result = await engine.award_xp("PROFILE_UPDATED")

    assert result["xp_awarded"] == 30
    assert engine.stats.total_xp == 55


@pytest.mark.asyncio
async def test_unknown_action_awards_nothing(make_engine, bus):
    engine = make_engine()
    await engine.initialize()
    events_before = len(bus.events_named(XP_GAINED))

    result = await engine.award_xp("NOT_AN_ACTION")

    assert result is None
    assert engine.stats.total_xp == 25
    assert len(bus.events_named(XP_GAINED)) == events_before


@pytest.mark.asyncio
async def test_negative_amount_rejected(make_engine):
    engine = make_engine()
    await engine.initialize()

    with pytest.raises(ValueError):
        await engine.award_xp("MANUAL", -5)

    assert engine.stats.total_xp == 25


@pytest.mark.asyncio
async def test_awards_are_additive(make_engine):
    """Test splitting an award gives the same level state as one award"""
    engine = make_engine()
    await engine.initialize()

    await engine.award_xp("MANUAL", 60)
    await engine.award_xp("MANUAL", 90)

    expected = calculate_level_info(25 + 150)
    assert engine.stats.total_xp == 175
    assert engine.stats.level == expected["level"]
    assert engine.stats.current_xp == expected["current_xp"]
    assert engine.stats.next_level_xp == expected["next_level_xp"]


@pytest.mark.asyncio
async def test_concurrent_awards_are_serialized(make_engine, store, bus, test_user_id):
    engine = make_engine()
    await engine.initialize()

    await asyncio.gather(*(engine.award_xp("PROFILE_UPDATED") for _ in range(10)))

    assert engine.stats.total_xp == 25 + 10 * 30
    assert engine.stats.level == calculate_level_info(325)["level"]
    assert (await store.load_stats(test_user_id)).total_xp == 325
    totals = [payload["total_xp"] for payload in bus.events_named(XP_GAINED)]
    assert totals == sorted(totals)
    assert len(totals) == 11


# ============================================================================
# Achievement Tests
# ============================================================================

@pytest.mark.asyncio
async def test_first_application_unlocks_once(make_engine, bus):
    engine = make_engine()
    await engine.initialize()

    first = await engine.record_application_event("created")
    second = await engine.record_application_event("created")

    assert first["achievements_unlocked"] == ["first_application"]
    assert second["achievements_unlocked"] == []
    assert engine.stats.total_applications == 2
    assert engine.stats.achievements_unlocked == 1
    # 25 login + 2 x 50 created + 100 first_application
    assert engine.stats.total_xp == 225

    batches = bus.events_named(ACHIEVEMENTS_UNLOCKED)
    assert len(batches) == 1
    assert [a["id"] for a in batches[0]["achievements"]] == ["first_application"]


@pytest.mark.asyncio
async def test_achievement_reward_does_not_cascade(make_engine):
    """Test an achievement reachable only through another reward waits for the next award"""
    catalog = [
        _achievement("apps_1", ConditionKind.TOTAL_APPLICATIONS_AT_LEAST, 1, xp_reward=100),
        _achievement("xp_150", ConditionKind.TOTAL_XP_AT_LEAST, 150, xp_reward=10),
    ]
    engine = make_engine(achievement_catalog=catalog)
    await engine.initialize()

    result = await engine.record_application_event("created")

    # 25 + 50 = 75 at evaluation time, +100 reward afterwards
    assert result["achievements_unlocked"] == ["apps_1"]
    assert engine.stats.total_xp == 175
    assert _unlocked_ids(engine) == ["apps_1"]

    result = await engine.award_xp("PROFILE_UPDATED")

    assert result["achievements_unlocked"] == ["xp_150"]
    assert engine.stats.total_xp == 175 + 30 + 10


@pytest.mark.asyncio
async def test_interview_events_update_counters(make_engine):
    engine = make_engine()
    await engine.initialize()

    result = await engine.record_application_event("interview_scheduled")
    await engine.record_application_event("interview_completed")

    assert engine.stats.total_interviews == 1
    assert engine.stats.completed_interviews == 1
    assert result["achievements_unlocked"] == ["first_interview"]


@pytest.mark.asyncio
async def test_unknown_application_event_rejected(make_engine):
    engine = make_engine()
    await engine.initialize()

    with pytest.raises(ValueError):
        await engine.record_application_event("teleported")


# ============================================================================
# Streak Tests
# ============================================================================

@pytest.mark.asyncio
async def test_login_next_day_continues_streak(make_engine, clock):
    engine = make_engine()
    await engine.initialize()
    clock.advance(1)

    result = await engine.check_daily_login()

    assert result["counted"] is True
    assert result["streak_continued"] is True
    assert result["current_streak"] == 2
    assert result["xp_awarded"] == 75  # STREAK_MAINTAINED + DAILY_LOGIN
    assert engine.stats.total_xp == 100


@pytest.mark.asyncio
async def test_login_after_gap_resets_streak(make_engine, clock):
    engine = make_engine()
    await engine.initialize()
    clock.advance(1)
    await engine.check_daily_login()
    clock.advance(2)

    result = await engine.check_daily_login()

    assert result["streak_continued"] is False
    assert result["current_streak"] == 1
    assert result["longest_streak"] == 2
    assert result["xp_awarded"] == 25


@pytest.mark.asyncio
async def test_login_same_day_is_idempotent(make_engine, store, test_user_id):
    engine = make_engine()
    await engine.initialize()

    result = await engine.check_daily_login()

    assert result["counted"] is False
    assert result["xp_awarded"] == 0
    assert engine.stats.total_xp == 25
    assert (await store.load_stats(test_user_id)).total_xp == 25


# ============================================================================
# Quest Tests
# ============================================================================

@pytest.mark.asyncio
async def test_claim_quest_reward(make_engine, single_quest_scheduler, store, bus, test_user_id):
    engine = make_engine(quest_scheduler=single_quest_scheduler)
    await engine.initialize()

    await engine.record_application_event("created")
    result = await engine.claim_quest_reward("daily_application")

    assert result["xp_rewarded"] == 100
    assert result["award"]["achievements_unlocked"] == ["first_quest"]
    assert engine.stats.quests_completed == 1
    # 25 login + 50 created + 100 first_application + 100 quest + 100 first_quest
    assert engine.stats.total_xp == 375

    stored_board = await store.load_quests(test_user_id)
    assert stored_board.daily[0].claimed_reward is True
    assert (await store.load_stats(test_user_id)).quests_completed == 1

    completed = bus.events_named(QUESTS_COMPLETED)
    assert [q["id"] for q in completed[0]["quests"]] == ["daily_application"]


@pytest.mark.asyncio
async def test_claim_uncompleted_quest_fails(make_engine, single_quest_scheduler):
    engine = make_engine(quest_scheduler=single_quest_scheduler)
    await engine.initialize()

    with pytest.raises(QuestClaimError) as exc_info:
        await engine.claim_quest_reward("weekly_applications")

    assert exc_info.value.reason == "not_completed"
    assert engine.stats.total_xp == 25


@pytest.mark.asyncio
async def test_claim_unknown_quest_fails(make_engine, single_quest_scheduler):
    engine = make_engine(quest_scheduler=single_quest_scheduler)
    await engine.initialize()

    with pytest.raises(QuestClaimError) as exc_info:
        await engine.claim_quest_reward("no_such_quest")

    assert exc_info.value.reason == "not_found"


@pytest.mark.asyncio
async def test_claim_twice_fails(make_engine, single_quest_scheduler):
    engine = make_engine(quest_scheduler=single_quest_scheduler)
    await engine.initialize()
    await engine.record_application_event("created")
    await engine.claim_quest_reward("daily_application")
    total = engine.stats.total_xp

    with pytest.raises(QuestClaimError) as exc_info:
        await engine.claim_quest_reward("daily_application")

    assert exc_info.value.reason == "already_claimed"
    assert engine.stats.total_xp == total
    assert engine.stats.quests_completed == 1


@pytest.mark.asyncio
async def test_unclaimed_quest_lost_on_rollover(make_engine, single_quest_scheduler, clock):
    engine = make_engine(quest_scheduler=single_quest_scheduler)
    await engine.initialize()
    await engine.record_application_event("created")
    assert engine.quests.daily[0].completed is True

    clock.advance(1)

    with pytest.raises(QuestClaimError) as exc_info:
        await engine.claim_quest_reward("daily_application")

    assert exc_info.value.reason == "not_completed"
    assert engine.quests.daily[0].generated_date == clock.today
    # Weekly progress survives a day change inside the same ISO week
    assert engine.quests.weekly[0].progress == 1


@pytest.mark.asyncio
async def test_update_quest_progress_returns_completed(make_engine, single_quest_scheduler):
    engine = make_engine(quest_scheduler=single_quest_scheduler)
    await engine.initialize()

    completed = await engine.update_quest_progress("applications_this_week", 10)

    assert [q.id for q in completed] == ["weekly_applications"]
    assert engine.quests.weekly[0].progress == 10


@pytest.mark.asyncio
async def test_update_quest_progress_unmatched_tag(make_engine, single_quest_scheduler):
    engine = make_engine(quest_scheduler=single_quest_scheduler)
    await engine.initialize()

    assert await engine.update_quest_progress("nothing_matches") == []


# ============================================================================
# Progress Snapshot Tests
# ============================================================================

@pytest.mark.asyncio
async def test_get_progress_snapshot(make_engine):
    engine = make_engine()
    await engine.initialize()

    progress = engine.get_progress()

    assert progress["achievements"]["total"] == len(engine.achievements)
    assert progress["achievements"]["unlocked"] == 0
    assert progress["achievements"]["list"][0]["progress"]["description"] == "0/1"
    assert progress["level_progress"] == {"current": 25, "required": 100, "percentage": 25.0}
    assert len(progress["quests"]["daily"]) == 3


# ============================================================================
# Lifecycle and Failure Tests
# ============================================================================

@pytest.mark.asyncio
async def test_operations_require_initialize(make_engine):
    engine = make_engine()

    with pytest.raises(NotInitializedError):
        await engine.award_xp("DAILY_LOGIN")
    with pytest.raises(NotInitializedError):
        engine.get_progress()


@pytest.mark.asyncio
async def test_operations_fail_after_dispose(make_engine):
    engine = make_engine()
    await engine.initialize()
    await engine.dispose()

    assert engine.initialized is False
    with pytest.raises(NotInitializedError):
        await engine.claim_quest_reward("daily_application")
    with pytest.raises(NotInitializedError):
        await engine.check_daily_login()


@pytest.mark.asyncio
async def test_save_failure_raises_persistence_error(make_engine, store, test_user_id):
    """Test memory stays ahead of storage after a failed save"""
    engine = make_engine()
    await engine.initialize()
    store.save_stats = AsyncMock(side_effect=OSError("disk full"))

    with pytest.raises(PersistenceError) as exc_info:
        await engine.award_xp("PROFILE_UPDATED")

    assert isinstance(exc_info.value.cause, OSError)
    assert exc_info.value.operation == "save_stats"
    assert engine.stats.total_xp == 55
    assert (await store.load_stats(test_user_id)).total_xp == 25


@pytest.mark.asyncio
async def test_load_failure_raises_persistence_error(make_engine, store):
    store.load_stats = AsyncMock(side_effect=ValueError("corrupt record"))
    engine = make_engine()

    with pytest.raises(PersistenceError):
        await engine.initialize()

    assert engine.initialized is False


@pytest.mark.asyncio
async def test_slow_store_times_out(make_engine, store):
    engine = make_engine(persistence_timeout=0.05)
    await engine.initialize()

    async def slow_save(state):
        await asyncio.sleep(1)

    store.save_stats = slow_save

    with pytest.raises(PersistenceTimeoutError) as exc_info:
        await engine.award_xp("PROFILE_UPDATED")

    assert exc_info.value.timeout == 0.05


@pytest.mark.asyncio
async def test_single_award_can_jump_several_levels(make_engine):
    engine = make_engine()
    await engine.initialize()

    result = await engine.award_xp("MANUAL", 1000)

    assert result["previous_level"] == 1
    assert result["new_level"] == 5
    assert result["title"] == "Application Apprentice"
    assert engine.stats.current_xp == 213
    assert engine.stats.next_level_xp == 506


@pytest.mark.asyncio
async def test_one_event_publishes_one_quest_batch(make_engine, single_quest_scheduler, clock, bus):
    """Test a single application event completing daily and weekly quests notifies once"""
    engine = make_engine(quest_scheduler=single_quest_scheduler)
    await engine.initialize()
    for _ in range(9):
        await engine.record_application_event("created")
    clock.advance(1)  # Thursday, same ISO week
    bus.clear_history(QUESTS_COMPLETED)

    await engine.record_application_event("created")

    batches = bus.events_named(QUESTS_COMPLETED)
    assert len(batches) == 1
    assert [q["id"] for q in batches[0]["quests"]] == ["daily_application", "weekly_applications"]


@pytest.mark.asyncio
async def test_login_date_ahead_of_today_is_not_rewarded(make_engine, clock):
    engine = make_engine()
    await engine.initialize()
    engine.stats.last_login_date = clock.today + timedelta(days=1)

    result = await engine.check_daily_login()

    assert result["counted"] is False
    assert result["xp_awarded"] == 0
    assert engine.stats.current_streak == 1
    assert engine.stats.total_xp == 25
