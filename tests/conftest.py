"""Global test fixtures and utilities for jobquest tests"""
import random
from datetime import date, timedelta

import pytest

from jobquest.gamification.catalog import DAILY_QUEST_TEMPLATES, WEEKLY_QUEST_TEMPLATES
from jobquest.gamification.engine import ProgressionEngine
from jobquest.gamification.events import EventBus
from jobquest.gamification.quest_system import QuestScheduler
from jobquest.gamification.store import InMemoryProgressStore
from jobquest.models.progression import UserProgressionState


class FixedClock:
    """Settable 'today' for engine tests"""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int = 1) -> date:
        self.today += timedelta(days=days)
        return self.today


def template(pool, template_id):
    """Look up a catalog quest template by id"""
    return next(t for t in pool if t.id == template_id)


# ============================================================================
# User & State Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123"


@pytest.fixture
def fresh_state(test_user_id):
    """Progression state of a user who has never logged in"""
    return UserProgressionState(user_id=test_user_id)


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def clock():
    """Clock fixed on Wednesday 2026-03-11"""
    return FixedClock(date(2026, 3, 11))


@pytest.fixture
def store():
    return InMemoryProgressStore()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def scheduler():
    """Seeded scheduler drawing from the full pools"""
    return QuestScheduler(daily_slots=3, weekly_slots=3, rng=random.Random(0))


@pytest.fixture
def single_quest_scheduler():
    """One daily and one weekly quest, both application based"""
    return QuestScheduler(
        daily_slots=1,
        weekly_slots=1,
        daily_pool=[template(DAILY_QUEST_TEMPLATES, "daily_application")],
        weekly_pool=[template(WEEKLY_QUEST_TEMPLATES, "weekly_applications")],
        rng=random.Random(0),
    )


@pytest.fixture
def make_engine(test_user_id, store, bus, clock, scheduler):
    """Factory for engines sharing the test store, bus and clock"""

    def _make(**kwargs):
        kwargs.setdefault("quest_scheduler", scheduler)
        kwargs.setdefault("clock", clock)
        return ProgressionEngine(kwargs.pop("user_id", test_user_id), store, bus, **kwargs)

    return _make
