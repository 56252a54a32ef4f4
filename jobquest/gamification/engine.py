"""
Progression Engine

Single authoritative mutator of one user's progression state. One engine is
constructed per user session and passed to callers; it is not a global.

Every public operation holds the engine's lock for its whole
read-modify-write-persist cycle, so an award triggered by an achievement
unlock can never interleave with an externally triggered award.

Award flow (award_xp):
1. Add XP, recompute level/title, save stats, publish xp_gained
2. One achievement evaluation pass over the updated state
3. Newly unlocked achievements: bump counter, save list, publish one
   achievements_unlocked batch
4. Drain the queued achievement rewards in catalog order; each reward is
   saved and published like any award but does not start another pass

An achievement that only becomes reachable through another achievement's
reward stays locked until the next award.

Failure model: store errors surface as PersistenceError. Memory is not
rolled back, so after a failure the in-memory state may be ahead of storage.
"""

import asyncio
import logging
from collections import deque
from dataclasses import asdict
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional

from jobquest import config
from jobquest.exceptions import (
    NotInitializedError,
    PersistenceError,
    QuestClaimError,
    wrap_persistence_exception,
)
from jobquest.gamification.achievement_system import (
    calculate_achievement_progress,
    evaluate_achievements,
    reconcile_achievements,
    seed_achievements,
)
from jobquest.gamification.catalog import (
    ACHIEVEMENT_CATALOG,
    ACHIEVEMENT_REWARD_ACTION,
    APPLICATION_EVENT_QUEST_TAGS,
    APPLICATION_EVENT_XP_ACTIONS,
    LOGIN_QUEST_TAG,
    QUEST_REWARD_ACTIONS,
    XP_ACTIONS,
)
from jobquest.gamification.events import (
    ACHIEVEMENTS_UNLOCKED,
    INITIALIZED,
    QUESTS_COMPLETED,
    XP_GAINED,
    EventPublisher,
)
from jobquest.gamification.level_system import (
    DEFAULT_LEVEL_CONFIG,
    LevelConfig,
    calculate_level_info,
)
from jobquest.gamification.quest_system import QuestScheduler
from jobquest.gamification.store import ProgressStore
from jobquest.gamification.streak_system import apply_daily_login
from jobquest.models.progression import (
    AchievementDefinition,
    AchievementRecord,
    ApplicationEvent,
    QuestBoard,
    QuestInstance,
    UserProgressionState,
)
from jobquest.utils.datetime_helpers import today_in_timezone

logger = logging.getLogger(__name__)


class ProgressionEngine:
    """XP, levels, streaks, achievements and quests for one user"""

    def __init__(
        self,
        user_id: str,
        store: ProgressStore,
        events: EventPublisher,
        level_config: LevelConfig = DEFAULT_LEVEL_CONFIG,
        quest_scheduler: Optional[QuestScheduler] = None,
        achievement_catalog: Optional[List[AchievementDefinition]] = None,
        clock: Optional[Callable[[], date]] = None,
        persistence_timeout: float = config.PERSISTENCE_TIMEOUT_SECONDS,
    ) -> None:
        self.user_id = user_id
        self.store = store
        self.events = events
        self.level_config = level_config
        self.quest_scheduler = quest_scheduler or QuestScheduler(
            daily_slots=config.DAILY_QUEST_SLOTS,
            weekly_slots=config.WEEKLY_QUEST_SLOTS,
        )
        self.achievement_catalog = (
            achievement_catalog if achievement_catalog is not None else ACHIEVEMENT_CATALOG
        )
        self.clock = clock or (lambda: today_in_timezone(config.USER_TIMEZONE))
        self.persistence_timeout = persistence_timeout

        self.stats: Optional[UserProgressionState] = None
        self.achievements: Optional[List[AchievementRecord]] = None
        self.quests: Optional[QuestBoard] = None

        self._lock = asyncio.Lock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    # ============================================
    # Lifecycle
    # ============================================

    async def initialize(self) -> Dict[str, Any]:
        """
        Load (or seed) stats, achievements and quests, then run the daily login check

        Missing stored data is never an error: a new user gets fresh state.

        Returns:
            Progress snapshot (see get_progress())
        """
        async with self._lock:
            today = self.clock()

            self.stats = await self._call_store("load_stats", self.store.load_stats(self.user_id))
            if self.stats is None:
                self.stats = self._new_stats()
                await self._save_stats()
                logger.info(f"Created progression state for new user {self.user_id}")

            achievements = await self._call_store(
                "load_achievements", self.store.load_achievements(self.user_id)
            )
            if not achievements:
                self.achievements = seed_achievements(self.achievement_catalog)
                await self._save_achievements()
            else:
                self.achievements = achievements
                if reconcile_achievements(self.achievements, self.achievement_catalog):
                    await self._save_achievements()

            board = await self._call_store("load_quests", self.store.load_quests(self.user_id))
            self.quests, changed = self.quest_scheduler.load_or_generate(board, today)
            if changed:
                await self._save_quests()

            self._initialized = True
            await self._check_daily_login(today)

            snapshot = self._snapshot()
            self.events.publish(INITIALIZED, snapshot)

            logger.info(
                f"Progression initialized for user {self.user_id}: "
                f"level {self.stats.level}, {self.stats.total_xp} XP, "
                f"streak {self.stats.current_streak}"
            )
            return snapshot

    async def dispose(self) -> None:
        """Drop in-memory state; the engine must be initialized again before use"""
        async with self._lock:
            self._initialized = False
            self.stats = None
            self.achievements = None
            self.quests = None
            logger.info(f"Progression engine disposed for user {self.user_id}")

    # ============================================
    # Public Operations
    # ============================================

    async def award_xp(self, action: str, amount: Optional[int] = None) -> Optional[Dict[str, Any]]:
        """
        Award XP for an action

        Args:
            action: XP action key (e.g. "APPLICATION_CREATED")
            amount: Explicit amount; defaults to XP_ACTIONS[action] (0 if unknown)

        Returns:
            None when the amount resolves to 0, otherwise:
            {
                'xp_awarded': int,
                'action': str,
                'total_xp': int,
                'current_xp': int,
                'leveled_up': bool,
                'previous_level': int,
                'new_level': int,
                'title': str,
                'achievements_unlocked': list[str]
            }
        """
        async with self._lock:
            self._require_initialized("award_xp")
            return await self._award_xp(action, amount)

    async def check_daily_login(self) -> Dict[str, Any]:
        """
        Count today's login once; safe to call repeatedly on the same day

        Returns:
            {
                'counted': bool,
                'streak_continued': bool,
                'previous_streak': int,
                'current_streak': int,
                'longest_streak': int,
                'xp_awarded': int
            }
        """
        async with self._lock:
            self._require_initialized("check_daily_login")
            return await self._check_daily_login(self.clock())

    async def update_quest_progress(self, condition_tag: str, increment: int = 1) -> List[QuestInstance]:
        """
        Advance active quests matching `condition_tag`

        Returns:
            Quests that became completed with this update
        """
        async with self._lock:
            self._require_initialized("update_quest_progress")
            return await self._update_quest_progress(condition_tag, increment)

    async def claim_quest_reward(self, quest_id: str) -> Dict[str, Any]:
        """
        Claim a completed quest's XP reward

        Raises:
            QuestClaimError: Quest is not on the board, not completed, or already claimed

        Returns:
            {'quest_id': str, 'xp_rewarded': int, 'award': dict}
        """
        async with self._lock:
            self._require_initialized("claim_quest_reward")
            await self._refresh_quests_if_stale()

            quest = self.quest_scheduler.find_quest(self.quests, quest_id)
            if quest is None:
                raise QuestClaimError(
                    f"Quest '{quest_id}' is not on the active board",
                    quest_id=quest_id, reason="not_found",
                    user_id=self.user_id, operation="claim_quest_reward"
                )
            if not quest.completed:
                raise QuestClaimError(
                    f"Quest '{quest_id}' is not completed ({quest.progress}/{quest.target})",
                    quest_id=quest_id, reason="not_completed",
                    user_id=self.user_id, operation="claim_quest_reward"
                )
            if quest.claimed_reward:
                raise QuestClaimError(
                    f"Quest '{quest_id}' reward was already claimed",
                    quest_id=quest_id, reason="already_claimed",
                    user_id=self.user_id, operation="claim_quest_reward"
                )

            quest.claimed_reward = True
            self.stats.quests_completed += 1
            await self._save_quests()

            # Stats (with quests_completed) are saved by the award
            award = await self._award_xp(QUEST_REWARD_ACTIONS[quest.cadence], quest.xp_reward)

            logger.info(f"User {self.user_id} claimed quest {quest_id} (+{quest.xp_reward} XP)")

            return {
                "quest_id": quest_id,
                "xp_rewarded": quest.xp_reward,
                "award": award,
            }

    async def record_application_event(self, event: ApplicationEvent) -> Optional[Dict[str, Any]]:
        """
        Apply a job-application event: counters, quest progress, XP

        Counters are bumped before the award so achievements gated on them
        unlock within this call.

        Args:
            event: ApplicationEvent (or its string value, e.g. "created")

        Returns:
            Award result (see award_xp()), or None if the event carries no XP
        """
        event = ApplicationEvent(event)

        async with self._lock:
            self._require_initialized("record_application_event")

            if event == ApplicationEvent.CREATED:
                self.stats.total_applications += 1
            elif event == ApplicationEvent.INTERVIEW_SCHEDULED:
                self.stats.total_interviews += 1
            elif event == ApplicationEvent.INTERVIEW_COMPLETED:
                self.stats.completed_interviews += 1

            await self._advance_quests(APPLICATION_EVENT_QUEST_TAGS[event], 1)

            award = await self._award_xp(APPLICATION_EVENT_XP_ACTIONS[event])
            if award is None:
                await self._save_stats()
                await self._run_achievement_pass()

            logger.info(f"User {self.user_id} application event: {event.value}")
            return award

    def get_progress(self) -> Dict[str, Any]:
        """
        Snapshot of stats, achievements, quests and level progress

        Returns:
            {
                'stats': dict,
                'achievements': {'total', 'unlocked', 'list'},
                'quests': {'daily', 'weekly'},
                'level_progress': {'current', 'required', 'percentage'}
            }
        """
        self._require_initialized("get_progress")
        return self._snapshot()

    # ============================================
    # Internal Operations (caller holds the lock)
    # ============================================

    async def _award_xp(self, action: str, amount: Optional[int] = None) -> Optional[Dict[str, Any]]:
        xp_amount = amount if amount is not None else XP_ACTIONS.get(action, 0)

        if xp_amount < 0:
            raise ValueError(f"XP amount must not be negative, got {xp_amount} for {action}")
        if xp_amount == 0:
            logger.debug(f"No XP for action {action}, skipping award")
            return None

        result = await self._apply_xp(action, xp_amount)

        unlocked = await self._run_achievement_pass()
        result["achievements_unlocked"] = [achievement.id for achievement in unlocked]

        return result

    async def _apply_xp(self, action: str, amount: int) -> Dict[str, Any]:
        """Add XP, recompute level, save stats and publish xp_gained"""
        previous_level = self.stats.level
        self.stats.total_xp += amount

        level_info = calculate_level_info(self.stats.total_xp, self.level_config)
        self.stats.level = level_info["level"]
        self.stats.current_xp = level_info["current_xp"]
        self.stats.next_level_xp = level_info["next_level_xp"]
        self.stats.title = level_info["title"]
        leveled_up = self.stats.level > previous_level

        await self._save_stats()

        self.events.publish(XP_GAINED, {
            "amount": amount,
            "action": action,
            "total_xp": self.stats.total_xp,
            "current_xp": self.stats.current_xp,
            "next_level_xp": self.stats.next_level_xp,
            "level": self.stats.level,
            "leveled_up": leveled_up,
            "previous_level": previous_level,
            "title": self.stats.title,
        })

        logger.info(
            f"Awarded {amount} XP to user {self.user_id} for {action}. "
            f"Total: {self.stats.total_xp} XP, Level: {self.stats.level}"
        )
        if leveled_up:
            logger.info(
                f"User {self.user_id} leveled up from {previous_level} to {self.stats.level} "
                f"({self.stats.title})!"
            )

        return {
            "xp_awarded": amount,
            "action": action,
            "total_xp": self.stats.total_xp,
            "current_xp": self.stats.current_xp,
            "leveled_up": leveled_up,
            "previous_level": previous_level,
            "new_level": self.stats.level,
            "title": self.stats.title,
        }

    async def _run_achievement_pass(self) -> List[AchievementRecord]:
        """One evaluation pass; rewards are drained from a queue without re-evaluating"""
        newly_unlocked = evaluate_achievements(self.stats, self.achievements)
        if not newly_unlocked:
            return []

        self.stats.achievements_unlocked += len(newly_unlocked)
        await self._save_achievements()

        self.events.publish(ACHIEVEMENTS_UNLOCKED, {
            "achievements": [achievement.model_dump(mode="json") for achievement in newly_unlocked],
        })

        pending = deque(achievement.xp_reward for achievement in newly_unlocked)
        while pending:
            await self._apply_xp(ACHIEVEMENT_REWARD_ACTION, pending.popleft())

        return newly_unlocked

    async def _check_daily_login(self, today: date) -> Dict[str, Any]:
        login = apply_daily_login(self.stats, today)
        result = dict(asdict(login), xp_awarded=0)

        if not login.counted:
            return result

        awards = []
        if login.streak_continued:
            awards.append(await self._award_xp("STREAK_MAINTAINED"))
        awards.append(await self._award_xp("DAILY_LOGIN"))

        awarded = [award for award in awards if award is not None]
        if not awarded:
            await self._save_stats()
        result["xp_awarded"] = sum(award["xp_awarded"] for award in awarded)

        await self._update_quest_progress(LOGIN_QUEST_TAG, 1)
        return result

    async def _update_quest_progress(self, condition_tag: str, increment: int) -> List[QuestInstance]:
        return await self._advance_quests([condition_tag], increment)

    async def _advance_quests(self, condition_tags: List[str], increment: int) -> List[QuestInstance]:
        """Advance quests for every tag; one board save and one quests_completed batch"""
        if not condition_tags:
            return []

        await self._refresh_quests_if_stale()

        any_matched = False
        newly_completed = []
        for tag in condition_tags:
            matched, completed = self.quest_scheduler.update_progress(self.quests, tag, increment)
            any_matched = any_matched or bool(matched)
            newly_completed.extend(completed)

        if not any_matched:
            return []

        await self._save_quests()

        if newly_completed:
            self.events.publish(QUESTS_COMPLETED, {
                "quests": [quest.model_dump(mode="json") for quest in newly_completed],
            })

        return newly_completed

    async def _refresh_quests_if_stale(self) -> None:
        """Roll quests over when the calendar day or week changed mid-session"""
        self.quests, changed = self.quest_scheduler.load_or_generate(self.quests, self.clock())
        if changed:
            await self._save_quests()

    # ============================================
    # Helpers
    # ============================================

    def _require_initialized(self, operation: str) -> None:
        if not self._initialized:
            raise NotInitializedError(user_id=self.user_id, operation=operation)

    def _new_stats(self) -> UserProgressionState:
        level_info = calculate_level_info(0, self.level_config)
        return UserProgressionState(
            user_id=self.user_id,
            level=level_info["level"],
            current_xp=level_info["current_xp"],
            total_xp=0,
            next_level_xp=level_info["next_level_xp"],
            title=level_info["title"],
        )

    def _snapshot(self) -> Dict[str, Any]:
        next_level_xp = self.stats.next_level_xp
        percentage = (self.stats.current_xp / next_level_xp * 100) if next_level_xp > 0 else 100.0

        return {
            "stats": self.stats.model_dump(mode="json"),
            "achievements": {
                "total": len(self.achievements),
                "unlocked": sum(1 for a in self.achievements if a.unlocked),
                "list": [
                    dict(
                        achievement.model_dump(mode="json"),
                        progress=calculate_achievement_progress(self.stats, achievement),
                    )
                    for achievement in self.achievements
                ],
            },
            "quests": {
                "daily": [quest.model_dump(mode="json") for quest in self.quests.daily],
                "weekly": [quest.model_dump(mode="json") for quest in self.quests.weekly],
            },
            "level_progress": {
                "current": self.stats.current_xp,
                "required": next_level_xp,
                "percentage": min(percentage, 100.0),
            },
        }

    async def _call_store(self, operation: str, call: Awaitable):
        """Await a store call with the persistence timeout; failures become PersistenceError"""
        try:
            return await asyncio.wait_for(call, timeout=self.persistence_timeout)
        except PersistenceError:
            raise
        except Exception as e:
            raise wrap_persistence_exception(
                e, operation, user_id=self.user_id, timeout=self.persistence_timeout
            ) from e

    async def _save_stats(self) -> None:
        await self._call_store("save_stats", self.store.save_stats(self.stats))

    async def _save_achievements(self) -> None:
        await self._call_store(
            "save_achievements", self.store.save_achievements(self.user_id, self.achievements)
        )

    async def _save_quests(self) -> None:
        await self._call_store("save_quests", self.store.save_quests(self.user_id, self.quests))
