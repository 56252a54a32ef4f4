"""
Quest System

Daily and weekly quests drawn from template pools.

Lifecycle:
- Generated at session start when the stored set is missing or stale
- Daily set rolls over when the calendar date changes
- Weekly set rolls over when the ISO week changes
- Rollover discards the previous set wholesale, including completed
  quests whose reward was never claimed
"""

import logging
import random
from datetime import date
from typing import List, Optional, Tuple

from jobquest.gamification.catalog import DAILY_QUEST_TEMPLATES, WEEKLY_QUEST_TEMPLATES
from jobquest.models.progression import QuestBoard, QuestInstance, QuestTemplate
from jobquest.utils.datetime_helpers import iso_week_key

logger = logging.getLogger(__name__)


class QuestScheduler:
    """Generates, refreshes and advances quests for one user"""

    def __init__(
        self,
        daily_slots: int = 3,
        weekly_slots: int = 3,
        daily_pool: Optional[List[QuestTemplate]] = None,
        weekly_pool: Optional[List[QuestTemplate]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.daily_slots = daily_slots
        self.weekly_slots = weekly_slots
        self.daily_pool = daily_pool if daily_pool is not None else DAILY_QUEST_TEMPLATES
        self.weekly_pool = weekly_pool if weekly_pool is not None else WEEKLY_QUEST_TEMPLATES
        self.rng = rng or random.Random()

    def generate(self, pool: List[QuestTemplate], count: int, today: date) -> List[QuestInstance]:
        """Draw `count` distinct templates from `pool` and stamp them for today"""
        picked = self.rng.sample(pool, k=min(count, len(pool)))
        week = iso_week_key(today)
        return [
            QuestInstance(
                **template.model_dump(),
                generated_date=today,
                generated_week=week,
            )
            for template in picked
        ]

    def needs_daily_refresh(self, board: QuestBoard, today: date) -> bool:
        """Daily set is empty or was generated on another calendar day"""
        if not board.daily:
            return True
        return board.daily[0].generated_date != today

    def needs_weekly_refresh(self, board: QuestBoard, today: date) -> bool:
        """Weekly set is empty or was generated in another ISO week"""
        if not board.weekly:
            return True
        return board.weekly[0].generated_week != iso_week_key(today)

    def load_or_generate(self, board: Optional[QuestBoard], today: date) -> Tuple[QuestBoard, bool]:
        """
        Refresh stale cadences of a stored board

        Args:
            board: Board loaded from storage (None if the user has none)
            today: Today's calendar date

        Returns:
            (board, changed) where changed means the board must be saved
        """
        if board is None:
            board = QuestBoard()

        changed = False

        if self.needs_daily_refresh(board, today):
            discarded = [q.id for q in board.daily if q.completed and not q.claimed_reward]
            if discarded:
                logger.info(f"Daily rollover discarded unclaimed completed quests: {discarded}")
            board.daily = self.generate(self.daily_pool, self.daily_slots, today)
            changed = True

        if self.needs_weekly_refresh(board, today):
            discarded = [q.id for q in board.weekly if q.completed and not q.claimed_reward]
            if discarded:
                logger.info(f"Weekly rollover discarded unclaimed completed quests: {discarded}")
            board.weekly = self.generate(self.weekly_pool, self.weekly_slots, today)
            changed = True

        if changed:
            logger.info(
                f"Generated quests for {today.isoformat()}: "
                f"daily={[q.id for q in board.daily]}, weekly={[q.id for q in board.weekly]}"
            )

        return board, changed

    def update_progress(
        self,
        board: QuestBoard,
        condition_tag: str,
        increment: int = 1
    ) -> Tuple[List[QuestInstance], List[QuestInstance]]:
        """
        Advance every active quest matching `condition_tag`

        Progress is clamped to the quest's target; a quest is marked
        completed exactly when it reaches the target.

        Returns:
            (matched, newly_completed)
        """
        if increment <= 0:
            raise ValueError(f"Quest progress increment must be positive, got {increment}")

        matched = []
        newly_completed = []

        for quest in board.all_quests():
            if quest.completed or quest.condition_tag != condition_tag:
                continue

            quest.progress = min(quest.progress + increment, quest.target)
            matched.append(quest)

            if quest.progress >= quest.target:
                quest.completed = True
                newly_completed.append(quest)
                logger.info(f"Quest completed: {quest.id} ({quest.name})")

        return matched, newly_completed

    @staticmethod
    def find_quest(board: QuestBoard, quest_id: str) -> Optional[QuestInstance]:
        """Find an active quest by id in either cadence"""
        for quest in board.all_quests():
            if quest.id == quest_id:
                return quest
        return None
