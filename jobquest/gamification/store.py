"""
Progression Stores

Durable storage for per-user stats, achievements and quests. The engine
treats the store as the source of truth on initialize() and writes whole
objects back (each save is all-or-nothing for the object it touches).

Stores hand out fresh copies; mutating a loaded object never changes what
is stored until it is saved again.
"""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional, Protocol

from jobquest.models.progression import AchievementRecord, QuestBoard, UserProgressionState

logger = logging.getLogger(__name__)


class ProgressStore(Protocol):
    """Persistence collaborator keyed by user id"""

    async def load_stats(self, user_id: str) -> Optional[UserProgressionState]: ...

    async def save_stats(self, state: UserProgressionState) -> None: ...

    async def load_achievements(self, user_id: str) -> List[AchievementRecord]: ...

    async def save_achievements(self, user_id: str, achievements: List[AchievementRecord]) -> None: ...

    async def load_quests(self, user_id: str) -> Optional[QuestBoard]: ...

    async def save_quests(self, user_id: str, quests: QuestBoard) -> None: ...


class InMemoryProgressStore:
    """In-memory store; keeps JSON snapshots so callers never share objects"""

    def __init__(self):
        self._stats = {}
        self._achievements = {}
        self._quests = {}

    async def load_stats(self, user_id: str) -> Optional[UserProgressionState]:
        data = self._stats.get(user_id)
        return UserProgressionState.model_validate(data) if data is not None else None

    async def save_stats(self, state: UserProgressionState) -> None:
        self._stats[state.user_id] = state.model_dump(mode="json")
        logger.debug(f"Saved stats for user {state.user_id}")

    async def load_achievements(self, user_id: str) -> List[AchievementRecord]:
        return [AchievementRecord.model_validate(item) for item in self._achievements.get(user_id, [])]

    async def save_achievements(self, user_id: str, achievements: List[AchievementRecord]) -> None:
        self._achievements[user_id] = [a.model_dump(mode="json") for a in achievements]
        logger.debug(f"Saved {len(achievements)} achievements for user {user_id}")

    async def load_quests(self, user_id: str) -> Optional[QuestBoard]:
        data = self._quests.get(user_id)
        return QuestBoard.model_validate(data) if data is not None else None

    async def save_quests(self, user_id: str, quests: QuestBoard) -> None:
        self._quests[user_id] = quests.model_dump(mode="json")
        logger.debug(f"Saved quests for user {user_id}")

    def clear(self) -> None:
        """Drop everything (used between test runs)"""
        self._stats.clear()
        self._achievements.clear()
        self._quests.clear()


class JsonFileProgressStore:
    """
    One directory per user under data_path:

        <data_path>/<user_id>/stats.json
        <data_path>/<user_id>/achievements.json
        <data_path>/<user_id>/quests.json

    Writes go to a temp file first and are swapped in with os.replace.

    File I/O here is blocking, so the engine's persistence timeout can only
    interrupt stores whose calls actually yield to the event loop.
    """

    STATS_FILE = "stats.json"
    ACHIEVEMENTS_FILE = "achievements.json"
    QUESTS_FILE = "quests.json"

    def __init__(self, data_path: Path):
        self.data_path = Path(data_path)

    def get_user_dir(self, user_id: str) -> Path:
        """
        Get user's progression directory

        Raises:
            ValueError: user_id would resolve outside data_path
        """
        if not user_id or user_id in (".", "..") or "/" in user_id or "\\" in user_id:
            raise ValueError(f"Invalid user id for file storage: {user_id!r}")
        return self.data_path / user_id

    def _read_json(self, user_id: str, filename: str):
        filepath = self.get_user_dir(user_id) / filename
        if not filepath.exists():
            return None
        return json.loads(filepath.read_text(encoding="utf-8"))

    def _write_json(self, user_id: str, filename: str, payload) -> None:
        user_dir = self.get_user_dir(user_id)
        user_dir.mkdir(parents=True, exist_ok=True)

        filepath = user_dir / filename
        tmp_path = filepath.with_suffix(filepath.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, filepath)
        logger.debug(f"Wrote {filename} for user {user_id}")

    async def load_stats(self, user_id: str) -> Optional[UserProgressionState]:
        data = self._read_json(user_id, self.STATS_FILE)
        return UserProgressionState.model_validate(data) if data is not None else None

    async def save_stats(self, state: UserProgressionState) -> None:
        self._write_json(state.user_id, self.STATS_FILE, state.model_dump(mode="json"))

    async def load_achievements(self, user_id: str) -> List[AchievementRecord]:
        data = self._read_json(user_id, self.ACHIEVEMENTS_FILE) or []
        return [AchievementRecord.model_validate(item) for item in data]

    async def save_achievements(self, user_id: str, achievements: List[AchievementRecord]) -> None:
        self._write_json(user_id, self.ACHIEVEMENTS_FILE, [a.model_dump(mode="json") for a in achievements])

    async def load_quests(self, user_id: str) -> Optional[QuestBoard]:
        data = self._read_json(user_id, self.QUESTS_FILE)
        return QuestBoard.model_validate(data) if data is not None else None

    async def save_quests(self, user_id: str, quests: QuestBoard) -> None:
        self._write_json(user_id, self.QUESTS_FILE, quests.model_dump(mode="json"))
