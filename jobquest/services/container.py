"""
Service Container - Dependency Injection Container

Holds the shared collaborators (store, event bus) and hands out one
initialized ProgressionEngine per user session. Nothing here is global:
callers build a container and pass it around.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional
import logging

from jobquest import config
from jobquest.gamification.engine import ProgressionEngine
from jobquest.gamification.events import EventBus
from jobquest.gamification.store import JsonFileProgressStore, ProgressStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for progression sessions.

    Infrastructure dependencies (store, events) are injected; engines are
    created lazily on open_session().
    """

    store: ProgressStore
    events: EventBus = field(default_factory=EventBus)

    _sessions: Dict[str, ProgressionEngine] = field(default_factory=dict, init=False, repr=False)
    _locks: Dict[str, asyncio.Lock] = field(default_factory=dict, init=False, repr=False)

    async def open_session(self, user_id: str, **engine_kwargs) -> ProgressionEngine:
        """
        Get the user's engine, creating and initializing it on first use

        Args:
            user_id: User identifier
            **engine_kwargs: Extra ProgressionEngine arguments (clock, scheduler, ...)

        Returns:
            Initialized ProgressionEngine
        """
        # Concurrent opens for one user must share a single engine
        async with self._user_lock(user_id):
            engine = self._sessions.get(user_id)
            if engine is not None and engine.initialized:
                return engine

            engine = ProgressionEngine(user_id, self.store, self.events, **engine_kwargs)
            await engine.initialize()
            self._sessions[user_id] = engine
            logger.debug(f"Progression session opened for user {user_id}")
            return engine

    async def close_session(self, user_id: str) -> bool:
        """Dispose the user's engine; returns False if no session was open"""
        async with self._user_lock(user_id):
            engine = self._sessions.pop(user_id, None)
            if engine is None:
                return False

            await engine.dispose()
            logger.debug(f"Progression session closed for user {user_id}")
            return True

    def _user_lock(self, user_id: str) -> asyncio.Lock:
        return self._locks.setdefault(user_id, asyncio.Lock())

    def active_sessions(self) -> list:
        return list(self._sessions)


def build_container(data_path: Optional[Path] = None) -> ServiceContainer:
    """
    Build a container backed by the JSON file store

    Args:
        data_path: Storage root (defaults to DATA_PATH)

    Returns:
        ServiceContainer
    """
    store = JsonFileProgressStore(data_path if data_path is not None else config.DATA_PATH)
    logger.info(f"Service container initialized (data path: {store.data_path})")
    return ServiceContainer(store=store)
