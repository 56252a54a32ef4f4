"""
Progression Notifications

Fire-and-forget publish/subscribe used by the engine to tell the rest of the
application about XP, achievements, quests and initialization. Publishing
never fails the caller: a failing handler is logged and skipped.
"""

import logging
from collections import deque
from itertools import count
from typing import Any, Callable, Deque, Dict, List, Optional, Protocol

from jobquest.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)

# Event names
XP_GAINED = "xp_gained"
ACHIEVEMENTS_UNLOCKED = "achievements_unlocked"
QUESTS_COMPLETED = "quests_completed"
INITIALIZED = "initialized"

EventHandler = Callable[[str, Dict[str, Any]], None]


class EventPublisher(Protocol):
    """Notification collaborator"""

    def publish(self, event_name: str, payload: Dict[str, Any]) -> None: ...


class EventBus:
    """In-process event bus with a bounded history of published events"""

    def __init__(self, max_history: int = 100):
        self._handlers: Dict[str, List[tuple]] = {}
        self._ids = count(1)
        self.history: Deque[Dict[str, Any]] = deque(maxlen=max_history)

    def subscribe(self, event_name: str, handler: EventHandler) -> int:
        """Register a handler; returns an id for unsubscribe()"""
        if not callable(handler):
            raise TypeError("handler must be callable")

        handler_id = next(self._ids)
        self._handlers.setdefault(event_name, []).append((handler_id, handler))
        logger.debug(f"Registered handler {handler_id} for '{event_name}'")
        return handler_id

    def unsubscribe(self, event_name: str, handler_id: int) -> bool:
        """Remove a handler; returns False if it wasn't registered"""
        handlers = self._handlers.get(event_name, [])
        for index, (registered_id, _) in enumerate(handlers):
            if registered_id == handler_id:
                del handlers[index]
                return True
        return False

    def publish(self, event_name: str, payload: Dict[str, Any]) -> None:
        """Deliver an event to every handler registered for it"""
        self.history.append({
            "name": event_name,
            "payload": payload,
            "published_at": now_utc(),
        })

        # Copy so handlers may unsubscribe while being called
        for handler_id, handler in list(self._handlers.get(event_name, [])):
            try:
                handler(event_name, payload)
            except Exception:
                logger.warning(
                    f"Handler {handler_id} for '{event_name}' failed",
                    exc_info=True
                )

    def events_named(self, event_name: str) -> List[Dict[str, Any]]:
        """Payloads from history for one event name, oldest first"""
        return [event["payload"] for event in self.history if event["name"] == event_name]

    def clear_history(self, event_name: Optional[str] = None) -> None:
        """Forget published events (all, or just one name)"""
        if event_name is None:
            self.history.clear()
            return
        kept = [event for event in self.history if event["name"] != event_name]
        self.history.clear()
        self.history.extend(kept)
