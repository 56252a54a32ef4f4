"""
Standardized exception hierarchy for jobquest
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import asyncio
import logging

logger = logging.getLogger(__name__)


class JobQuestError(Exception):
    """
    Base exception for all jobquest errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise JobQuestError(
            message="Failed to save progression state",
            user_id="local",
            operation="save_stats",
            context={"total_xp": 125}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # 'message' is reserved by logging
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for callers that surface errors to the UI"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Engine Lifecycle
# ==========================================

class NotInitializedError(JobQuestError):
    """Engine operation called before initialize() or after dispose()"""

    def __init__(self, message: str = "Progression engine not initialized", **kwargs):
        super().__init__(
            message=message,
            user_message="Progress tracking is still starting up. Please try again in a moment.",
            **kwargs
        )


# ==========================================
# Quests
# ==========================================

class QuestClaimError(JobQuestError):
    """
    Raised when a quest reward cannot be claimed

    Examples:
    - Quest id is not on the active board
    - Quest is not completed yet
    - Reward was already claimed
    """

    def __init__(
        self,
        message: str,
        quest_id: Optional[str] = None,
        reason: Optional[str] = None,
        **kwargs
    ):
        self.quest_id = quest_id
        self.reason = reason
        super().__init__(
            message=message,
            user_message="This quest reward can't be claimed right now.",
            context={"quest_id": quest_id, "reason": reason},
            **kwargs
        )


# ==========================================
# Persistence Errors
# ==========================================

class PersistenceError(JobQuestError):
    """
    Storage collaborator failed to load or save progression data

    In-memory state is not rolled back: after a failed save the engine's
    state is ahead of durable storage.
    """

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        kwargs.setdefault("user_message", "We couldn't save your progress. Please try again.")
        context = kwargs.pop("context", None) or {}
        context.setdefault("record_type", record_type)
        super().__init__(message=message, context=context, **kwargs)


class PersistenceTimeoutError(PersistenceError):
    """Storage call did not finish within the configured timeout"""

    def __init__(self, message: str, timeout: Optional[float] = None, **kwargs):
        self.timeout = timeout
        super().__init__(
            message=message,
            user_message="Saving your progress is taking too long. Please try again.",
            context={"timeout": timeout},
            **kwargs
        )


# ==========================================
# Static Configuration
# ==========================================

class CatalogError(JobQuestError):
    """Static catalog data (achievements, quests, XP actions) is malformed"""

    def __init__(
        self,
        message: str,
        entry_id: Optional[str] = None,
        **kwargs
    ):
        self.entry_id = entry_id
        super().__init__(
            message=message,
            user_message="The progression catalog is misconfigured. Please contact support.",
            context={"entry_id": entry_id},
            **kwargs
        )


class ConfigurationError(JobQuestError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_persistence_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    timeout: Optional[float] = None
) -> PersistenceError:
    """
    Wrap store exceptions (OSError, pydantic errors, etc.) into our exception hierarchy

    Args:
        error: Original exception
        operation: Store operation being performed (e.g. "save_stats")
        user_id: User ID if applicable
        timeout: Timeout that applied to the call, reported for timeouts

    Returns:
        PersistenceError, or PersistenceTimeoutError for timeouts

    Example:
        try:
            await store.save_stats(state)
        except Exception as e:
            raise wrap_persistence_exception(e, "save_stats", user_id=state.user_id) from e
    """
    if isinstance(error, PersistenceError):
        return error

    record_type = operation.split("_", 1)[-1]

    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return PersistenceTimeoutError(
            message=f"{operation} timed out after {timeout}s",
            timeout=timeout,
            user_id=user_id,
            operation=operation,
            cause=error
        )

    return PersistenceError(
        message=f"{operation} failed: {error}",
        record_type=record_type,
        user_id=user_id,
        operation=operation,
        cause=error
    )
