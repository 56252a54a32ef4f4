"""
Daily Login Streak Tracking

Logic (calendar days, not a rolling 24h window):
- Same day as the last login (or a stored date ahead of today): no change
- Last login was yesterday: streak continues
- Gap of 2+ days, or first login ever: streak restarts at 1

Only the state is updated here; the engine awards DAILY_LOGIN and
STREAK_MAINTAINED XP from the returned result.
"""

from dataclasses import dataclass
from datetime import date
import logging

from jobquest.models.progression import UserProgressionState
from jobquest.utils.datetime_helpers import previous_day

logger = logging.getLogger(__name__)


@dataclass
class LoginCheck:
    """Outcome of a daily login check"""
    counted: bool            # False when the user already logged in today
    streak_continued: bool   # True when yesterday's streak was extended
    previous_streak: int
    current_streak: int
    longest_streak: int


def apply_daily_login(state: UserProgressionState, today: date) -> LoginCheck:
    """
    Update streak fields for a login on `today`

    last_login_date is moved to today before any XP is awarded, so a second
    check on the same day is a no-op even if the first one failed to persist.

    Args:
        state: Progression state (mutated in place)
        today: Today's calendar date in the user's timezone

    Returns:
        LoginCheck describing what changed
    """
    old_streak = state.current_streak
    last_login = state.last_login_date

    # A stored date ahead of today (e.g. after a timezone change) was already counted
    if last_login is not None and last_login >= today:
        return LoginCheck(
            counted=False,
            streak_continued=False,
            previous_streak=old_streak,
            current_streak=old_streak,
            longest_streak=state.longest_streak,
        )

    streak_continued = last_login is not None and last_login == previous_day(today)

    if streak_continued:
        state.current_streak += 1
        logger.info(f"User {state.user_id} login streak continues: {old_streak} → {state.current_streak} days")
    else:
        state.current_streak = 1
        if last_login is None:
            logger.info(f"User {state.user_id} first login recorded, streak started")
        else:
            gap_days = (today - last_login).days
            logger.info(
                f"User {state.user_id} login streak reset. "
                f"Was {old_streak}, gap was {gap_days} days"
            )

    state.longest_streak = max(state.longest_streak, state.current_streak)
    state.last_login_date = today

    return LoginCheck(
        counted=True,
        streak_continued=streak_continued,
        previous_streak=old_streak,
        current_streak=state.current_streak,
        longest_streak=state.longest_streak,
    )
