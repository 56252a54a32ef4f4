"""
XP and Leveling System

Maps lifetime XP to levels and titles.

Leveling Curve:
- XP to clear level n: floor(base_xp * multiplier ** (n - 1))
- Defaults: base 100, multiplier 1.5, capped at level 100
- Level 1: 100 XP, Level 2: 150 XP, Level 3: 225 XP, ...

A user is at level L when cumulative(L - 1) <= total_xp < cumulative(L),
where cumulative(k) is the XP needed to clear levels 1..k.
"""

from bisect import bisect_right
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Tuple
import math

from jobquest import config
from jobquest.gamification.catalog import LEVEL_TITLES


@dataclass(frozen=True)
class LevelConfig:
    """Parameters of the geometric leveling curve"""
    base_xp: int = 100
    multiplier: float = 1.5
    max_level: int = 100


DEFAULT_LEVEL_CONFIG = LevelConfig(
    base_xp=config.LEVEL_BASE_XP,
    multiplier=config.LEVEL_MULTIPLIER,
    max_level=config.MAX_LEVEL,
)


def xp_for_level(level: int, level_config: LevelConfig = DEFAULT_LEVEL_CONFIG) -> int:
    """XP needed to clear `level` (go from `level` to `level + 1`)"""
    if not 1 <= level <= level_config.max_level:
        raise ValueError(f"Level must be between 1 and {level_config.max_level}, got {level}")
    return math.floor(level_config.base_xp * level_config.multiplier ** (level - 1))


@lru_cache(maxsize=8)
def _cumulative_table(level_config: LevelConfig) -> Tuple[int, ...]:
    """table[k] = XP needed to clear levels 1..k; table[0] = 0"""
    table = [0]
    for level in range(1, level_config.max_level + 1):
        table.append(table[-1] + xp_for_level(level, level_config))
    return tuple(table)


def cumulative_xp_through(level: int, level_config: LevelConfig = DEFAULT_LEVEL_CONFIG) -> int:
    """Total XP needed to clear levels 1..level (0 for level 0)"""
    if not 0 <= level <= level_config.max_level:
        raise ValueError(f"Level must be between 0 and {level_config.max_level}, got {level}")
    return _cumulative_table(level_config)[level]


def level_from_total_xp(total_xp: int, level_config: LevelConfig = DEFAULT_LEVEL_CONFIG) -> int:
    """
    Level for a lifetime XP total

    Returns the largest L with cumulative(L - 1) <= total_xp, capped at
    max_level. Negative totals count as 0.
    """
    table = _cumulative_table(level_config)
    level = bisect_right(table, max(total_xp, 0))
    return max(1, min(level, level_config.max_level))


def title_for_level(level: int) -> str:
    """Title of the highest LEVEL_TITLES threshold not above `level`"""
    title = LEVEL_TITLES[0][1]
    for threshold, candidate in LEVEL_TITLES:
        if threshold > level:
            break
        title = candidate
    return title


def calculate_level_info(total_xp: int, level_config: LevelConfig = DEFAULT_LEVEL_CONFIG) -> Dict[str, Any]:
    """
    Calculate level, title and in-level progress from total XP

    Returns:
        {
            'level': int,
            'title': str,
            'current_xp': int,        # XP earned inside the current level
            'next_level_xp': int,     # XP needed to clear the current level
            'xp_to_next_level': int,
            'total_xp': int
        }

    At max_level current_xp keeps growing and xp_to_next_level stays 0.
    """
    total_xp = max(total_xp, 0)
    level = level_from_total_xp(total_xp, level_config)
    current_xp = total_xp - cumulative_xp_through(level - 1, level_config)
    next_level_xp = xp_for_level(level, level_config)

    return {
        "level": level,
        "title": title_for_level(level),
        "current_xp": current_xp,
        "next_level_xp": next_level_xp,
        "xp_to_next_level": max(next_level_xp - current_xp, 0),
        "total_xp": total_xp,
    }
