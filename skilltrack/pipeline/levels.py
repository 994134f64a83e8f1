from __future__ import annotations

import math
from bisect import bisect_right
from functools import lru_cache

from .constants import MAX_LEVEL, MIN_LEVEL


@lru_cache(maxsize=None)
def experience_required_for(level: int) -> int:
    """Total experience needed to reach ``level`` on the standard curve."""
    level = int(level)
    if level <= MIN_LEVEL:
        return 0
    points = 0
    for i in range(1, level):
        points += math.floor(i + 300 * 2 ** (i / 7))
    return points // 4


# _THRESHOLDS[n] is the requirement for level n + 1
_THRESHOLDS = tuple(experience_required_for(lvl) for lvl in range(MIN_LEVEL, MAX_LEVEL + 1))


def _clean_xp(xp) -> float:
    if xp is None or isinstance(xp, bool):
        return 0.0
    try:
        val = float(xp)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(val) or val < 0:
        return 0.0
    return val


def level_for_experience(xp) -> int:
    level = bisect_right(_THRESHOLDS, _clean_xp(xp))
    return max(MIN_LEVEL, min(MAX_LEVEL, level))


def experience_to_next_level(xp) -> int:
    current = _clean_xp(xp)
    level = level_for_experience(current)
    if level >= MAX_LEVEL:
        return 0
    return int(math.ceil(experience_required_for(level + 1) - current))


def experience_to_reach_level(xp, target: int) -> int:
    remaining = experience_required_for(target) - _clean_xp(xp)
    if remaining <= 0:
        return 0
    return int(math.ceil(remaining))
