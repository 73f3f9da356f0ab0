"""Trending score for ideas.

ranking = (recent_supporters * 5 + recent_comments * 3 - 1) / (hours_since_created + 2) ** 1.4

The recent counters cover the last 30 days; the score is never persisted.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime

SUPPORTER_WEIGHT = 5
COMMENT_WEIGHT = 3
BASELINE = -1
DECAY_OFFSET_HOURS = 2.0
DECAY_EXPONENT = 1.4


def calculate_ranking(
    recent_supporters: int,
    recent_comments: int,
    created_on: datetime,
    *,
    now: datetime | None = None,
) -> float:
    """Compute the time-decayed trending score at ``now`` (defaults to wall clock).

    Any undefined or non-finite result is normalized to 0.0.
    """
    now = now or datetime.now(UTC)
    hours = (now - created_on).total_seconds() / 3600
    engagement = (
        recent_supporters * SUPPORTER_WEIGHT + recent_comments * COMMENT_WEIGHT + BASELINE
    )
    try:
        ranking = engagement / math.pow(hours + DECAY_OFFSET_HOURS, DECAY_EXPONENT)
    except (ValueError, ZeroDivisionError, OverflowError):
        return 0.0
    if not math.isfinite(ranking):
        return 0.0
    return ranking
