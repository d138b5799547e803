"""Time-decayed popularity scoring (core domain).

score = votes / (age_hours + OFFSET) ** GRAVITY

Posts with zero or negative votes always score 0 so they sink toward the
bottom of a ranking instead of going negative.
"""

from __future__ import annotations

from datetime import datetime

from core.models import Post

GRAVITY = 1.8
# Hours added to every age so brand-new posts are not overweighted.
OFFSET_HOURS = 2.0

_SECONDS_PER_HOUR = 3600.0


def score(votes: int, age_hours: float) -> float:
    """Return the decayed score for a vote count at a given age in hours."""

    if votes <= 0:
        return 0.0
    age_hours = max(0.0, age_hours)
    return votes / (age_hours + OFFSET_HOURS) ** GRAVITY


def age_in_hours(timestamp: datetime, now: datetime) -> float:
    """Return the non-negative age of ``timestamp`` at ``now``, in hours."""

    return max(0.0, (now - timestamp).total_seconds() / _SECONDS_PER_HOUR)


def score_post(post: Post, now: datetime) -> float:
    return score(post.votes, age_in_hours(post.timestamp, now))
