"""Read-only ranking queries over a PostStore.

Queries work on an immutable snapshot taken under the store lock, so they can
run concurrently with each other and with writers. Scores are recomputed for
every call with a single ``now``; the cached ``Post.score`` is never trusted.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from core.errors import ValidationError
from core.models import Page, Post
from core.scoring import score_post
from core.store import PostStore

SORT_KEYS = ("score", "latest")
PERIODS = ("day", "week", "month")


def window_start(period: str, now: datetime) -> datetime:
    """Return the start of the trailing window for ``period`` ending at ``now``."""

    if period == "day":
        return now - timedelta(hours=24)
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        # Calendar month; relativedelta clamps Mar 31 to Feb 28/29.
        return now - relativedelta(months=1)
    raise ValidationError(f"Unsupported period: {period!r} (expected one of {', '.join(PERIODS)})")


def _rescored(posts: Iterable[Post], now: datetime) -> List[Post]:
    return [replace(post, score=score_post(post, now)) for post in posts]


class PostQueries:
    """Paginated listings and trailing-window lookups."""

    def __init__(self, store: PostStore) -> None:
        self._store = store

    def paginated(self, page: int, limit: int, sort_by: str = "score") -> Page:
        """Return one page of posts plus the total collection size.

        ``latest`` orders by creation time, newest first; ``score`` orders by
        the freshly computed score. Ties keep insertion order.
        """

        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise ValidationError(f"page must be an integer >= 1, got {page!r}")
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError(f"limit must be an integer >= 1, got {limit!r}")
        if sort_by not in SORT_KEYS:
            raise ValidationError(f"sort_by must be one of {', '.join(SORT_KEYS)}, got {sort_by!r}")

        posts = _rescored(self._store.snapshot(), self._store.clock())
        if sort_by == "latest":
            ordered = sorted(posts, key=lambda post: post.timestamp, reverse=True)
        else:
            ordered = sorted(posts, key=lambda post: post.score, reverse=True)

        offset = (page - 1) * limit
        return Page(
            items=tuple(ordered[offset : offset + limit]),
            total_count=len(ordered),
            page=page,
            limit=limit,
        )

    def ranked(self) -> List[Post]:
        """Return the whole collection ordered by fresh score."""

        posts = _rescored(self._store.snapshot(), self._store.clock())
        return sorted(posts, key=lambda post: post.score, reverse=True)

    def top_in_window(self, period: str) -> Optional[Post]:
        """Return the highest-scoring post created in the trailing window.

        Ties go to the earliest timestamp, then to insertion order.
        """

        now = self._store.clock()
        start = window_start(period, now)
        candidates = _rescored(
            (post for post in self._store.snapshot() if start <= post.timestamp <= now),
            now,
        )
        if not candidates:
            return None
        # min() returns the first of equal keys, which keeps insertion order last.
        return min(candidates, key=lambda post: (-post.score, post.timestamp))
