"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any storage-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from dateutil import parser as dateparse

from core.errors import CorruptRecordError


@dataclass(frozen=True)
class NewPost:
    """Pre-validated submission handed to the store by its caller."""

    url: str
    language: str = "en"
    title: Optional[str] = None
    author: Optional[str] = None


@dataclass(frozen=True)
class Post:
    """A submitted link with its vote counter.

    ``score`` is a cache of the decayed score at the last read or write; the
    source of truth is always ``(votes, timestamp)``.
    """

    id: str
    url: str
    language: str
    title: Optional[str]
    author: Optional[str]
    votes: int
    timestamp: datetime
    score: float = 0.0


@dataclass(frozen=True)
class Page:
    """One page of a listing plus the size of the whole collection."""

    items: Tuple[Post, ...]
    total_count: int
    page: int
    limit: int

    @property
    def has_more(self) -> bool:
        return self.page * self.limit < self.total_count


def format_timestamp(value: datetime) -> str:
    """Render an instant as ISO 8601 UTC with a Z suffix, keeping microseconds."""

    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    parsed = dateparse.isoparse(value)
    if parsed.tzinfo is None:
        # Naive values were written by us in UTC.
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def post_to_record(post: Post) -> dict[str, Any]:
    """Serialize a post into the persisted JSON-friendly shape."""

    return {
        "id": post.id,
        "url": post.url,
        "language": post.language,
        "title": post.title,
        "author": post.author,
        "votes": post.votes,
        "timestamp": format_timestamp(post.timestamp),
        "score": post.score,
    }


def post_from_record(record: Any) -> Post:
    """Build a post from a persisted record, rejecting anything malformed."""

    if not isinstance(record, dict):
        raise CorruptRecordError(f"Post record must be an object, got {type(record).__name__}")

    for key in ("id", "url", "timestamp"):
        if not record.get(key):
            raise CorruptRecordError(f"Post record is missing '{key}'")

    votes = record.get("votes", 0)
    # bool is an int subclass but never a valid vote count
    if isinstance(votes, bool) or not isinstance(votes, int):
        raise CorruptRecordError(f"Post {record['id']} has a non-integer vote count: {votes!r}")

    try:
        timestamp = parse_timestamp(str(record["timestamp"]))
    except (ValueError, OverflowError) as exc:
        raise CorruptRecordError(f"Post {record['id']} has an invalid timestamp") from exc

    for key in ("title", "author", "language"):
        value = record.get(key)
        if value is not None and not isinstance(value, str):
            raise CorruptRecordError(f"Post {record['id']} has a non-string {key}: {value!r}")

    raw_score = record.get("score")
    if raw_score is None:
        raw_score = 0.0
    if isinstance(raw_score, bool):
        raise CorruptRecordError(f"Post {record['id']} has an invalid score: {raw_score!r}")
    try:
        cached_score = float(raw_score)
    except (TypeError, ValueError) as exc:
        raise CorruptRecordError(f"Post {record['id']} has an invalid score: {raw_score!r}") from exc

    return Post(
        id=str(record["id"]),
        url=str(record["url"]),
        language=record.get("language") or "en",
        title=record.get("title"),
        author=record.get("author"),
        votes=votes,
        timestamp=timestamp,
        score=cached_score,
    )
