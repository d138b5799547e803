"""In-memory post store with a durable mirror.

The store is the single owner of the post collection. Every mutation runs as
one critical section covering both the in-memory change and the full rewrite
of the durable record, so concurrent votes are never lost and memory never
drifts from storage:
1) Look up / build the record under the lock
2) Apply the change in memory
3) Rewrite the whole collection through the repository
4) On PersistenceError, restore the previous record and re-raise

Each mutation rewrites the whole collection, so write cost grows linearly
with the number of posts.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Optional

from core.errors import CorruptRecordError, DuplicatePostError, PersistenceError
from core.models import NewPost, Post
from core.ports import PostRepository
from core.scoring import score_post

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PostStore:
    """Owns the post collection and serializes writes through a repository."""

    def __init__(self, repository: PostRepository, clock: Clock = utc_now) -> None:
        self._repository = repository
        self._clock = clock
        self._lock = threading.Lock()
        self._posts: list[Post] = []
        # id -> position in _posts; positions never shift because posts are never deleted
        self._by_id: dict[str, int] = {}
        self._by_url: dict[str, str] = {}
        self.degraded = False
        self.load_warning: Optional[str] = None

    @classmethod
    def open(cls, repository: PostRepository, clock: Clock = utc_now) -> "PostStore":
        """Build a store and run the startup load."""

        store = cls(repository, clock=clock)
        store.load()
        return store

    @property
    def clock(self) -> Clock:
        return self._clock

    def load(self) -> None:
        """Read the durable record into memory.

        A missing record is created immediately with an empty collection. An
        unreadable record is quarantined by the repository and the store
        starts empty with ``degraded`` set, so the caller can surface it.
        """

        with self._lock:
            now = self._clock()
            try:
                loaded = self._repository.load_all()
                self._reset([replace(post, score=score_post(post, now)) for post in loaded or []])
            except CorruptRecordError as exc:
                moved_to = self._repository.quarantine()
                self.degraded = True
                self.load_warning = f"{exc} (moved to {moved_to})" if moved_to else str(exc)
                LOGGER.warning("Durable record unreadable, starting empty: %s", self.load_warning)
                loaded = None
                self._reset([])

            if loaded is None:
                self._repository.save_all(self._posts)
                LOGGER.info("Initialized an empty post collection")
            else:
                LOGGER.info("Loaded %s posts", len(self._posts))

    def close(self) -> None:
        """Flush the full collection one last time."""

        with self._lock:
            self._persist()

    def __len__(self) -> int:
        with self._lock:
            return len(self._posts)

    def snapshot(self) -> tuple[Post, ...]:
        """Return the collection in insertion order as an immutable tuple."""

        with self._lock:
            return tuple(self._posts)

    def find_by_id(self, post_id: str) -> Optional[Post]:
        with self._lock:
            index = self._by_id.get(post_id)
            return self._posts[index] if index is not None else None

    def find_by_url(self, url: str) -> Optional[Post]:
        with self._lock:
            post_id = self._by_url.get(url)
            if post_id is None:
                return None
            return self._posts[self._by_id[post_id]]

    def add(self, payload: NewPost) -> Post:
        """Create a post and persist it before returning."""

        with self._lock:
            existing_id = self._by_url.get(payload.url)
            if existing_id is not None:
                raise DuplicatePostError(self._posts[self._by_id[existing_id]])

            post_id = str(uuid.uuid4())
            while post_id in self._by_id:
                post_id = str(uuid.uuid4())

            now = self._clock()
            post = Post(
                id=post_id,
                url=payload.url,
                language=payload.language,
                title=payload.title,
                author=payload.author,
                votes=0,
                timestamp=now,
            )
            post = replace(post, score=score_post(post, now))

            self._posts.append(post)
            self._by_id[post.id] = len(self._posts) - 1
            self._by_url[post.url] = post.id
            try:
                self._persist()
            except PersistenceError:
                self._posts.pop()
                del self._by_id[post.id]
                del self._by_url[post.url]
                raise

        LOGGER.info("Added post %s for %s", post.id, post.url)
        return post

    def upvote(self, post_id: str) -> Optional[Post]:
        return self._apply_vote(post_id, 1)

    def downvote(self, post_id: str) -> Optional[Post]:
        return self._apply_vote(post_id, -1)

    def _apply_vote(self, post_id: str, delta: int) -> Optional[Post]:
        with self._lock:
            index = self._by_id.get(post_id)
            if index is None:
                return None

            previous = self._posts[index]
            updated = replace(previous, votes=previous.votes + delta)
            updated = replace(updated, score=score_post(updated, self._clock()))
            self._posts[index] = updated
            try:
                self._persist()
            except PersistenceError:
                self._posts[index] = previous
                raise

        LOGGER.info("Vote %+d on post %s (votes=%s)", delta, post_id, updated.votes)
        return updated

    def _persist(self) -> None:
        # Caller holds the lock.
        try:
            self._repository.save_all(self._posts)
        except PersistenceError:
            LOGGER.exception("Failed to persist %s posts", len(self._posts))
            raise

    def _reset(self, posts: list[Post]) -> None:
        by_id: dict[str, int] = {}
        by_url: dict[str, str] = {}
        for index, post in enumerate(posts):
            if post.id in by_id:
                raise CorruptRecordError(f"Duplicate post id in durable record: {post.id}")
            by_id[post.id] = index
            if post.url in by_url:
                raise CorruptRecordError(f"Duplicate post url in durable record: {post.url}")
            by_url[post.url] = post.id
        self._posts = list(posts)
        self._by_id = by_id
        self._by_url = by_url
