"""SQLite storage adapter.

Implements the core PostRepository port using a simple SQLite database. The
collection is still rewritten in full on every save, inside one transaction.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Optional, Sequence

from core.errors import CorruptRecordError, PersistenceError
from core.models import Post, format_timestamp, post_from_record

LOGGER = logging.getLogger(__name__)


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the PostRepository contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the posts table if it does not exist.

        Tables:
        - posts: one row per post, position preserves insertion order
        """

        directory = os.path.dirname(self._db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        conn = self._connect()
        try:
            with conn:
                # Fields:
                # - position: insertion order, used to rebuild the in-memory list
                # - id: opaque post id (unique)
                # - url: canonical URL (unique)
                # - timestamp: ISO 8601 UTC creation time
                # - score: cached score at the time of the last write
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS posts (
                        position INTEGER PRIMARY KEY,
                        id TEXT NOT NULL UNIQUE,
                        url TEXT NOT NULL UNIQUE,
                        language TEXT NOT NULL,
                        title TEXT,
                        author TEXT,
                        votes INTEGER NOT NULL,
                        timestamp TEXT NOT NULL,
                        score REAL NOT NULL
                    )
                    """
                )
                # meta marks that the collection has been written at least once,
                # so an empty table can be told apart from a brand-new file.
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS meta (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                    """
                )
        finally:
            conn.close()

    def load_all(self) -> Optional[list[Post]]:
        """Return all posts in insertion order, or None for a fresh database."""

        if not os.path.exists(self._db_path):
            return None

        try:
            self.init_db()
            conn = self._connect()
            try:
                initialized = conn.execute(
                    "SELECT value FROM meta WHERE key = 'initialized_at'"
                ).fetchone()
                rows = conn.execute("SELECT * FROM posts ORDER BY position").fetchall()
            finally:
                conn.close()
        except sqlite3.DatabaseError as exc:
            # Covers "file is not a database" and malformed images.
            if isinstance(exc, sqlite3.OperationalError) and "unable to open" in str(exc):
                raise PersistenceError(f"Failed to open {self._db_path}: {exc}", self._db_path) from exc
            raise CorruptRecordError(f"{self._db_path} is not a readable database: {exc}", self._db_path) from exc

        if initialized is None:
            return None
        return [post_from_record(dict(row)) for row in rows]

    def save_all(self, posts: Sequence[Post]) -> None:
        """Replace every row with the given posts in a single transaction."""

        rows = [
            (
                position,
                post.id,
                post.url,
                post.language,
                post.title,
                post.author,
                post.votes,
                format_timestamp(post.timestamp),
                post.score,
            )
            for position, post in enumerate(posts)
        ]
        try:
            self.init_db()
            conn = self._connect()
            try:
                with conn:
                    conn.execute("DELETE FROM posts")
                    conn.executemany(
                        """
                        INSERT INTO posts (
                            position,
                            id,
                            url,
                            language,
                            title,
                            author,
                            votes,
                            timestamp,
                            score
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        rows,
                    )
                    conn.execute(
                        """
                        INSERT INTO meta (key, value) VALUES ('initialized_at', ?)
                        ON CONFLICT(key) DO NOTHING
                        """,
                        (datetime.now(timezone.utc).isoformat(),),
                    )
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to write {self._db_path}: {exc}", self._db_path) from exc
        LOGGER.debug("Wrote %s posts to %s", len(rows), self._db_path)

    def quarantine(self) -> Optional[str]:
        """Rename an unreadable database aside so a fresh one can be created."""

        if not os.path.exists(self._db_path):
            return None
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        target = f"{self._db_path}.corrupt-{stamp}"
        try:
            os.replace(self._db_path, target)
        except OSError as exc:
            raise PersistenceError(f"Failed to move aside {self._db_path}: {exc}", self._db_path) from exc
        return target
