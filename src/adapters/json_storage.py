"""JSON file storage adapter.

Implements the core PostRepository port with a single JSON document holding
the whole collection. Every save rewrites the file in full.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence, Union

from core.errors import CorruptRecordError, PersistenceError
from core.models import Post, post_from_record, post_to_record

LOGGER = logging.getLogger(__name__)


class JsonFileStorage:
    """Whole-collection JSON document that satisfies the PostRepository contract."""

    def __init__(self, path: Union[str, Path], retries: int = 2) -> None:
        self._path = Path(path)
        self._retries = max(0, int(retries))

    @property
    def path(self) -> Path:
        return self._path

    def load_all(self) -> Optional[list[Post]]:
        """Return all posts, or None if the file has not been created yet."""

        if not self._path.exists():
            return None

        try:
            content = self._path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise CorruptRecordError(f"{self._path} is not valid UTF-8: {exc}", self._path) from exc
        except OSError as exc:
            raise PersistenceError(f"Failed to read {self._path}: {exc}", self._path) from exc

        # An empty file is treated like a fresh record rather than corruption.
        if not content.strip():
            return []

        try:
            raw = json.loads(content)
        except json.JSONDecodeError as exc:
            raise CorruptRecordError(f"{self._path} is not valid JSON: {exc}", self._path) from exc

        if not isinstance(raw, list):
            raise CorruptRecordError(f"{self._path} must hold a JSON array of posts", self._path)
        return [post_from_record(record) for record in raw]

    def save_all(self, posts: Sequence[Post]) -> None:
        """Atomically replace the file with the given posts.

        The document is written to a sibling temp file and swapped in, so a
        failed write leaves the previous record untouched. Transient OSErrors
        are retried up to ``retries`` extra times.
        """

        try:
            payload = json.dumps([post_to_record(post) for post in posts], indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Failed to serialize posts for {self._path}: {exc}", self._path) from exc
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")

        attempts = self._retries + 1
        for attempt in range(1, attempts + 1):
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                tmp.write_text(payload, encoding="utf-8")
                tmp.replace(self._path)
            except OSError as exc:
                if attempt < attempts:
                    LOGGER.warning(
                        "Write to %s failed (attempt %s/%s): %s", self._path, attempt, attempts, exc
                    )
                    continue
                tmp.unlink(missing_ok=True)
                raise PersistenceError(f"Failed to write {self._path}: {exc}", self._path) from exc
            else:
                LOGGER.debug("Wrote %s posts to %s", len(posts), self._path)
                return

    def quarantine(self) -> Optional[str]:
        """Rename an unreadable file aside so a fresh record can be written."""

        if not self._path.exists():
            return None
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        target = self._path.with_name(f"{self._path.name}.corrupt-{stamp}")
        try:
            self._path.replace(target)
        except OSError as exc:
            raise PersistenceError(f"Failed to move aside {self._path}: {exc}", self._path) from exc
        return str(target)
