"""Ports (interfaces) used by the core store.

Ports define the minimal contracts for persistence adapters so that the core
can be reused with different backends.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from core.models import Post


class PostRepository(Protocol):
    """Durable mirror of the full post collection."""

    def load_all(self) -> Optional[list[Post]]:
        """Return every stored post, or None when no record exists yet.

        Raises CorruptRecordError for an unreadable record and
        PersistenceError for any other I/O failure.
        """
        ...

    def save_all(self, posts: Sequence[Post]) -> None:
        """Replace the durable record with ``posts``; raise PersistenceError on failure."""
        ...

    def quarantine(self) -> Optional[str]:
        """Move an unreadable record aside and return where it went."""
        ...
