"""Error taxonomy shared by the core and its adapters."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from core.models import Post


class PostRankError(Exception):
    """Base class for every error raised by postrank."""


class ValidationError(PostRankError, ValueError):
    """A query or payload parameter was rejected before touching the collection."""


class DuplicatePostError(PostRankError):
    """A post with the same canonical URL is already stored."""

    def __init__(self, existing: "Post") -> None:
        super().__init__(f"Post already submitted: {existing.url} (id={existing.id})")
        self.existing = existing


class PersistenceError(PostRankError):
    """Reading or writing the durable record failed."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None) -> None:
        super().__init__(message)
        self.path = str(path) if path is not None else None


class CorruptRecordError(PersistenceError):
    """The durable record exists but cannot be decoded."""
