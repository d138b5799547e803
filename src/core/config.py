"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the app layer builds from settings so adapters can be wired safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StorageConfig:
    """Which durable backend to use and where it lives."""

    backend: str
    path: str
    write_retries: int


@dataclass(frozen=True)
class ListingConfig:
    """Defaults for paginated listings when the caller omits them."""

    default_limit: int
    default_sort: str
