"""Static configuration for postrank.

All user-editable settings (storage, listing defaults, logging) live in a
single JSON file for quick edits without touching Python.
"""

import json
import os

from dotenv import load_dotenv

from core.config import ListingConfig, StorageConfig

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# .env may point POSTRANK_CONFIG at a different file.
load_dotenv()

CONFIG_PATH = os.getenv("POSTRANK_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")

STORAGE_BACKENDS = ("json", "sqlite")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    path = os.path.expanduser(path)
    if not os.path.isabs(path):
        path = os.path.join(PROJECT_ROOT, path)
    return path


def _storage_config(raw: dict) -> StorageConfig:
    backend = str(raw.get("backend", "json")).lower()
    if backend not in STORAGE_BACKENDS:
        raise ValueError(f"storage.backend must be one of {', '.join(STORAGE_BACKENDS)}, got {backend!r}")
    default_path = "data/posts.json" if backend == "json" else "data/posts.db"
    return StorageConfig(
        backend=backend,
        path=_resolve_path(str(raw.get("path") or default_path)),
        write_retries=int(raw.get("write_retries", 2)),
    )


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Storage backend and location of the durable record.
STORAGE = _storage_config(_CONFIG.get("storage", {}))

# Defaults used when a listing call omits page size or ordering.
_listing = _CONFIG.get("listing", {})
LISTING = ListingConfig(
    default_limit=int(_listing.get("default_limit", 10)),
    default_sort=str(_listing.get("default_sort", "score")),
)

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
