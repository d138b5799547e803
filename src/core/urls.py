"""Helpers for producing canonical post URLs.

The store never calls these; callers canonicalize before looking up
duplicates with ``find_by_url`` and before calling ``add``.
"""

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit

from core.errors import ValidationError


def canonicalize_url(raw_url: str) -> str:
    """Return the canonical form of a submitted URL.

    Query string and fragment are dropped, one trailing slash is removed from
    the path, and scheme and host are lowercased.
    """

    raw_url = raw_url.strip()
    if not raw_url:
        raise ValidationError("url is required")

    try:
        parts = urlsplit(raw_url)
        hostname, port = parts.hostname, parts.port
    except ValueError as exc:
        raise ValidationError(f"Invalid URL: {raw_url}") from exc

    if parts.scheme.lower() not in {"http", "https"} or not hostname:
        raise ValidationError(f"URL must be an absolute http(s) address: {raw_url}")

    path = parts.path
    if path.endswith("/") and len(path) > 1:
        path = path[:-1]

    # urlsplit already lowercases hostname
    netloc = f"{hostname}:{port}" if port else hostname

    return urlunsplit((parts.scheme.lower(), netloc, path, "", ""))
