"""URL canonicalization, path helpers, and cache key hashing."""

from __future__ import annotations

import hashlib
import json
from urllib.parse import parse_qs, urlsplit, urlunsplit

from ats_search_core.constants import CACHE_KEY_PREFIX, REDIRECT_WRAPPER_PATH
from ats_search_core.models.request import SearchRequest


def canonicalize_url(url: str) -> str:
    """Strip query string and fragment.

    Strings that do not parse as absolute URLs are returned unchanged so
    they are still deduplicated by their literal form.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def path_segments(url: str) -> list[str]:
    """Return the non-empty path segments of a URL."""
    return [segment for segment in urlsplit(url).path.split("/") if segment]


def last_path_segment(url: str) -> str | None:
    """Return the final non-empty path segment, or None for an empty path."""
    try:
        segments = path_segments(url)
    except ValueError:
        return None
    return segments[-1] if segments else None


def is_relative(url: str) -> bool:
    """Check whether a URL lacks a scheme or host."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return True
    return not parts.scheme or not parts.netloc


def unwrap_redirect(href: str) -> str | None:
    """Unwrap search-engine redirect links (``/url?q=...``) to their target.

    Returns the href untouched when it is not a redirect wrapper, and None
    when it is a wrapper without a ``q`` parameter or cannot be parsed.
    """
    try:
        parts = urlsplit(href)
    except ValueError:
        return None
    if parts.path != REDIRECT_WRAPPER_PATH:
        return href
    targets = parse_qs(parts.query).get("q")
    return targets[0] if targets else None


def query_cache_key(request: SearchRequest) -> str:
    """Derive a stable cache key from the cache-relevant request parameters.

    Parameters are hashed as an ordered list of [name, value] pairs so the
    key does not depend on dict ordering.
    """
    payload = json.dumps(request.cache_params(), separators=(",", ":"), ensure_ascii=False)
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return f"{CACHE_KEY_PREFIX}:{digest}"
