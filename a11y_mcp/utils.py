"""Miscellaneous utility helpers."""
from datetime import datetime, timezone
from urllib.parse import urlsplit

_LOCAL_SCHEMES = {"file", "about", "data"}


def is_valid_url(url: str) -> bool:
    """Return True for an absolute URL the browser can navigate to.

    Network schemes need a host (``https://example.com``); ``file:``,
    ``about:`` and ``data:`` URLs are accepted as-is.
    """
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return False
    if not parts.scheme:
        return False
    if parts.scheme.lower() in _LOCAL_SCHEMES:
        return True
    return bool(parts.netloc)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-05-01T12:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
