"""
URL and input validators - framework-agnostic, pure functions.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence
from urllib.parse import urlsplit

import validators as _validators


def validate_url(url: str, blocked_self_domains: Sequence[str] = ()) -> bool:
    """Return True if *url* is a valid, non-self-referential HTTP/S URL.

    Args:
        url: The URL string to validate.
        blocked_self_domains: Domain strings that must not appear in the URL
            host, to prevent redirect loops through this service.
    """
    if not url or not _validators.url(url, strict_query=False):
        return False
    host = extract_hostname(url)
    if host is None:
        return False
    return not any(
        host == domain or host.endswith("." + domain)
        for domain in blocked_self_domains
    )


def extract_hostname(url: str) -> Optional[str]:
    """Return the lowercased host of an http(s) URL, or None if it has none."""
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None
    if parts.scheme.lower() not in ("http", "https"):
        return None
    return parts.hostname or None


def strip_www(hostname: str) -> str:
    """``www.example.com`` → ``example.com``; any other host is unchanged."""
    return hostname[4:] if hostname.startswith("www.") else hostname


def validate_alias(alias: str) -> bool:
    """Return True if *alias* is non-empty and only ``[A-Za-z0-9_-]``."""
    return bool(re.search(r"^[a-zA-Z0-9_-]{1,64}$", alias))
