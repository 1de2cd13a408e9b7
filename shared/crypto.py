"""
Hashing helpers.

Uses SHA-256 for visitor fingerprints. A fingerprint only deduplicates
visitors within one day; it is not a security boundary.
"""

from __future__ import annotations

import hashlib

FINGERPRINT_LENGTH = 16


def visitor_fingerprint(ip_address: str, user_agent: str) -> str:
    """Return a short hex fingerprint of *ip_address* + *user_agent*.

    Returns:
        The first 16 hex characters of ``sha256("{ip}:{ua}")``.
    """
    raw = f"{ip_address}:{user_agent}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
