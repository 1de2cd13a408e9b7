"""
Random code generators - pure, side-effect-free functions.

Short codes address links publicly, so they come from the ``secrets``
module rather than the system PRNG.
"""

from __future__ import annotations

import secrets
import string

CODE_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


def generate_short_code(length: int = 6) -> str:
    """Generate an alphanumeric short code over the 62-character alphabet.

    Args:
        length: Number of characters (default 6).

    Returns:
        Random string of the requested length.
    """
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
