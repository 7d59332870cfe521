"""Short random aliases for layer directories."""
from __future__ import annotations

import secrets

__all__ = ["LINK_ID_CHARSET", "LINK_ID_LENGTH", "generate_link_id"]

# RFC 4648 base32 alphabet, as used by containers-storage for overlay link names
LINK_ID_CHARSET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
LINK_ID_LENGTH = 26


def generate_link_id(length: int = LINK_ID_LENGTH) -> str:
    """
    Generate a link id of ``length`` characters from LINK_ID_CHARSET.
    
    Every call is an independent draw; ids are not checked for collisions.
    """
    return "".join(secrets.choice(LINK_ID_CHARSET) for _ in range(length))
