"""
Domain name validation.
"""

from __future__ import annotations

import re


# RFC 1035 labels (underscores allowed), no leading or trailing dot
_DOMAIN_RE = re.compile(
    r"[a-zA-Z0-9_][a-zA-Z0-9_-]{0,62}(\.[a-zA-Z0-9_][a-zA-Z0-9_-]{0,62})*"
)


def valid_domain_name(name: str) -> bool:
    """
    Check whether a string is an acceptable mail domain name.

    The name must contain at least one dot, so bare hostnames such as
    "localhost" are rejected.
    """
    if not name or "." not in name:
        return False
    return _DOMAIN_RE.fullmatch(name) is not None
