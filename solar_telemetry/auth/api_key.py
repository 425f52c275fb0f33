"""
Shared-secret header authentication.

The telemetry gateway and the admin page authenticate with a pre-shared
key sent in the ``auth-key`` header. The comparison is exact (and
constant-time); there are no sessions or tokens.

CHANGELOG:
- 2025-02-21: Reuse for the admin key
- 2025-02-14: Initial creation

TODO:
- None
"""

import secrets

AUTH_HEADER = "auth-key"


def verify_auth_key(presented: str | None, expected: str) -> bool:
    """Return True if *presented* equals the configured *expected* key.

    Args:
        presented: Header value from the request, or None when absent.
        expected: Configured secret. Never empty (enforced by Settings).

    Returns:
        bool: Whether the request is authorized.
    """
    if not presented:
        return False
    return secrets.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))
