"""
Authentication package for shared-secret header validation.

CHANGELOG:
- 2025-02-14: Initial creation

TODO:
- None
"""

from solar_telemetry.auth.api_key import AUTH_HEADER, verify_auth_key

__all__ = ["AUTH_HEADER", "verify_auth_key"]
