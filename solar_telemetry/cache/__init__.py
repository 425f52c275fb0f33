"""Redis cache helpers."""
