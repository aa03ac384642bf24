"""CLI command groups for config-sync."""

__all__ = [
    "config",
]
