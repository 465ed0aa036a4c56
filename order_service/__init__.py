"""Order service: orders validated and enriched against the user and product services."""

__version__ = "1.0.0"
