"""Configuration for couchstore."""

from couchstore.config.settings import Settings

__all__ = ["Settings"]
