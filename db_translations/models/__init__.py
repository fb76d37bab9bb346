"""Database models for the translations store."""

from .translation import Translation

__all__ = ['Translation']
