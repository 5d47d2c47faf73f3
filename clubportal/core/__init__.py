"""Core module for the clubportal application."""

from .types import read_field, read_timestamp, utcnow

__all__ = ["read_field", "read_timestamp", "utcnow"]
