"""Declarative vendor feed import: fetch, normalize and upsert product records."""

__version__ = "1.0.0"
