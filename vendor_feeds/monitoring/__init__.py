"""Structured logging."""

from .logger import StructuredLogger

__all__ = ["StructuredLogger"]
