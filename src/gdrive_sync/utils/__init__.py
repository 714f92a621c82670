"""Utility functions and helpers."""

from .logging import TimedOperation, setup_logging

__all__ = ["setup_logging", "TimedOperation"]
