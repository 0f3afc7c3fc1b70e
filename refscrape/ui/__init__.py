"""User interaction helpers."""

from .progress import ProgressReporter, RateColumn

__all__ = ["ProgressReporter", "RateColumn"]
