"""
Shooting Pulse - Exceptions

Every stage raises a subclass of ShootingPulseError so callers can tell
pipeline failures apart from programming errors.
"""

from __future__ import annotations


class ShootingPulseError(Exception):
    """Base class for all pipeline errors."""


class IngestionError(ShootingPulseError):
    """The source CSV could not be fetched or parsed."""


class UnknownCategoryError(ShootingPulseError):
    """A categorical column holds values outside its frozen vocabulary."""

    def __init__(self, column: str, values: list[str]):
        self.column = column
        self.values = values
        super().__init__(f"Column '{column}' has values outside its vocabulary: {values}")


class InsufficientDataError(ShootingPulseError):
    """Not enough rows to perform the requested operation."""


class PipelineError(ShootingPulseError):
    """A pipeline stage reported failure."""

    def __init__(self, stage: str, message: str | None):
        self.stage = stage
        super().__init__(f"{stage} failed: {message}")
