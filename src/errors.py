"""Exception taxonomy for the visual regression engine."""

from __future__ import annotations

from pathlib import Path


class VisualRegressionError(Exception):
    """Base class for all engine errors."""


class ImageDecodeError(VisualRegressionError):
    """An input image is absent, unreadable or corrupt."""

    def __init__(self, path: str | Path, reason: str = ""):
        self.path = str(path)
        self.reason = reason
        msg = f"Could not decode image: {self.path}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class InvalidImageDimensions(VisualRegressionError):
    """An image has zero area, or two images that must match in size do not."""


class MissingReferenceImage(VisualRegressionError):
    """The prototype (baseline) file for a screen does not exist."""

    def __init__(self, path: str | Path):
        self.path = str(path)
        super().__init__(f"Prototype image not found: {self.path}")


class ReportWriteError(VisualRegressionError):
    """A report or diff artifact could not be written to disk."""

    def __init__(self, path: str | Path, reason: str = ""):
        self.path = str(path)
        self.reason = reason
        msg = f"Failed to write {self.path}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ReportParseError(VisualRegressionError):
    """A run report on disk is unreadable or does not match the report schema."""

    def __init__(self, path: str | Path, reason: str = ""):
        self.path = str(path)
        self.reason = reason
        msg = f"Malformed report: {self.path}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class AggregationInputMissing(VisualRegressionError):
    """A device/OS configuration produced no run report."""

    def __init__(self, configuration: str, path: str | Path):
        self.configuration = configuration
        self.path = str(path)
        super().__init__(f"No results found for {configuration} ({self.path})")
