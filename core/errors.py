# core/errors.py
from typing import Optional


class RefinerError(Exception):
    """Base class for every error raised by the refiner."""


class InvalidDimensions(RefinerError, ValueError):
    """Pixel grid is empty or jagged."""


class NoMoreSplittableRegions(RefinerError):
    """Every leaf is too small to split; the image is fully subdivided."""

    def __init__(self, steps_taken: int = 0, message: Optional[str] = None):
        self.steps_taken = steps_taken
        super().__init__(message or f"no splittable regions left after {steps_taken} steps")


class ImageLoadError(RefinerError):
    pass


class InvalidColor(RefinerError, ValueError):
    pass


class InvalidOutputPath(RefinerError, ValueError):
    pass
