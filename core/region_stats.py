# core/region_stats.py
"""
Summed-area tables over a pixel grid.

Two tables are built once per image, one over the raw samples and one over
the element-wise squared samples. Any inclusive rectangle can then be asked
for its per-channel sum, mean and variance score in O(1).

Coordinates are (row, col) pairs and both corners are inclusive.
"""
from typing import Sequence, Tuple, Union

import numpy as np

from .errors import InvalidDimensions

Point = Tuple[int, int]
GridLike = Union[np.ndarray, Sequence[Sequence[Sequence[int]]]]


def _as_pixel_array(grid: GridLike) -> np.ndarray:
    """Validate `grid` and return it as an HxWxC int64 array."""
    if isinstance(grid, np.ndarray):
        arr = grid
    else:
        if len(grid) == 0:
            raise InvalidDimensions("pixel grid has no rows")
        width = len(grid[0])
        if width == 0:
            raise InvalidDimensions("pixel grid has no columns")
        for i, row in enumerate(grid):
            if len(row) != width:
                raise InvalidDimensions(f"row {i} has {len(row)} columns, expected {width}")
        try:
            arr = np.asarray(grid)
        except ValueError as e:
            raise InvalidDimensions(f"pixels have unequal channel counts: {e}") from e
        if arr.dtype == object:
            raise InvalidDimensions("pixels have unequal channel counts")

    if not np.issubdtype(arr.dtype, np.integer):
        raise InvalidDimensions(f"pixel samples must be integers, got dtype {arr.dtype}")

    if arr.ndim == 2:
        arr = arr[..., np.newaxis]
    if arr.ndim != 3:
        raise InvalidDimensions(f"pixel grid must be HxW or HxWxC, got shape {arr.shape}")
    h, w, c = arr.shape
    if h == 0:
        raise InvalidDimensions("pixel grid has no rows")
    if w == 0:
        raise InvalidDimensions("pixel grid has no columns")
    if c == 0:
        raise InvalidDimensions("pixels have no channels")
    return arr.astype(np.int64, copy=False)


def summed_area_table(samples: np.ndarray) -> np.ndarray:
    """(H+1)x(W+1)xC table; cell (i, j) sums every sample with row < i and col < j."""
    h, w, c = samples.shape
    table = np.zeros((h + 1, w + 1, c), dtype=np.int64)
    table[1:, 1:] = samples.cumsum(axis=0, dtype=np.int64).cumsum(axis=1, dtype=np.int64)
    table.flags.writeable = False
    return table


def _query(table: np.ndarray, top_left: Point, bottom_right: Point) -> np.ndarray:
    r1, c1 = top_left
    r2, c2 = bottom_right
    return table[r2 + 1, c2 + 1] - table[r2 + 1, c1] - table[r1, c2 + 1] + table[r1, c1]


def area(top_left: Point, bottom_right: Point) -> int:
    return (bottom_right[0] - top_left[0] + 1) * (bottom_right[1] - top_left[1] + 1)


class RegionStats:
    """O(1) rectangle sum / mean / variance queries over one image."""

    def __init__(self, grid: GridLike):
        samples = _as_pixel_array(grid)
        self._height, self._width, self._channels = samples.shape
        self._sums = summed_area_table(samples)
        self._square_sums = summed_area_table(samples * samples)

    @classmethod
    def build(cls, grid: GridLike) -> "RegionStats":
        return cls(grid)

    @property
    def height(self) -> int:
        return self._height

    @property
    def width(self) -> int:
        return self._width

    @property
    def channels(self) -> int:
        return self._channels

    @property
    def full_extent(self) -> Tuple[Point, Point]:
        return (0, 0), (self._height - 1, self._width - 1)

    def sum(self, top_left: Point, bottom_right: Point) -> np.ndarray:
        return _query(self._sums, top_left, bottom_right)

    def square_sum(self, top_left: Point, bottom_right: Point) -> np.ndarray:
        return _query(self._square_sums, top_left, bottom_right)

    def mean(self, top_left: Point, bottom_right: Point) -> np.ndarray:
        """Per-channel floor mean."""
        return self.sum(top_left, bottom_right) // area(top_left, bottom_right)

    def variance_score(self, top_left: Point, bottom_right: Point) -> int:
        """
        Size-weighted total squared deviation used as the split priority.

        Per channel E[X^2] - E[X]^2 with floor division on both terms, clamped
        at zero when rounding makes it negative, summed over channels and
        multiplied by the area. Not a normalized variance.
        """
        n = area(top_left, bottom_right)
        mean = self.sum(top_left, bottom_right) // n
        square_mean = self.square_sum(top_left, bottom_right) // n
        per_channel = np.maximum(square_mean - mean * mean, 0)
        return int(per_channel.sum()) * n
