"""Mapping between the pixel grid and the complex plane."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class ImageBounds:
    """Size of the rendered image in pixels."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"image bounds must be positive, got {self.width}x{self.height}")

    @property
    def size(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class PlaneWindow:
    """Rectangle of the complex plane given by its upper-left and lower-right corners."""

    upper_left: complex
    lower_right: complex


def pixel_to_point(bounds: ImageBounds, pixel: tuple[int, int], window: PlaneWindow) -> complex:
    """Return the point of ``window`` that pixel ``(column, row)`` samples.

    Column 0 / row 0 lands on the upper-left corner and ``(width, height)``
    on the lower-right one. Pixels outside the bounds are extrapolated.
    """

    column, row = pixel
    upper_left = window.upper_left
    lower_right = window.lower_right
    span_re = lower_right.real - upper_left.real
    span_im = upper_left.imag - lower_right.imag
    return complex(
        upper_left.real + column * span_re / bounds.width,
        upper_left.imag - row * span_im / bounds.height,
    )


def point_grid(
    bounds: ImageBounds,
    window: PlaneWindow,
    first_row: int = 0,
    rows: Optional[int] = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Vectorised :func:`pixel_to_point` over rows ``first_row .. first_row + rows``.

    Returns the real and imaginary parts as float64 arrays of shape
    ``(rows, width)``. Every element is computed with the same operations in
    the same order as the scalar mapping, so both agree bit for bit.
    """

    if rows is None:
        rows = bounds.height - first_row

    upper_left = window.upper_left
    lower_right = window.lower_right
    span_re = np.float64(lower_right.real - upper_left.real)
    span_im = np.float64(upper_left.imag - lower_right.imag)

    columns = np.arange(bounds.width, dtype=np.float64)
    row_index = np.arange(first_row, first_row + rows, dtype=np.float64)

    re = np.float64(upper_left.real) + columns * span_re / np.float64(bounds.width)
    im = np.float64(upper_left.imag) - row_index * span_im / np.float64(bounds.height)

    re_grid, im_grid = np.meshgrid(re, im)
    return re_grid, im_grid
