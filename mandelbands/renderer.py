"""Escape-time evaluation and band rendering primitives."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import tensorflow as tf

from .plane import ImageBounds, PlaneWindow, point_grid

HORIZON = 4.0
MAX_ITERATIONS = 255


@dataclass(frozen=True)
class RenderParameters:
    """Parameters that describe a single render of the Mandelbrot set."""

    bounds: ImageBounds
    window: PlaneWindow
    max_iterations: int = MAX_ITERATIONS


def escape_time(c: complex, limit: int = MAX_ITERATIONS) -> Optional[int]:
    """Return the iteration at which the orbit of ``c`` leaves radius 2.

    The index is 0-based and checked after each update of ``z``. ``None``
    means the point did not escape within ``limit`` iterations.
    """

    cr = float(c.real)
    ci = float(c.imag)
    zr = 0.0
    zi = 0.0
    for i in range(limit):
        zr, zi = zr * zr - zi * zi + cr, 2.0 * zr * zi + ci
        if zr * zr + zi * zi > HORIZON:
            return i
    return None


def shade(escape: Optional[int], limit: int = MAX_ITERATIONS) -> int:
    """Grayscale value for an escape index: black inside, brighter for fast escapes."""

    if escape is None or escape >= limit:
        return 0
    return min(max(255 - escape, 0), 255)


@tf.function
def _escape_step(
    zr: tf.Tensor,
    zi: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    counts: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance the points that are still bounded by one iteration."""

    two = tf.constant(2.0, dtype=zr.dtype)
    zr_next = zr * zr - zi * zi + cr
    zi_next = two * zr * zi + ci
    zr = tf.where(active, zr_next, zr)
    zi = tf.where(active, zi_next, zi)
    horizon = tf.constant(HORIZON, dtype=zr.dtype)
    escaped = tf.logical_and(active, zr * zr + zi * zi > horizon)
    active = tf.logical_and(active, tf.logical_not(escaped))
    counts = counts + tf.cast(active, tf.int32)
    return zr, zi, counts, active


@tf.function(
    input_signature=[
        tf.TensorSpec(shape=[None, None], dtype=tf.float64),
        tf.TensorSpec(shape=[None, None], dtype=tf.float64),
        tf.TensorSpec(shape=[], dtype=tf.int32),
    ]
)
def _escape_run(cr: tf.Tensor, ci: tf.Tensor, limit: tf.Tensor) -> tf.Tensor:
    """Iterate the Mandelbrot recurrence with a TensorFlow while loop."""

    i = tf.constant(0, dtype=tf.int32)
    zr = tf.zeros_like(cr)
    zi = tf.zeros_like(ci)
    counts = tf.zeros(tf.shape(cr), dtype=tf.int32)
    active = tf.ones(tf.shape(cr), dtype=tf.bool)

    def cond(i, zr, zi, counts, active):
        return tf.logical_and(tf.less(i, limit), tf.reduce_any(active))

    def body(i, zr, zi, counts, active):
        zr, zi, counts, active = _escape_step(zr, zi, cr, ci, counts, active)
        return i + 1, zr, zi, counts, active

    _, _, _, counts, _ = tf.while_loop(cond, body, (i, zr, zi, counts, active))
    return counts


def escape_times(re: np.ndarray, im: np.ndarray, limit: int = MAX_ITERATIONS) -> np.ndarray:
    """Escape index of every point of a grid, or ``limit`` where it did not escape."""

    re = np.asarray(re, dtype=np.float64)
    im = np.asarray(im, dtype=np.float64)
    if re.shape != im.shape:
        raise ValueError(f"real and imaginary grids differ in shape: {re.shape} != {im.shape}")
    if re.size == 0 or limit <= 0:
        return np.full(re.shape, max(limit, 0), dtype=np.int32)

    with tf.device("/CPU:0"):
        cr = tf.convert_to_tensor(re.reshape(1, -1), dtype=tf.float64)
        ci = tf.convert_to_tensor(im.reshape(1, -1), dtype=tf.float64)
        counts = _escape_run(cr, ci, tf.constant(limit, dtype=tf.int32))
    return counts.numpy().reshape(re.shape)


def _shade_counts(counts: np.ndarray, limit: int) -> np.ndarray:
    values = np.clip(255 - counts.astype(np.int64), 0, 255)
    return np.where(counts >= limit, 0, values).astype(np.uint8)


def render(
    pixels: np.ndarray,
    bounds: ImageBounds,
    window: PlaneWindow,
    *,
    first_row: int = 0,
    rows: Optional[int] = None,
    limit: int = MAX_ITERATIONS,
) -> None:
    """Fill ``pixels`` with rows ``first_row .. first_row + rows`` of the image.

    ``bounds`` and ``window`` describe the grid the pixels are interpolated
    against. Called with the defaults, ``pixels`` covers the whole of
    ``bounds``; the scheduler passes the full image grid with a row offset.
    """

    if rows is None:
        rows = bounds.height - first_row

    if not isinstance(pixels, np.ndarray) or pixels.dtype != np.uint8 or pixels.ndim != 1:
        raise ValueError("pixel buffer must be a one-dimensional uint8 array")
    if not pixels.flags.writeable:
        raise ValueError("pixel buffer is read-only")
    if first_row < 0 or rows < 0 or first_row + rows > bounds.height:
        raise ValueError(
            f"rows {first_row}..{first_row + rows} fall outside an image of height {bounds.height}"
        )
    expected = bounds.width * rows
    if pixels.shape[0] != expected:
        raise ValueError(
            f"pixel buffer holds {pixels.shape[0]} bytes, expected {expected} "
            f"({bounds.width}x{rows})"
        )
    if rows == 0:
        return

    re, im = point_grid(bounds, window, first_row, rows)
    counts = escape_times(re, im, limit)
    pixels[:] = _shade_counts(counts, limit).reshape(-1)
