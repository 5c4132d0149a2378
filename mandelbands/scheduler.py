"""Split a render into horizontal bands and render them in parallel."""

from __future__ import annotations

import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .plane import ImageBounds, PlaneWindow, pixel_to_point
from .renderer import MAX_ITERATIONS, RenderParameters, render


class RenderError(RuntimeError):
    """Raised when a band task does not complete; the buffer is unusable."""


@dataclass(frozen=True)
class Band:
    """A run of consecutive image rows owned by one rendering task."""

    index: int
    top: int
    rows: int
    window: PlaneWindow

    def byte_range(self, width: int) -> tuple[int, int]:
        return self.top * width, (self.top + self.rows) * width


@dataclass(frozen=True)
class RenderResult:
    """Finished grayscale buffer plus how it was produced."""

    pixels: np.ndarray
    bounds: ImageBounds
    bands: tuple[Band, ...]
    elapsed: float


def host_concurrency() -> int:
    """Number of logical CPUs on this host, never less than one."""

    return max(os.cpu_count() or 1, 1)


def plan_bands(bounds: ImageBounds, window: PlaneWindow, threads: int) -> tuple[Band, ...]:
    """Partition the image into at most ``threads`` bands.

    Every band has ``height // threads + 1`` rows except the last one, which
    takes whatever remains. Each band's window is read off the full image
    grid at its top and bottom edges.
    """

    if threads < 1:
        raise ValueError(f"threads must be at least 1, got {threads}")

    rows_per_band = bounds.height // threads + 1
    bands = []
    for index, top in enumerate(range(0, bounds.height, rows_per_band)):
        rows = min(rows_per_band, bounds.height - top)
        band_window = PlaneWindow(
            upper_left=pixel_to_point(bounds, (0, top), window),
            lower_right=pixel_to_point(bounds, (bounds.width, top + rows), window),
        )
        bands.append(Band(index=index, top=top, rows=rows, window=band_window))
    return tuple(bands)


def _check_partition(bands: tuple[Band, ...], bounds: ImageBounds) -> None:
    next_row = 0
    for band in bands:
        if band.top != next_row or band.rows <= 0:
            raise ValueError(f"band {band.index} starts at row {band.top}, expected {next_row}")
        next_row = band.top + band.rows
    if next_row != bounds.height:
        raise ValueError(f"bands cover {next_row} rows of {bounds.height}")


def render_bands(
    pixels: np.ndarray,
    bounds: ImageBounds,
    window: PlaneWindow,
    *,
    threads: Optional[int] = None,
    limit: int = MAX_ITERATIONS,
) -> tuple[Band, ...]:
    """Render the whole image into ``pixels`` with one task per band.

    Each task gets its own slice view of ``pixels``; the slices never
    overlap, so nothing is locked. Returns once every task has finished.
    """

    if not isinstance(pixels, np.ndarray) or pixels.dtype != np.uint8 or pixels.ndim != 1:
        raise ValueError("pixel buffer must be a one-dimensional uint8 array")
    if len(pixels) != bounds.size:
        raise ValueError(
            f"pixel buffer holds {len(pixels)} bytes, expected {bounds.size} "
            f"({bounds.width}x{bounds.height})"
        )
    if threads is None:
        threads = host_concurrency()

    bands = plan_bands(bounds, window, threads)
    _check_partition(bands, bounds)

    with ThreadPoolExecutor(max_workers=len(bands), thread_name_prefix="band") as executor:
        futures = []
        for band in bands:
            start, stop = band.byte_range(bounds.width)
            futures.append(
                executor.submit(
                    render,
                    pixels[start:stop],
                    bounds,
                    window,
                    first_row=band.top,
                    rows=band.rows,
                    limit=limit,
                )
            )

    for band, future in zip(bands, futures):
        error = future.exception()
        if error is not None:
            raise RenderError(
                f"band {band.index} (rows {band.top}..{band.top + band.rows}) failed: {error}"
            ) from error
    return bands


def render_frame(params: RenderParameters, *, threads: Optional[int] = None) -> RenderResult:
    """Render a full frame given the supplied parameters."""

    pixels = np.zeros(params.bounds.size, dtype=np.uint8)
    start = time.perf_counter()
    bands = render_bands(
        pixels,
        params.bounds,
        params.window,
        threads=threads,
        limit=params.max_iterations,
    )
    elapsed = time.perf_counter() - start
    pixels.flags.writeable = False
    return RenderResult(pixels=pixels, bounds=params.bounds, bands=bands, elapsed=elapsed)
