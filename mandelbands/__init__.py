"""Public API for banded Mandelbrot rendering."""

from .plane import ImageBounds, PlaneWindow, pixel_to_point, point_grid
from .renderer import (
    MAX_ITERATIONS,
    RenderParameters,
    escape_time,
    escape_times,
    render,
    shade,
)
from .scheduler import (
    Band,
    RenderError,
    RenderResult,
    host_concurrency,
    plan_bands,
    render_bands,
    render_frame,
)
from .parsing import parse_bounds, parse_complex, parse_pair
from .image import write_image

__all__ = [
    "Band",
    "ImageBounds",
    "MAX_ITERATIONS",
    "PlaneWindow",
    "RenderError",
    "RenderParameters",
    "RenderResult",
    "escape_time",
    "escape_times",
    "host_concurrency",
    "parse_bounds",
    "parse_complex",
    "parse_pair",
    "pixel_to_point",
    "plan_bands",
    "point_grid",
    "render",
    "render_bands",
    "render_frame",
    "shade",
    "write_image",
]
