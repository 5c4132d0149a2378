"""Persist finished pixel buffers as grayscale images."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import numpy as np
import PIL.Image

from .plane import ImageBounds

DEFAULT_FORMAT = "png"


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def image_format_for(path: Path, image_format: Optional[str] = None) -> str:
    """Pick the file format: explicit value first, then the path suffix, then png."""

    if image_format:
        return image_format.lower().lstrip(".")
    suffix = path.suffix.lower().lstrip(".")
    return suffix or DEFAULT_FORMAT


def to_image(pixels: np.ndarray, bounds: ImageBounds) -> PIL.Image.Image:
    """Wrap a row-major 8-bit buffer in a single channel Pillow image."""

    if len(pixels) != bounds.size:
        raise ValueError(
            f"pixel buffer holds {len(pixels)} bytes, expected {bounds.size} "
            f"({bounds.width}x{bounds.height})"
        )
    array = np.asarray(pixels, dtype=np.uint8).reshape(bounds.height, bounds.width)
    return PIL.Image.fromarray(array)


def write_image(
    path: Union[str, Path],
    pixels: np.ndarray,
    bounds: ImageBounds,
    image_format: Optional[str] = None,
) -> Path:
    """Write ``pixels`` to ``path`` as an 8-bit grayscale image."""

    output_path = Path(path).expanduser()
    image = to_image(pixels, bounds)
    pil_format = _pil_format_name(image_format_for(output_path, image_format))
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)
    return output_path
