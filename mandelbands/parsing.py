"""Parsing of the textual pairs accepted on the command line."""

from __future__ import annotations

from typing import Callable, Optional, TypeVar

from .plane import ImageBounds

T = TypeVar("T")


def _convert(text: str, kind: Callable[[str], T]) -> Optional[T]:
    # int() and float() tolerate padding and digit separators, the CLI does not.
    if not text or text != text.strip() or "_" in text:
        return None
    try:
        return kind(text)
    except ValueError:
        return None


def parse_pair(text: str, separator: str, kind: Callable[[str], T]) -> Optional[tuple[T, T]]:
    """Split ``text`` at the first ``separator`` and convert both halves with ``kind``.

    >>> parse_pair("10,20", ",", int)
    (10, 20)
    >>> parse_pair("0.5x", "x", float) is None
    True
    """

    index = text.find(separator)
    if index < 0:
        return None
    left = _convert(text[:index], kind)
    right = _convert(text[index + 1:], kind)
    if left is None or right is None:
        return None
    return left, right


def parse_complex(text: str) -> Optional[complex]:
    """Parse ``"re,im"`` into a complex number."""

    pair = parse_pair(text, ",", float)
    if pair is None:
        return None
    return complex(*pair)


def parse_bounds(text: str) -> Optional[ImageBounds]:
    """Parse ``"WIDTHxHEIGHT"``; both sides must be positive integers."""

    pair = parse_pair(text, "x", int)
    if pair is None or pair[0] <= 0 or pair[1] <= 0:
        return None
    return ImageBounds(*pair)
