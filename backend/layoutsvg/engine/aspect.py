"""Canonical canvas sizes per aspect-ratio tag."""

from __future__ import annotations

from types import MappingProxyType

from layoutsvg.models.document import Canvas

ASPECT_SIZES = MappingProxyType({
    "1:1": (512, 512),
    "4:3": (512, 384),
    "16:9": (512, 288),
    "3:2": (512, 341),
    "2:3": (341, 512),
    "9:16": (288, 512),
})

ASPECT_VALUES = MappingProxyType({
    "1:1": 1.0,
    "4:3": 4 / 3,
    "16:9": 16 / 9,
    "3:2": 3 / 2,
    "2:3": 2 / 3,
    "9:16": 9 / 16,
})


def is_valid_ratio(tag: str) -> bool:
    return tag in ASPECT_SIZES


def canvas_size(tag: str) -> tuple[int, int]:
    if tag not in ASPECT_SIZES:
        raise ValueError(f"Unknown aspect ratio: {tag!r}")
    return ASPECT_SIZES[tag]


def default_canvas(tag: str) -> Canvas:
    width, height = canvas_size(tag)
    return Canvas(width=width, height=height, aspect_ratio=tag)


def view_box_for(tag: str) -> str:
    width, height = canvas_size(tag)
    return f"0 0 {width} {height}"


def closest_ratio(width: float, height: float) -> str:
    """Tag whose ratio is nearest to width/height (``1:1`` for degenerate input)."""
    if width <= 0 or height <= 0:
        return "1:1"
    actual = width / height
    return min(ASPECT_VALUES, key=lambda tag: abs(ASPECT_VALUES[tag] - actual))
