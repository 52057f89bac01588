"""Region catalog: named normalized boxes on the canvas.

Ten reserved regions form a thirds grid plus ``full_canvas``. Documents may
register further custom regions; those live on a per-document catalog so the
reserved tables stay read-only and shared.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType

from shapely.geometry import Point, box

from layoutsvg.errors import InvalidCustomRegion, UnknownRegion
from layoutsvg.models.document import Canvas, RegionBox

logger = logging.getLogger(__name__)


def _box(x: float, y: float, w: float, h: float) -> RegionBox:
    return RegionBox(x=x, y=y, width=w, height=h)


# Thirds grid uses 0.33 / 0.34 / 0.33 so the middle band closes the gap.
RESERVED_REGIONS = MappingProxyType({
    "top_left": _box(0.0, 0.0, 0.33, 0.33),
    "top_center": _box(0.33, 0.0, 0.34, 0.33),
    "top_right": _box(0.67, 0.0, 0.33, 0.33),
    "middle_left": _box(0.0, 0.33, 0.33, 0.34),
    "center": _box(0.33, 0.33, 0.34, 0.34),
    "middle_right": _box(0.67, 0.33, 0.33, 0.34),
    "bottom_left": _box(0.0, 0.67, 0.33, 0.33),
    "bottom_center": _box(0.33, 0.67, 0.34, 0.33),
    "bottom_right": _box(0.67, 0.67, 0.33, 0.33),
    "full_canvas": _box(0.0, 0.0, 1.0, 1.0),
})

ANCHOR_OFFSETS = MappingProxyType({
    "center": (0.5, 0.5),
    "top_left": (0.0, 0.0),
    "top_right": (1.0, 0.0),
    "bottom_left": (0.0, 1.0),
    "bottom_right": (1.0, 1.0),
    "top_center": (0.5, 0.0),
    "bottom_center": (0.5, 1.0),
    "middle_left": (0.0, 0.5),
    "middle_right": (1.0, 0.5),
})


@dataclass(frozen=True)
class PixelBox:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.right and self.y <= py <= self.bottom


class RegionCatalog:
    """Reserved regions plus the custom regions of one document."""

    def __init__(self) -> None:
        self._custom: dict[str, RegionBox] = {}

    def register_custom(self, name: str, bounds: RegionBox) -> None:
        if name in RESERVED_REGIONS:
            raise InvalidCustomRegion(name, "name is reserved")
        if not (0 <= bounds.x <= 1 and 0 <= bounds.y <= 1):
            raise InvalidCustomRegion(name, "origin must lie within [0, 1]")
        if not (0 < bounds.width <= 1 and 0 < bounds.height <= 1):
            raise InvalidCustomRegion(name, "width and height must lie within (0, 1]")
        # Small epsilon so 0.67 + 0.33 is accepted.
        if bounds.x + bounds.width > 1 + 1e-9 or bounds.y + bounds.height > 1 + 1e-9:
            raise InvalidCustomRegion(name, "box extends past the canvas")
        if name in self._custom:
            logger.debug("Custom region %s re-registered", name)
        self._custom[name] = bounds

    def is_valid(self, name: str) -> bool:
        return name in RESERVED_REGIONS or name in self._custom

    def normalized_bounds(self, name: str) -> RegionBox:
        if name in self._custom:
            return self._custom[name]
        if name in RESERVED_REGIONS:
            return RESERVED_REGIONS[name]
        raise UnknownRegion(name)

    def pixel_bounds(self, canvas: Canvas, name: str) -> PixelBox:
        b = self.normalized_bounds(name)
        return PixelBox(
            x=b.x * canvas.width,
            y=b.y * canvas.height,
            width=b.width * canvas.width,
            height=b.height * canvas.height,
        )

    def region_center(self, canvas: Canvas, name: str) -> tuple[float, float]:
        return self.pixel_bounds(canvas, name).center

    def all_regions(self) -> dict[str, RegionBox]:
        regions = dict(RESERVED_REGIONS)
        regions.update(self._custom)
        return regions

    @property
    def custom_names(self) -> list[str]:
        return list(self._custom)

    def find_region_at_point(self, canvas: Canvas, px: float, py: float) -> str | None:
        """Most specific region containing the point: custom first, then the grid."""
        point = Point(px, py)
        names = list(self._custom) + [n for n in RESERVED_REGIONS if n != "full_canvas"]
        for name in names:
            pb = self.pixel_bounds(canvas, name)
            if box(pb.x, pb.y, pb.right, pb.bottom).covers(point):
                return name
        if 0 <= px <= canvas.width and 0 <= py <= canvas.height:
            return "full_canvas"
        return None

    def region_overlap(self, first: str, second: str) -> float:
        """Intersection over union of two regions in normalized space."""
        a = self.normalized_bounds(first)
        b = self.normalized_bounds(second)
        ga = box(a.x, a.y, a.x + a.width, a.y + a.height)
        gb = box(b.x, b.y, b.x + b.width, b.y + b.height)
        union = ga.union(gb).area
        if union <= 0:
            return 0.0
        return float(ga.intersection(gb).area / union)
