"""Coordinate resolver: semantic layout to absolute pixel coordinates.

Path commands are authored relative to a local origin. A layout places that
origin at an anchor point of a region, shifted by an offset expressed as a
fraction of the region size, then optionally scaled to a requested size and
repeated on a grid or circle.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from layoutsvg.engine.regions import ANCHOR_OFFSETS, PixelBox, RegionCatalog
from layoutsvg.errors import UnknownAnchor
from layoutsvg.models.document import (
    Canvas,
    Document,
    Layer,
    LayoutSpec,
    PathCommand,
    RepetitionSpec,
    ShapePath,
    SizeSpec,
)
from layoutsvg.utils.geometry import (
    bbox,
    bbox_xywh,
    clamp,
    command_points,
    rebuild_commands,
    scale_about,
    translate,
)

logger = logging.getLogger(__name__)

# Share of the region used when no size is given.
DEFAULT_SIZE_FRACTION = 0.1
# Grid spacing as a fraction of the region when the layout omits it.
DEFAULT_GRID_SPACING = 0.1
DEFAULT_RADIAL_RADIUS = 50.0


@dataclass(frozen=True)
class EffectiveLayout:
    """Layout after path > layer > document precedence has been applied."""

    region: str = "center"
    anchor: str = "center"
    offset: tuple[float, float] = (0.0, 0.0)
    size: SizeSpec | None = None
    repeat: RepetitionSpec | None = None

    @property
    def is_identity(self) -> bool:
        return (
            self.region == "center"
            and self.anchor == "center"
            and self.offset == (0.0, 0.0)
            and self.size is None
            and self.repeat is None
        )


def merge_layouts(
    document: Document | None,
    layer: Layer | None,
    path: ShapePath | None,
) -> EffectiveLayout:
    """Pick each field from the most specific level that sets it."""
    specs: list[LayoutSpec] = []
    if path is not None and path.layout is not None:
        specs.append(path.layout)
    if layer is not None and layer.layout is not None:
        specs.append(layer.layout)

    def first(field: str):
        for spec in specs:
            value = getattr(spec, field)
            if value is not None:
                return value
        return None

    doc_layout = document.layout if document is not None else None
    anchor = first("anchor") or (doc_layout.global_anchor if doc_layout else None) or "center"
    offset = first("offset") or (doc_layout.global_offset if doc_layout else None) or (0.0, 0.0)
    return EffectiveLayout(
        region=first("region") or "center",
        anchor=anchor,
        offset=(float(offset[0]), float(offset[1])),
        size=first("size"),
        repeat=first("repeat"),
    )


def needs_resolution(document: Document | None, layer: Layer, path: ShapePath) -> bool:
    """True when the path holds local coordinates that a layout will move."""
    if path.layout is None and layer.layout is None:
        return False
    return not merge_layouts(document, layer, path).is_identity


class CoordinateResolver:
    """Resolve layouts against one canvas and one region catalog."""

    def __init__(self, canvas: Canvas, catalog: RegionCatalog | None = None) -> None:
        self.canvas = canvas
        self.catalog = catalog or RegionCatalog()

    def region_box(self, region: str) -> PixelBox:
        return self.catalog.pixel_bounds(self.canvas, region)

    def resolve_anchor_point(self, region: str, anchor: str) -> tuple[float, float]:
        rb = self.region_box(region)
        try:
            fx, fy = ANCHOR_OFFSETS[anchor]
        except KeyError:
            raise UnknownAnchor(anchor) from None
        return (rb.x + rb.width * fx, rb.y + rb.height * fy)

    def resolve_position(self, layout: EffectiveLayout) -> tuple[float, float]:
        """Anchor point shifted by the fractional offset."""
        rb = self.region_box(layout.region)
        ax, ay = self.resolve_anchor_point(layout.region, layout.anchor)
        ox, oy = layout.offset
        return (ax + ox * rb.width, ay + oy * rb.height)

    def calculate_size(self, size: SizeSpec | None, region: str) -> tuple[float, float]:
        rb = self.region_box(region)
        if size is None:
            return (rb.width * DEFAULT_SIZE_FRACTION, rb.height * DEFAULT_SIZE_FRACTION)
        if size.absolute is not None:
            return (size.absolute.width, size.absolute.height)
        if size.relative is not None:
            return (rb.width * size.relative, rb.height * size.relative)
        constrained = size.aspect_constrained
        return (constrained.width, constrained.width / constrained.aspect)

    def repetition_positions(
        self, layout: EffectiveLayout, base: tuple[float, float]
    ) -> list[tuple[float, float]]:
        """Origins of every instance; a single instance sits on ``base``."""
        repeat = layout.repeat
        if repeat is None:
            return [base]
        bx, by = base
        if repeat.type == "grid":
            if isinstance(repeat.count, tuple):
                cols, rows = repeat.count
            else:
                cols, rows = repeat.count, 1
            rb = self.region_box(layout.region)
            spacing = repeat.spacing if repeat.spacing is not None else DEFAULT_GRID_SPACING
            step_x = rb.width * spacing
            step_y = rb.height * spacing
            # Grid is centered on the base position.
            start_x = bx - (cols - 1) * step_x / 2
            start_y = by - (rows - 1) * step_y / 2
            return [
                (start_x + col * step_x, start_y + row * step_y)
                for row in range(rows)
                for col in range(cols)
            ]
        count = repeat.count[0] if isinstance(repeat.count, tuple) else repeat.count
        radius = repeat.radius if repeat.radius is not None else DEFAULT_RADIAL_RADIUS
        return [
            (
                bx + radius * math.cos(i / count * 2 * math.pi),
                by + radius * math.sin(i / count * 2 * math.pi),
            )
            for i in range(count)
        ]

    def transform_commands(
        self, commands: list[PathCommand], layout: EffectiveLayout
    ) -> list[PathCommand]:
        """Move commands from local space into canvas space.

        The identity layout returns ``commands`` itself.
        """
        if layout.is_identity:
            return commands
        if not commands:
            return []

        points = command_points(commands)
        if layout.size is not None and len(points):
            points = self._fit_to_size(points, layout)

        base = self.resolve_position(layout)
        positions = self.repetition_positions(layout, base)

        out: list[PathCommand] = []
        for px, py in positions:
            moved = clamp(translate(points, px, py), self.canvas.width, self.canvas.height)
            instance = rebuild_commands(commands, moved)
            if out and instance[0].cmd != "M":
                start = moved[0] if len(moved) else (px, py)
                out.append(PathCommand(cmd="M", coords=[float(start[0]), float(start[1])]))
            out.extend(instance)
        return out

    def _fit_to_size(self, points, layout: EffectiveLayout):
        target_w, target_h = self.calculate_size(layout.size, layout.region)
        _, _, w, h = bbox_xywh(points)
        if w <= 0 and h <= 0:
            return points
        factors = [t / s for t, s in ((target_w, w), (target_h, h)) if s > 0]
        return scale_about(points, min(factors), 0.0, 0.0)

    def transform_path(
        self, path: ShapePath, layer: Layer | None = None, document: Document | None = None
    ) -> ShapePath:
        layout = merge_layouts(document, layer, path)
        commands = self.transform_commands(path.commands, layout)
        if commands is path.commands:
            return path
        return path.model_copy(update={"commands": commands})


def bounding_box(commands: list[PathCommand]) -> tuple[float, float, float, float]:
    """(x, y, width, height) over every non-Z coordinate."""
    return bbox_xywh(command_points(commands))


def scale_to_fit(
    commands: list[PathCommand], width: float, height: float, keep_aspect: bool = True
) -> list[PathCommand]:
    """Scale and move commands so their bounds fill a width x height box at the origin."""
    points = command_points(commands)
    if not len(points):
        return list(commands)
    xmin, ymin, xmax, ymax = bbox(points)
    bw, bh = xmax - xmin, ymax - ymin
    sx = width / bw if bw > 0 else 1.0
    sy = height / bh if bh > 0 else 1.0
    if keep_aspect:
        sx = sy = min(sx, sy)
    scaled = (points - np.array([xmin, ymin])) * np.array([sx, sy])
    return rebuild_commands(commands, scaled)
