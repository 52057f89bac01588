"""Document interpreter: design document to SVG markup and back-checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from html import escape

from layoutsvg.engine.aspect import default_canvas
from layoutsvg.engine.coordinates import CoordinateResolver, merge_layouts, needs_resolution
from layoutsvg.engine.regions import RegionCatalog
from layoutsvg.errors import InvalidPathCommand
from layoutsvg.models.document import Document, Layer, LayoutSpec, ShapePath
from layoutsvg.svg.parser import check_path_data, iter_path_tags
from layoutsvg.svg.serializer import (
    SVG_NS,
    attr_string,
    format_view_box,
    open_svg,
    serialize_path_data,
)
from layoutsvg.utils.geometry import bbox, command_points

logger = logging.getLogger(__name__)


@dataclass
class MarkupValidation:
    valid: bool = True
    errors: list[str] = field(default_factory=list)
    issues: list[InvalidPathCommand] = field(default_factory=list)


@dataclass(frozen=True)
class DocumentBounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


def _z_order(layout: LayoutSpec | None) -> int:
    if layout is None or layout.z_index is None:
        return 0
    return layout.z_index


def _paint_order(items: list) -> list:
    """Stable sort by zIndex; untouched when nothing declares one."""
    if not any(item.layout is not None and item.layout.z_index is not None for item in items):
        return list(items)
    return sorted(items, key=lambda item: _z_order(item.layout))


class DocumentInterpreter:
    def catalog_for(self, document: Document) -> RegionCatalog:
        """Catalog with the document's custom regions registered.

        Raises InvalidCustomRegion on a bad registration.
        """
        catalog = RegionCatalog()
        if document.layout is not None:
            for region in document.layout.regions:
                catalog.register_custom(region.name, region.bounds)
        return catalog

    def resolve_layout(self, document: Document) -> Document:
        """Copy of ``document`` with every path in absolute canvas coordinates."""
        if document.layout_resolved:
            return document
        resolver = CoordinateResolver(document.canvas, self.catalog_for(document))
        layers = []
        for layer in document.layers:
            paths = [self._resolve_path(resolver, document, layer, path) for path in layer.paths]
            layers.append(layer.model_copy(update={"paths": paths}))
        return document.model_copy(update={"layers": layers, "layout_resolved": True})

    @staticmethod
    def _resolve_path(
        resolver: CoordinateResolver, document: Document, layer: Layer, path: ShapePath
    ) -> ShapePath:
        if not needs_resolution(document, layer, path):
            return path
        return resolver.transform_path(path, layer, document)

    def to_markup(self, document: Document) -> str:
        canvas = document.canvas
        resolved = self.resolve_layout(document)
        view_box = (
            format_view_box(canvas.view_box)
            if canvas.view_box is not None
            else f"0 0 {canvas.width} {canvas.height}"
        )

        lines = [open_svg(view_box, canvas.width, canvas.height)]
        for layer in _paint_order(resolved.layers):
            layout = merge_layouts(resolved, layer, None)
            lines.append(f"  <!-- Layer: {_comment_text(layer.label or layer.id)} -->")
            lines.append("  <g " + attr_string({
                "id": layer.id,
                "data-label": layer.label or None,
                "data-region": layout.region,
                "data-anchor": layout.anchor,
                "data-z-index": layer.layout.z_index if layer.layout else None,
            }) + ">")
            for path in _paint_order(layer.paths):
                lines.append("    <path " + self._path_attrs(path) + "/>")
            lines.append("  </g>")
        lines.append("</svg>")
        return "\n".join(lines)

    @staticmethod
    def _path_attrs(path: ShapePath) -> str:
        style = path.style
        attrs = {
            "id": path.id,
            "d": serialize_path_data(path.commands),
            "fill": style.fill or "none",
            "stroke": style.stroke or "none",
            "stroke-width": float(style.stroke_width) if style.stroke_width is not None else None,
            "stroke-linecap": style.stroke_linecap,
            "stroke-linejoin": style.stroke_linejoin,
            "opacity": float(style.opacity) if style.opacity is not None else None,
        }
        if path.layout is not None:
            attrs["data-region"] = path.layout.region
            attrs["data-anchor"] = path.layout.anchor
        return attr_string(attrs)

    def validate(self, markup: str) -> MarkupValidation:
        result = MarkupValidation()
        if "<svg" not in markup:
            result.errors.append("Missing <svg> root element")
        if "</svg>" not in markup:
            result.errors.append("Missing closing </svg> tag")
        if f'xmlns="{SVG_NS}"' not in markup:
            result.errors.append("Missing SVG namespace")
        if "viewBox=" not in markup:
            result.errors.append("Missing viewBox attribute")

        for index, attrs in enumerate(iter_path_tags(markup)):
            path_id = attrs.get("id", f"#{index}")
            d = attrs.get("d")
            if d is None:
                problems = ["missing d attribute"]
            else:
                problems = check_path_data(d)
            for problem in problems:
                issue = InvalidPathCommand(f"Invalid path data in {path_id!r}: {problem}", path_id)
                result.issues.append(issue)
                result.errors.append(str(issue))

        result.valid = not result.errors
        if not result.valid:
            logger.debug("Markup validation failed: %s", result.errors)
        return result

    def compute_bounds(self, document: Document) -> DocumentBounds:
        points = command_points(document.iter_commands())
        if not len(points):
            return DocumentBounds(0.0, 0.0, float(document.canvas.width), float(document.canvas.height))
        return DocumentBounds(*bbox(points))

    def retarget(self, document: Document, aspect_ratio: str) -> Document:
        """Same layers on the canonical canvas for ``aspect_ratio``."""
        return document.model_copy(update={"canvas": default_canvas(aspect_ratio)})


def _comment_text(text: str) -> str:
    return escape(text, quote=False).replace("--", "- -")
