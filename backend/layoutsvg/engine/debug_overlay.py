"""Debug overlay: visual annotations for a resolved document.

Read-only. Draws region boxes, anchor points, offset vectors and layer
bounding boxes, flags layout problems, and optionally a timing panel.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from html import escape
from itertools import combinations
from time import perf_counter
from typing import Any, Literal

from shapely.geometry import box

from layoutsvg.engine.coordinates import CoordinateResolver, merge_layouts
from layoutsvg.engine.interpreter import DocumentInterpreter
from layoutsvg.engine.layers import LayerAnalyzer
from layoutsvg.engine.viewport import analyze_viewport
from layoutsvg.errors import InvalidCustomRegion, UnknownRegion
from layoutsvg.models.document import Document
from layoutsvg.models.responses import GenerationResult
from layoutsvg.svg.serializer import attr_string, format_view_box, open_svg

logger = logging.getLogger(__name__)

ColorScheme = Literal["light", "dark", "high_contrast"]

COLOR_SCHEMES: dict[str, dict[str, str]] = {
    "light": {
        "region": "#3B82F6",
        "anchor": "#EF4444",
        "offset": "#F59E0B",
        "bounds": "#10B981",
        "error": "#DC2626",
        "text": "#111827",
    },
    "dark": {
        "region": "#60A5FA",
        "anchor": "#F87171",
        "offset": "#FBBF24",
        "bounds": "#34D399",
        "error": "#F87171",
        "text": "#F9FAFB",
    },
    "high_contrast": {
        "region": "#0000FF",
        "anchor": "#FF0000",
        "offset": "#FF8C00",
        "bounds": "#008000",
        "error": "#FF0000",
        "text": "#000000",
    },
}

# Layer boxes overlapping more than this share of the smaller box are flagged.
OVERLAP_THRESHOLD = 0.5


@dataclass
class DebugOptions:
    show_regions: bool = True
    show_anchors: bool = True
    show_offsets: bool = True
    show_bounds: bool = True
    show_errors: bool = True
    show_performance: bool = False
    color_scheme: ColorScheme = "light"
    opacity: float = 0.6


@dataclass
class DebugElement:
    kind: Literal["region", "anchor", "offset", "bounds", "error", "performance"]
    tag: str
    attrs: dict[str, Any]
    label: str = ""
    text: str = ""


@dataclass
class DebugOverlay:
    elements: list[DebugElement] = field(default_factory=list)
    layout_errors: list[str] = field(default_factory=list)
    statistics: dict[str, Any] = field(default_factory=dict)
    markup: str = ""
    render_time_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class DebugOverlayBuilder:
    def __init__(
        self,
        interpreter: DocumentInterpreter | None = None,
        analyzer: LayerAnalyzer | None = None,
    ) -> None:
        self.interpreter = interpreter or DocumentInterpreter()
        self.analyzer = analyzer or LayerAnalyzer()

    def build(
        self,
        document: Document,
        result: GenerationResult | None = None,
        options: DebugOptions | None = None,
    ) -> DebugOverlay:
        start = perf_counter()
        opts = options or DebugOptions()
        colors = COLOR_SCHEMES[opts.color_scheme]
        overlay = DebugOverlay()

        try:
            catalog = self.interpreter.catalog_for(document)
        except InvalidCustomRegion as e:
            overlay.layout_errors.append(str(e))
            catalog = None
        resolver = CoordinateResolver(document.canvas, catalog)

        used: list[str] = []
        for layer, path in [(layer, None) for layer in document.layers] + list(document.iter_paths()):
            if (layer.layout if path is None else path.layout) is None:
                continue
            layout = merge_layouts(document, layer, path)
            owner = layer.id if path is None else f"{layer.id}/{path.id}"
            if not resolver.catalog.is_valid(layout.region):
                overlay.layout_errors.append(f"{UnknownRegion(layout.region)} on {owner!r}")
                continue
            if layout.region not in used:
                used.append(layout.region)
            if opts.show_anchors or opts.show_offsets:
                self._anchor_elements(overlay, resolver, layout, owner, opts, colors)

        if opts.show_regions:
            for name in used:
                pb = resolver.region_box(name)
                overlay.elements.append(DebugElement(
                    kind="region",
                    tag="rect",
                    attrs={"x": pb.x, "y": pb.y, "width": pb.width, "height": pb.height,
                           "fill": "none", "stroke": colors["region"], "stroke-dasharray": "6 4"},
                    label=name,
                ))

        resolved = self.interpreter.resolve_layout(document) if not overlay.layout_errors else document
        canvas = resolved.canvas
        boxes = {}
        for layer in resolved.layers:
            analysis = self.analyzer.analyze(layer, canvas.width, canvas.height)
            if analysis.command_count == 0:
                continue
            x, y, w, h = analysis.bounds
            boxes[layer.id] = (x, y, w, h)
            if opts.show_bounds:
                overlay.elements.append(DebugElement(
                    kind="bounds",
                    tag="rect",
                    attrs={"x": x, "y": y, "width": w, "height": h,
                           "fill": "none", "stroke": colors["bounds"], "stroke-width": 1.0},
                    label=layer.id,
                ))

        overlay.layout_errors.extend(self._overlaps(boxes))
        view_box = canvas.view_box or (0.0, 0.0, float(canvas.width), float(canvas.height))
        viewport = analyze_viewport(list(resolved.iter_commands()), view_box, canvas.width, canvas.height)
        overlay.layout_errors.extend(i for i in viewport.issues if i != "No drawable content")

        if opts.show_errors:
            for index, message in enumerate(overlay.layout_errors):
                overlay.elements.append(DebugElement(
                    kind="error", tag="text",
                    attrs={"x": 8.0, "y": 16.0 + 14 * index, "fill": colors["error"], "font-size": 11.0},
                    text=message,
                ))

        if opts.show_performance and result is not None:
            perf = result.metadata.performance
            lines = [
                f"method: {result.metadata.method}",
                f"total: {perf.generation_time_ms:.1f}ms",
                f"model: {perf.external_call_time_ms:.1f}ms",
                f"processing: {perf.processing_time_ms:.1f}ms",
                f"quality: {result.metadata.layout_quality}",
            ]
            for index, line in enumerate(lines):
                overlay.elements.append(DebugElement(
                    kind="performance", tag="text",
                    attrs={"x": canvas.width - 140.0, "y": 16.0 + 14 * index,
                           "fill": colors["text"], "font-size": 11.0},
                    text=line,
                ))

        overlay.statistics = self._statistics(resolved, overlay, used)
        overlay.markup = self._compose(resolved, overlay, opts)
        overlay.render_time_ms = (perf_counter() - start) * 1000
        return overlay

    @staticmethod
    def _anchor_elements(overlay, resolver, layout, owner, opts, colors) -> None:
        ax, ay = resolver.resolve_anchor_point(layout.region, layout.anchor)
        if opts.show_anchors:
            overlay.elements.append(DebugElement(
                kind="anchor", tag="circle",
                attrs={"cx": ax, "cy": ay, "r": 3.0, "fill": colors["anchor"]},
                label=f"{owner}:{layout.anchor}",
            ))
        if opts.show_offsets and layout.offset != (0.0, 0.0):
            px, py = resolver.resolve_position(layout)
            overlay.elements.append(DebugElement(
                kind="offset", tag="line",
                attrs={"x1": ax, "y1": ay, "x2": px, "y2": py,
                       "stroke": colors["offset"], "stroke-width": 1.5},
                label=owner,
            ))

    @staticmethod
    def _overlaps(boxes: dict[str, tuple[float, float, float, float]]) -> list[str]:
        found = []
        shapes = {k: box(x, y, x + w, y + h) for k, (x, y, w, h) in boxes.items()}
        for (a, ga), (b, gb) in combinations(shapes.items(), 2):
            smaller = min(ga.area, gb.area)
            if smaller <= 0:
                continue
            share = ga.intersection(gb).area / smaller
            if share > OVERLAP_THRESHOLD:
                found.append(f"Layers {a!r} and {b!r} overlap ({share:.0%})")
        return found

    @staticmethod
    def _statistics(document: Document, overlay: DebugOverlay, used: list[str]) -> dict[str, Any]:
        counts: dict[str, int] = {}
        for element in overlay.elements:
            counts[element.kind] = counts.get(element.kind, 0) + 1
        return {
            "layers": len(document.layers),
            "paths": sum(len(layer.paths) for layer in document.layers),
            "regions_used": used,
            "elements": counts,
            "errors": len(overlay.layout_errors),
        }

    @staticmethod
    def _compose(document: Document, overlay: DebugOverlay, opts: DebugOptions) -> str:
        canvas = document.canvas
        view_box = (
            format_view_box(canvas.view_box)
            if canvas.view_box is not None
            else f"0 0 {canvas.width} {canvas.height}"
        )
        lines = [open_svg(view_box, canvas.width, canvas.height)]
        lines.append(f'  <g id="debug-overlay" opacity="{opts.opacity:g}" pointer-events="none">')
        for element in overlay.elements:
            attrs = dict(element.attrs)
            if element.label:
                attrs["data-label"] = element.label
            if element.tag == "text":
                lines.append(f"    <text {attr_string(attrs)}>{escape(element.text)}</text>")
            else:
                lines.append(f"    <{element.tag} {attr_string(attrs)}/>")
        lines.append("  </g>")
        lines.append("</svg>")
        return "\n".join(lines)
