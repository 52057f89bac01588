"""Fallback tiers: keyword templates, then a hard-coded circle.

The rule-based tier maps prompt keywords to shape templates authored around a
local origin, places them with the regular layout machinery and renders them
through the interpreter. The basic tier is a fixed string and cannot fail.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Callable

from layoutsvg.engine.aspect import closest_ratio
from layoutsvg.engine.interpreter import DocumentInterpreter
from layoutsvg.models.document import (
    Canvas,
    Document,
    Layer,
    LayoutSpec,
    PathCommand,
    PathStyle,
    RepetitionSpec,
    ShapePath,
)
from layoutsvg.models.requests import SizedRequest
from layoutsvg.svg.serializer import SVG_NS, format_number

logger = logging.getLogger(__name__)

DEFAULT_PALETTE = ["#3B82F6", "#1E40AF", "#1D4ED8"]

COLOR_PALETTES: dict[str, list[str]] = {
    "red": ["#EF4444", "#B91C1C", "#DC2626"],
    "orange": ["#F97316", "#C2410C", "#EA580C"],
    "yellow": ["#EAB308", "#A16207", "#CA8A04"],
    "green": ["#22C55E", "#15803D", "#16A34A"],
    "blue": DEFAULT_PALETTE,
    "purple": ["#A855F7", "#7E22CE", "#9333EA"],
    "pink": ["#EC4899", "#BE185D", "#DB2777"],
    "gray": ["#6B7280", "#374151", "#4B5563"],
    "black": ["#111827", "#000000", "#1F2937"],
    "gold": ["#F59E0B", "#B45309", "#D97706"],
}

Commands = list[PathCommand]


def _cmd(name: str, *coords: float) -> PathCommand:
    return PathCommand(cmd=name, coords=[float(c) for c in coords])


def _polygon(points: list[tuple[float, float]]) -> Commands:
    out = [_cmd("M", *points[0])]
    out.extend(_cmd("L", x, y) for x, y in points[1:])
    out.append(_cmd("Z"))
    return out


def _regular(sides: int, r: float, rotation: float = -math.pi / 2) -> Commands:
    return _polygon([
        (r * math.cos(rotation + i * 2 * math.pi / sides), r * math.sin(rotation + i * 2 * math.pi / sides))
        for i in range(sides)
    ])


def circle(r: float) -> Commands:
    # Four cubic quarter arcs.
    k = 0.5523 * r
    return [
        _cmd("M", 0, -r),
        _cmd("C", k, -r, r, -k, r, 0),
        _cmd("C", r, k, k, r, 0, r),
        _cmd("C", -k, r, -r, k, -r, 0),
        _cmd("C", -r, -k, -k, -r, 0, -r),
        _cmd("Z"),
    ]


def rectangle(w: float, h: float) -> Commands:
    return _polygon([(-w / 2, -h / 2), (w / 2, -h / 2), (w / 2, h / 2), (-w / 2, h / 2)])


def star(r: float, points: int = 5, inner_ratio: float = 0.45) -> Commands:
    vertices = []
    for i in range(points * 2):
        radius = r if i % 2 == 0 else r * inner_ratio
        angle = -math.pi / 2 + i * math.pi / points
        vertices.append((radius * math.cos(angle), radius * math.sin(angle)))
    return _polygon(vertices)


def heart(r: float) -> Commands:
    return [
        _cmd("M", 0, r * 0.9),
        _cmd("C", -r * 1.2, r * 0.1, -r * 0.9, -r * 0.9, 0, -r * 0.35),
        _cmd("C", r * 0.9, -r * 0.9, r * 1.2, r * 0.1, 0, r * 0.9),
        _cmd("Z"),
    ]


def wave(w: float, amplitude: float, periods: int = 3) -> Commands:
    step = w / (periods * 2)
    out = [_cmd("M", -w / 2, 0)]
    x = -w / 2
    for i in range(periods * 2):
        peak = -amplitude if i % 2 == 0 else amplitude
        out.append(_cmd("Q", x + step / 2, peak * 2, x + step, 0))
        x += step
    return out


def arrow(w: float, h: float) -> Commands:
    shaft = h * 0.3
    head = w * 0.35
    return _polygon([
        (-w / 2, -shaft / 2),
        (w / 2 - head, -shaft / 2),
        (w / 2 - head, -h / 2),
        (w / 2, 0),
        (w / 2 - head, h / 2),
        (w / 2 - head, shaft / 2),
        (-w / 2, shaft / 2),
    ])


def house(r: float) -> Commands:
    return _polygon([
        (0, -r),
        (r, -r * 0.1),
        (r * 0.75, -r * 0.1),
        (r * 0.75, r),
        (-r * 0.75, r),
        (-r * 0.75, -r * 0.1),
        (-r, -r * 0.1),
    ])


@dataclass
class Template:
    keywords: tuple[str, ...]
    build: Callable[[float], Commands]
    stroke_only: bool = False


TEMPLATES: list[Template] = [
    Template(("star",), lambda s: star(s)),
    Template(("heart", "love"), lambda s: heart(s)),
    Template(("triangle",), lambda s: _regular(3, s)),
    Template(("square", "rectangle", "rect", "box"), lambda s: rectangle(s * 1.6, s * 1.2)),
    Template(("pentagon",), lambda s: _regular(5, s)),
    Template(("hexagon",), lambda s: _regular(6, s)),
    Template(("octagon",), lambda s: _regular(8, s)),
    Template(("diamond", "rhombus"), lambda s: _polygon([(0, -s), (s * 0.7, 0), (0, s), (-s * 0.7, 0)])),
    Template(("wave", "water", "ocean"), lambda s: wave(s * 2, s * 0.3), stroke_only=True),
    Template(("arrow",), lambda s: arrow(s * 2, s)),
    Template(("house", "home", "icon"), lambda s: house(s)),
    Template(("circle", "sun", "ball", "dot"), lambda s: circle(s)),
]


class SeededRandom:
    """Small LCG so the same seed always yields the same variation."""

    def __init__(self, seed: int) -> None:
        self.state = seed % 233280

    def random(self) -> float:
        self.state = (self.state * 9301 + 49297) % 233280
        return self.state / 233280

    def uniform(self, low: float, high: float) -> float:
        return low + (high - low) * self.random()


def _prompt_seed(prompt: str) -> int:
    return sum((i + 1) * ord(ch) for i, ch in enumerate(prompt))


def palette_for(prompt: str, palette: list[str] | None = None) -> list[str]:
    if palette:
        return list(palette)
    words = set(re.findall(r"[a-z]+", prompt.lower()))
    for color, colors in COLOR_PALETTES.items():
        if color in words:
            return list(colors)
    return list(DEFAULT_PALETTE)


@dataclass
class RuleBasedResult:
    markup: str
    warnings: list[str] = field(default_factory=list)
    document: Document | None = None


class RuleBasedGenerator:
    def __init__(self, interpreter: DocumentInterpreter | None = None) -> None:
        self.interpreter = interpreter or DocumentInterpreter()

    def match_templates(self, prompt: str) -> list[Template]:
        words = set(re.findall(r"[a-z]+", prompt.lower()))
        matched = [t for t in TEMPLATES if words.intersection(t.keywords)]
        return matched

    def build_document(self, request: SizedRequest) -> tuple[Document, list[str]]:
        warnings: list[str] = []
        rng = SeededRandom(request.seed if request.seed is not None else _prompt_seed(request.prompt))
        colors = palette_for(request.prompt, request.palette)
        canvas = Canvas(width=request.width, height=request.height, aspect_ratio=_ratio_tag(request))

        templates = self.match_templates(request.prompt)
        if not templates:
            warnings.append("No template matched the prompt; drew a circle")
            templates = [TEMPLATES[-1]]

        size = min(request.width, request.height) * 0.25
        wants_pattern = "pattern" in request.prompt.lower()
        if wants_pattern:
            size *= 0.4
        templates = templates[:3]
        # full_canvas + center anchor puts the local origin on the canvas middle.
        regions = ("full_canvas",) if len(templates) == 1 else ("middle_left", "full_canvas", "middle_right")
        layers: list[Layer] = []
        for index, template in enumerate(templates):
            scale = size * rng.uniform(0.85, 1.15) * (0.6 if len(templates) > 1 else 1.0)
            offset = (0.0, rng.uniform(-0.05, 0.05))
            region = regions[index]
            style = self._style(template, colors, index)
            repeat = RepetitionSpec(type="grid", count=(3, 3), spacing=0.3) if wants_pattern else None
            layers.append(
                Layer(
                    id=f"shape_{index + 1}",
                    label=template.keywords[0].title(),
                    layout=LayoutSpec(region=region, anchor="center", offset=offset, repeat=repeat),
                    paths=[ShapePath(id=f"shape_{index + 1}_path", style=style, commands=template.build(scale))],
                )
            )
        return Document(canvas=canvas, layers=layers), warnings

    def generate(self, request: SizedRequest) -> RuleBasedResult:
        document, warnings = self.build_document(request)
        markup = self.interpreter.to_markup(document)
        logger.info("Rule-based generation produced %d layers", len(document.layers))
        return RuleBasedResult(markup=markup, warnings=warnings, document=document)

    @staticmethod
    def _style(template: Template, colors: list[str], index: int) -> PathStyle:
        primary = colors[index % len(colors)]
        outline = colors[(index + 1) % len(colors)]
        if template.stroke_only:
            return PathStyle(fill="none", stroke=primary, stroke_width=4, stroke_linecap="round")
        return PathStyle(fill=primary, stroke=outline, stroke_width=2, stroke_linejoin="round")


def _ratio_tag(request: SizedRequest) -> str:
    return closest_ratio(request.width, request.height)


def basic_geometric_markup(width: int, height: int) -> str:
    """Centered circle, radius a quarter of the short side."""
    w, h = format_number(width), format_number(height)
    cx, cy = format_number(width / 2), format_number(height / 2)
    r = format_number(min(width, height) / 4)
    return (
        f'<svg xmlns="{SVG_NS}" viewBox="0 0 {w} {h}" width="{w}" height="{h}">\n'
        f'  <circle cx="{cx}" cy="{cy}" r="{r}" fill="#3B82F6" stroke="#1E40AF" stroke-width="2"/>\n'
        "</svg>"
    )
