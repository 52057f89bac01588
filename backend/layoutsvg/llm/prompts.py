"""Prompt templates for design-document generation."""

from __future__ import annotations

from dataclasses import dataclass

from layoutsvg.engine.regions import ANCHOR_OFFSETS, RESERVED_REGIONS
from layoutsvg.models.grounding import (
    DesignRule,
    FewShotExample,
    GlossaryEntry,
    GroundingItem,
    Motif,
    StylePack,
)
from layoutsvg.models.requests import GenerationRequest

_SCHEMA_EXAMPLE = """{{
  "version": "unified-layered-1.0",
  "canvas": {{"width": {width}, "height": {height}, "aspectRatio": "{aspect_ratio}"}},
  "layers": [
    {{
      "id": "sun",
      "label": "Sun",
      "layout": {{"region": "top_right", "anchor": "center"}},
      "paths": [
        {{
          "id": "sun_disc",
          "style": {{"fill": "#FDB813", "stroke": "#F59E0B", "strokeWidth": 2}},
          "commands": [
            {{"cmd": "M", "coords": [0, -30]}},
            {{"cmd": "C", "coords": [17, -30, 30, -17, 30, 0]}},
            {{"cmd": "C", "coords": [30, 17, 17, 30, 0, 30]}},
            {{"cmd": "C", "coords": [-17, 30, -30, 17, -30, 0]}},
            {{"cmd": "C", "coords": [-30, -17, -17, -30, 0, -30]}},
            {{"cmd": "Z", "coords": []}}
          ]
        }}
      ]
    }}
  ]
}}"""

_SYSTEM_TEMPLATE = """You are a vector illustrator that answers with a layered design document in JSON. You never write SVG markup yourself; a layout engine turns your document into SVG.

CANVAS:
- Width {width}px, height {height}px, aspect ratio {aspect_ratio}.
- Origin (0, 0) is the top-left corner; y grows downward.

REGIONS (fractions of the canvas: x, y, width, height):
{regions}

ANCHORS (point inside the region the shape's local origin snaps to):
{anchors}

LAYOUT RULES:
- Give each layer (or path) a "layout" with "region" and "anchor". Draw the path around its own local origin (0, 0); the engine moves it into place.
- Exception: region "center" with anchor "center" and no offset, size or repeat is the identity layout. Paths under it are NOT moved and must use absolute canvas coordinates. To center a locally drawn shape, give it a "size".
- "offset": [dx, dy] shifts the anchor point by a fraction of the region size, each within [-1, 1].
- "size": exactly one of {{"absolute": {{"width", "height"}}}}, {{"relative": 0-1}}, {{"aspect_constrained": {{"width", "aspect"}}}}.
- "repeat": {{"type": "grid", "count": [cols, rows], "spacing": 0.1}} or {{"type": "radial", "count": n, "radius": px}}.
- "zIndex" orders layers back to front.
- A layer or path without a layout uses absolute pixel coordinates; keep them inside the canvas.

PATH COMMANDS (absolute values only):
- M x y  (2 numbers)      move
- L x y  (2 numbers)      line
- Q cx cy x y  (4)        quadratic curve
- C c1x c1y c2x c2y x y (6)  cubic curve
- Z      (0)              close
Every path starts with M. No other letters, no relative commands.

STRUCTURE:
- Layer ids are unique. Path ids are unique inside their layer. Use descriptive ids, not "layer1".
- Order layers back to front.
{grounding}
OUTPUT FORMAT:
Respond with ONLY the JSON document, matching this example:
{schema}"""

_USER_TEMPLATE = """Create: {prompt}
{context}{palette}Canvas: {width}x{height} ({aspect_ratio})."""

_TEMPLATES = {
    "system": _SYSTEM_TEMPLATE,
    "user": _USER_TEMPLATE,
    "schema": _SCHEMA_EXAMPLE,
}


@dataclass(frozen=True)
class Prompt:
    system_text: str
    user_text: str


def _format_regions() -> str:
    return "\n".join(
        f"- {name}: {b.x:g}, {b.y:g}, {b.width:g}, {b.height:g}"
        for name, b in RESERVED_REGIONS.items()
    )


def _format_anchors() -> str:
    return "\n".join(f"- {name}: ({fx:g}, {fy:g})" for name, (fx, fy) in ANCHOR_OFFSETS.items())


def format_grounding(items: list[GroundingItem]) -> str:
    """Render grounding items as a prompt section, grouped by kind."""
    if not items:
        return ""
    lines = ["", "GROUNDING:"]
    for item in items:
        if isinstance(item, StylePack):
            palette = ", ".join(item.palette) or "free choice"
            text = f"- Style pack '{item.name}': palette {palette}"
            if item.stroke_width is not None:
                text += f", stroke width {item.stroke_width:g}"
            if item.notes:
                text += f". {item.notes}"
            lines.append(text)
        elif isinstance(item, Motif):
            text = f"- Motif '{item.name}': {item.description}"
            if item.commands_hint:
                text += f" (commands: {item.commands_hint})"
            lines.append(text)
        elif isinstance(item, GlossaryEntry):
            lines.append(f"- '{item.term}' means {item.definition}")
        elif isinstance(item, DesignRule):
            lines.append(f"- {item.priority.upper()}: {item.rule}")
        elif isinstance(item, FewShotExample):
            lines.append(f"- Example for \"{item.prompt}\":\n{item.document}")
    lines.append("")
    return "\n".join(lines)


class PromptBuilder:
    def build_prompt(self, request: GenerationRequest, width: int, height: int) -> Prompt:
        fields = {"width": width, "height": height, "aspect_ratio": request.aspect_ratio}
        system_text = _SYSTEM_TEMPLATE.format(
            regions=_format_regions(),
            anchors=_format_anchors(),
            grounding=format_grounding(request.grounding),
            schema=_SCHEMA_EXAMPLE.format(**fields),
            **fields,
        )
        user_text = _USER_TEMPLATE.format(
            prompt=request.prompt.strip(),
            context=f"Context: {request.context.strip()}\n" if request.context.strip() else "",
            palette=f"Palette: {', '.join(request.palette)}\n" if request.palette else "",
            **fields,
        )
        return Prompt(system_text=system_text, user_text=user_text)


def get_all_templates() -> dict[str, str]:
    """Return all prompt templates keyed by name."""
    return dict(_TEMPLATES)
