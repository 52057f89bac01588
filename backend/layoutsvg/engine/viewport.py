"""Viewport auto-fit: choose a view box that frames the drawn content."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from layoutsvg.models.document import Document, PathCommand
from layoutsvg.utils.geometry import bbox, command_points, rebuild_commands, scale_about

logger = logging.getLogger(__name__)

# Content whose aspect differs from the canvas by more than this is rescaled.
ASPECT_MISMATCH = 0.5
# Rescaled content fills this share of the canvas.
TARGET_FILL = 0.8


@dataclass
class ViewportFit:
    view_box: tuple[float, float, float, float]
    commands: list[PathCommand]
    transform_applied: str = ""


@dataclass
class ViewportAnalysis:
    content_bounds: tuple[float, float, float, float]
    view_box: tuple[float, float, float, float]
    issues: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues


def fit_viewport(
    commands: list[PathCommand],
    width: float,
    height: float,
    padding: float = 0.15,
) -> ViewportFit:
    """Pad the content bounds by ``padding`` of their larger side.

    Content far off the canvas aspect is first scaled down about its center.
    """
    canonical = (0.0, 0.0, float(width), float(height))
    points = command_points(commands)
    if not len(points):
        return ViewportFit(view_box=canonical, commands=list(commands))

    xmin, ymin, xmax, ymax = bbox(points)
    bw, bh = xmax - xmin, ymax - ymin
    if bw <= 0 or bh <= 0:
        return ViewportFit(view_box=canonical, commands=list(commands))

    transform = ""
    out_commands = list(commands)
    if abs(bw / bh - width / height) > ASPECT_MISMATCH:
        scale = min(width * TARGET_FILL / bw, height * TARGET_FILL / bh)
        if scale < 1:
            cx, cy = (xmin + xmax) / 2, (ymin + ymax) / 2
            points = scale_about(points, scale, cx, cy)
            out_commands = rebuild_commands(commands, points)
            xmin, ymin, xmax, ymax = bbox(points)
            bw, bh = xmax - xmin, ymax - ymin
            transform = f"scale({scale:.3f})"
            logger.debug("Viewport rescaled content by %.3f", scale)

    pad = max(bw, bh) * padding
    view_box = (xmin - pad, ymin - pad, bw + 2 * pad, bh + 2 * pad)
    return ViewportFit(view_box=view_box, commands=out_commands, transform_applied=transform)


def fit_document(document: Document, padding: float = 0.15) -> tuple[Document, ViewportFit]:
    """Apply :func:`fit_viewport` to every command of a document at once."""
    flat: list[PathCommand] = list(document.iter_commands())
    canvas = document.canvas
    fit = fit_viewport(flat, canvas.width, canvas.height, padding)

    layers = []
    i = 0
    for layer in document.layers:
        paths = []
        for path in layer.paths:
            n = len(path.commands)
            paths.append(path.model_copy(update={"commands": fit.commands[i:i + n]}))
            i += n
        layers.append(layer.model_copy(update={"paths": paths}))

    new_canvas = canvas.model_copy(update={"view_box": fit.view_box})
    return document.model_copy(update={"layers": layers, "canvas": new_canvas}), fit


def analyze_viewport(
    commands: list[PathCommand],
    view_box: tuple[float, float, float, float],
    width: float,
    height: float,
) -> ViewportAnalysis:
    points = command_points(commands)
    vx, vy, vw, vh = view_box
    if not len(points):
        return ViewportAnalysis((0.0, 0.0, 0.0, 0.0), view_box, ["No drawable content"])

    bounds = bbox(points)
    xmin, ymin, xmax, ymax = bounds
    analysis = ViewportAnalysis(bounds, view_box)
    if xmin < vx or ymin < vy or xmax > vx + vw or ymax > vy + vh:
        analysis.issues.append("Content is clipped by the view box")
    if xmin < 0 or ymin < 0 or xmax > width or ymax > height:
        analysis.issues.append("Content extends past the canvas")
    bw, bh = xmax - xmin, ymax - ymin
    if bw > 0 and bh > 0 and abs(bw / bh - width / height) > ASPECT_MISMATCH:
        analysis.issues.append("Content aspect differs from the canvas")
    return analysis
