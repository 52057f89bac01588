"""Layout quality score (0-100)."""

from __future__ import annotations

from layoutsvg.engine.config import QualityWeights
from layoutsvg.models.document import Document


def regions_used(document: Document) -> list[str]:
    names: list[str] = []
    for layer in document.layers:
        specs = [layer.layout] + [p.layout for p in layer.paths]
        for spec in specs:
            if spec is not None and spec.region and spec.region not in names:
                names.append(spec.region)
    return names


def anchors_used(document: Document) -> list[str]:
    names: list[str] = []
    for layer in document.layers:
        specs = [layer.layout] + [p.layout for p in layer.paths]
        for spec in specs:
            if spec is not None and spec.anchor and spec.anchor not in names:
                names.append(spec.anchor)
    return names


def score_layout(document: Document, weights: QualityWeights | None = None) -> int:
    w = weights or QualityWeights()
    width, height = document.canvas.width, document.canvas.height
    margin = w.edge_margin_px
    score = float(w.base_score)

    for command in document.iter_commands():
        for x, y in command.points():
            if x < margin or x > width - margin or y < margin or y > height - margin:
                score -= w.edge_penalty
            if x < 0 or x > width or y < 0 or y > height:
                score -= w.out_of_bounds_penalty

    if 1 < len(document.layers) <= w.max_layers_for_bonus:
        score += w.layer_bonus
    if len(regions_used(document)) > 1:
        score += w.region_bonus

    return int(max(0.0, min(100.0, score)))
