"""Layer analyzer: per-layer metrics, structural validation and advisory optimization.

Results are memoized in bounded LRU caches. Keys are derived from layer
content, so a hit is always identical to a fresh computation.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Literal

from layoutsvg.engine.coordinates import merge_layouts
from layoutsvg.engine.regions import RegionCatalog
from layoutsvg.errors import StructuralValidationError
from layoutsvg.models.document import Document, Layer
from layoutsvg.models.responses import LayerMetadata
from layoutsvg.utils.cache import LRUCache
from layoutsvg.utils.geometry import bbox_xywh, command_points

logger = logging.getLogger(__name__)

Complexity = Literal["low", "medium", "high"]

# Complexity bands: (max paths, max commands)
LOW_COMPLEXITY = (5, 20)
MEDIUM_COMPLEXITY = (15, 100)

MAX_PATHS_PER_LAYER = 50
MAX_LAYERS = 20
MERGE_PATH_COUNT_DELTA = 5

_GENERIC_ID = re.compile(r"^(layer|group|g|path)[_-]?\d*$", re.IGNORECASE)


@dataclass(frozen=True)
class LayerAnalysis:
    layer_id: str
    path_count: int
    command_count: int
    bounds: tuple[float, float, float, float]  # x, y, width, height
    complexity: Complexity
    estimated_render_ms: float
    estimated_memory_bytes: int
    regions: tuple[str, ...]
    anchors: tuple[str, ...]
    coverage: float  # bounds area / canvas area


@dataclass
class LayerValidationResult:
    valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    offending_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class LayerOptimization:
    layers: tuple[Layer, ...]
    removed_layers: tuple[str, ...]
    merged_layers: tuple[tuple[str, str], ...]
    original_count: int
    optimized_count: int
    performance_gain: float  # percent


@dataclass
class LayerStatistics:
    total_layers: int = 0
    total_paths: int = 0
    total_commands: int = 0
    average_paths_per_layer: float = 0.0
    complexity_distribution: dict[str, int] = field(default_factory=dict)
    region_distribution: dict[str, int] = field(default_factory=dict)


def classify_complexity(path_count: int, command_count: int) -> Complexity:
    if path_count <= LOW_COMPLEXITY[0] and command_count <= LOW_COMPLEXITY[1]:
        return "low"
    if path_count <= MEDIUM_COMPLEXITY[0] and command_count <= MEDIUM_COMPLEXITY[1]:
        return "medium"
    return "high"


def estimate_render_ms(path_count: int, command_count: int) -> float:
    return path_count * 0.1 + command_count * 0.01


def estimate_memory_bytes(path_count: int, command_count: int) -> int:
    return 100 + path_count * 50 + command_count * 20


def _style_key(style) -> str:
    return json.dumps(style.model_dump(exclude_none=True), sort_keys=True)


class LayerAnalyzer:
    def __init__(
        self,
        catalog: RegionCatalog | None = None,
        cache_size: int = 256,
        merge_similarity_threshold: float = 0.7,
    ) -> None:
        self.catalog = catalog or RegionCatalog()
        self.merge_similarity_threshold = merge_similarity_threshold
        self._analysis_cache: LRUCache[LayerAnalysis] = LRUCache(cache_size)
        self._optimization_cache: LRUCache[LayerOptimization] = LRUCache(cache_size)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    @staticmethod
    def signature(layer: Layer) -> str:
        layout = layer.layout.model_dump_json(exclude_none=True) if layer.layout else "{}"
        digest = hashlib.sha256(layer.model_dump_json().encode()).hexdigest()[:16]
        return f"layer:{layer.id}:{layout}:{len(layer.paths)}:{digest}"

    def analyze(self, layer: Layer, canvas_w: float, canvas_h: float) -> LayerAnalysis:
        key = f"{self.signature(layer)}:{canvas_w}x{canvas_h}"
        cached = self._analysis_cache.get(key)
        if cached is not None:
            return cached

        analysis = self._compute_analysis(layer, canvas_w, canvas_h)
        self._analysis_cache.put(key, analysis)
        return analysis

    def _compute_analysis(self, layer: Layer, canvas_w: float, canvas_h: float) -> LayerAnalysis:
        commands = [c for path in layer.paths for c in path.commands]
        path_count = len(layer.paths)
        command_count = len(commands)

        bounds = bbox_xywh(command_points(commands))
        canvas_area = canvas_w * canvas_h
        coverage = (bounds[2] * bounds[3]) / canvas_area if canvas_area > 0 else 0.0

        regions: list[str] = []
        anchors: list[str] = []
        specs = [layer.layout] + [p.layout for p in layer.paths]
        for spec in specs:
            if spec is None:
                continue
            if spec.region and spec.region not in regions:
                regions.append(spec.region)
            if spec.anchor and spec.anchor not in anchors:
                anchors.append(spec.anchor)

        return LayerAnalysis(
            layer_id=layer.id,
            path_count=path_count,
            command_count=command_count,
            bounds=bounds,
            complexity=classify_complexity(path_count, command_count),
            estimated_render_ms=estimate_render_ms(path_count, command_count),
            estimated_memory_bytes=estimate_memory_bytes(path_count, command_count),
            regions=tuple(regions),
            anchors=tuple(anchors),
            coverage=min(coverage, 1.0),
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(
        self, layers: list[Layer], catalog: RegionCatalog | None = None
    ) -> LayerValidationResult:
        catalog = catalog or self.catalog
        result = LayerValidationResult()
        seen_layers: dict[str, int] = {}

        for index, layer in enumerate(layers):
            if not layer.id:
                result.errors.append(f"Layer at position {index} has an empty id")
            elif layer.id in seen_layers:
                result.errors.append(
                    f"Duplicate layer id {layer.id!r} at positions {seen_layers[layer.id]} and {index}"
                )
                result.offending_ids.append(layer.id)
            else:
                seen_layers[layer.id] = index

            if not layer.label:
                result.warnings.append(f"Layer {layer.id!r} has no label")
            if not layer.paths:
                result.warnings.append(f"Layer {layer.id!r} has no paths")
                result.suggestions.append(f"Remove empty layer {layer.id!r}")
            if len(layer.paths) > MAX_PATHS_PER_LAYER:
                result.warnings.append(
                    f"Layer {layer.id!r} has {len(layer.paths)} paths (over {MAX_PATHS_PER_LAYER})"
                )
                result.suggestions.append(f"Split layer {layer.id!r} into smaller layers")
            if layer.id and _GENERIC_ID.match(layer.id):
                result.suggestions.append(f"Use a descriptive id instead of {layer.id!r}")

            self._check_layout(layer.id, layer.layout, catalog, result)

            seen_paths: set[str] = set()
            for path in layer.paths:
                if path.id in seen_paths:
                    result.errors.append(f"Duplicate path id {path.id!r} in layer {layer.id!r}")
                    result.offending_ids.append(f"{layer.id}/{path.id}")
                seen_paths.add(path.id)
                if not path.commands:
                    result.warnings.append(f"Path {path.id!r} in layer {layer.id!r} has no commands")
                self._check_layout(f"{layer.id}/{path.id}", path.layout, catalog, result)

        if len(layers) > MAX_LAYERS:
            result.warnings.append(f"Document has {len(layers)} layers (over {MAX_LAYERS})")

        result.valid = not result.errors
        return result

    @staticmethod
    def _check_layout(owner: str, layout, catalog: RegionCatalog, result: LayerValidationResult) -> None:
        if layout is None:
            return
        if layout.region is not None and not catalog.is_valid(layout.region):
            result.errors.append(f"Invalid region {layout.region!r} on {owner!r}")
            result.offending_ids.append(owner)
        if layout.offset is not None and any(abs(v) > 1 for v in layout.offset):
            result.warnings.append(f"Large offset {list(layout.offset)} on {owner!r}")

    def ensure_valid(self, layers: list[Layer], catalog: RegionCatalog | None = None) -> LayerValidationResult:
        result = self.validate(layers, catalog)
        if not result.valid:
            raise StructuralValidationError(result.errors, result.offending_ids)
        return result

    # ------------------------------------------------------------------
    # Optimization
    # ------------------------------------------------------------------

    def optimize(self, layers: list[Layer]) -> LayerOptimization:
        key = "opt:" + "|".join(self.signature(layer) for layer in layers)
        cached = self._optimization_cache.get(key)
        if cached is not None:
            return cached

        removed = tuple(layer.id for layer in layers if not layer.paths)
        remaining = [layer for layer in layers if layer.paths]

        merged: list[tuple[str, str]] = []
        optimized: list[Layer] = []
        for layer in remaining:
            target_index = next(
                (i for i, kept in enumerate(optimized) if self.can_merge(kept, layer)),
                None,
            )
            if target_index is None:
                optimized.append(layer)
                continue
            target = optimized[target_index]
            optimized[target_index] = target.model_copy(
                update={"paths": list(target.paths) + list(layer.paths)}
            )
            merged.append((target.id, layer.id))

        original_count = len(layers)
        gain = (original_count - len(optimized)) / original_count * 100 if original_count else 0.0
        result = LayerOptimization(
            layers=tuple(optimized),
            removed_layers=removed,
            merged_layers=tuple(merged),
            original_count=original_count,
            optimized_count=len(optimized),
            performance_gain=round(gain, 2),
        )
        if removed or merged:
            logger.debug("Layer optimization: removed=%s merged=%s", removed, merged)
        self._optimization_cache.put(key, result)
        return result

    def can_merge(self, first: Layer, second: Layer) -> bool:
        if first.region != second.region:
            return False
        if abs(len(first.paths) - len(second.paths)) > MERGE_PATH_COUNT_DELTA:
            return False
        return self.style_similarity(first, second) >= self.merge_similarity_threshold

    @staticmethod
    def style_similarity(first: Layer, second: Layer) -> float:
        styles_a = [_style_key(p.style) for p in first.paths]
        styles_b = {_style_key(p.style) for p in second.paths}
        longest = max(len(first.paths), len(second.paths))
        if longest == 0:
            return 0.0
        common = sum(1 for s in styles_a if s in styles_b)
        return common / longest

    # ------------------------------------------------------------------
    # Metadata / statistics
    # ------------------------------------------------------------------

    def layer_metadata(self, document: Document) -> list[LayerMetadata]:
        canvas = document.canvas
        out: list[LayerMetadata] = []
        for layer in document.layers:
            analysis = self.analyze(layer, canvas.width, canvas.height)
            layout = merge_layouts(document, layer, None)
            out.append(
                LayerMetadata(
                    id=layer.id,
                    label=layer.label or layer.id,
                    region=layout.region,
                    anchor=layout.anchor,
                    path_count=analysis.path_count,
                    command_count=analysis.command_count,
                    complexity=analysis.complexity,
                    bounds=analysis.bounds,
                )
            )
        return out

    def statistics(self, layers: list[Layer]) -> LayerStatistics:
        stats = LayerStatistics(total_layers=len(layers))
        for layer in layers:
            commands = sum(len(p.commands) for p in layer.paths)
            stats.total_paths += len(layer.paths)
            stats.total_commands += commands
            complexity = classify_complexity(len(layer.paths), commands)
            stats.complexity_distribution[complexity] = stats.complexity_distribution.get(complexity, 0) + 1
            stats.region_distribution[layer.region] = stats.region_distribution.get(layer.region, 0) + 1
        if layers:
            stats.average_paths_per_layer = stats.total_paths / len(layers)
        return stats

    def group_by_region(self, layers: list[Layer]) -> dict[str, list[Layer]]:
        groups: dict[str, list[Layer]] = {}
        for layer in layers:
            groups.setdefault(layer.region, []).append(layer)
        return groups

    def cache_stats(self) -> dict[str, int]:
        return {
            "analysis_entries": len(self._analysis_cache),
            "analysis_hits": self._analysis_cache.hits,
            "analysis_misses": self._analysis_cache.misses,
            "optimization_entries": len(self._optimization_cache),
        }

    def clear_cache(self) -> None:
        self._analysis_cache.clear()
        self._optimization_cache.clear()
