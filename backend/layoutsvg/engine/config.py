"""Generation configuration: retry policy, auto-fit and scoring constants."""

from __future__ import annotations

from dataclasses import dataclass, field

from layoutsvg.config import Settings


@dataclass
class QualityWeights:
    """Score deltas for the layout quality heuristic.

    Uncalibrated starting values; tune against rated output.
    """

    base_score: float = 100.0
    edge_margin_px: float = 10.0
    edge_penalty: float = 2.0  # per coordinate pair near an edge
    out_of_bounds_penalty: float = 10.0  # per pair off the canvas
    layer_bonus: float = 5.0
    max_layers_for_bonus: int = 10
    region_bonus: float = 10.0  # more than one distinct region


@dataclass
class GenerationConfig:
    """Controls the primary attempt loop and post-processing."""

    # Retry policy
    max_retries: int = 3  # total primary attempts
    retry_backoff_ms: int = 1000  # multiplied by the attempt number
    timeout_s: float = 30.0

    # Auto-fit
    autofit_padding: float = 0.15  # share of the larger content side

    quality: QualityWeights = field(default_factory=QualityWeights)

    @classmethod
    def from_settings(cls, settings: Settings) -> GenerationConfig:
        return cls(
            max_retries=settings.generation_max_retries,
            retry_backoff_ms=settings.retry_backoff_ms,
            timeout_s=settings.generation_timeout_s,
            autofit_padding=settings.autofit_padding,
        )
