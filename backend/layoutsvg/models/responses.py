"""API response models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

GenerationMethod = Literal["unified", "rule-based-fallback", "basic-geometric"]


class ResponseModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(ResponseModel):
    status: str = "ok"
    version: str = "0.1.0"
    regions_available: int = 0


class RegionInfo(ResponseModel):
    name: str
    x: float
    y: float
    width: float
    height: float


class RegionsResponse(ResponseModel):
    regions: list[RegionInfo] = Field(default_factory=list)
    anchors: dict[str, tuple[float, float]] = Field(default_factory=dict)


class LayerMetadata(ResponseModel):
    id: str
    label: str
    region: str
    anchor: str
    path_count: int = 0
    command_count: int = 0
    complexity: Literal["low", "medium", "high"] = "low"
    bounds: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)


class PerformanceInfo(ResponseModel):
    generation_time_ms: float = 0.0
    external_call_time_ms: float = 0.0
    processing_time_ms: float = 0.0


class GenerationMetadata(ResponseModel):
    method: GenerationMethod
    fallback_used: bool = False
    fallback_reason: str | None = None
    layers: list[LayerMetadata] = Field(default_factory=list)
    layout_quality: int = 0
    coordinates_repaired: bool = False
    regions_used: list[str] = Field(default_factory=list)
    anchors_used: list[str] = Field(default_factory=list)
    canvas: tuple[int, int] = (512, 512)
    attempts: int = 0
    performance: PerformanceInfo = Field(default_factory=PerformanceInfo)


class GenerationResult(ResponseModel):
    success: bool = True
    markup: str
    metadata: GenerationMetadata
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    debug: dict[str, Any] | None = None
