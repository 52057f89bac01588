"""API request models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from layoutsvg.models.document import AspectRatio
from layoutsvg.models.grounding import GroundingItem


class FeatureFlags(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    unified_generation: bool = True
    debug_mode: bool = False


class GenerationRequest(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )

    prompt: str = Field(..., min_length=1, description="What to draw")
    aspect_ratio: AspectRatio = "1:1"
    model: str = Field("unified", description="'unified' or 'rule-based'")
    palette: list[str] = Field(default_factory=list)
    seed: int | None = None
    context: str = Field("", description="Extra context appended to the user prompt")
    grounding: list[GroundingItem] = Field(default_factory=list)
    features: FeatureFlags = Field(default_factory=FeatureFlags)
    ab_test_group: str | None = None
    debug: bool = False


class SizedRequest(BaseModel):
    """Prompt plus resolved canvas size, as handed to the rule-based tier."""

    prompt: str
    width: int = 512
    height: int = 512
    palette: list[str] = Field(default_factory=list)
    seed: int | None = None
