"""Design document models: the interchange contract with the generative model.

JSON uses camelCase (``aspectRatio``, ``strokeWidth``, ``zIndex``); snake_case
names are accepted as well. Every model is frozen, so changes are made with
``model_copy(update=...)``.
"""

from __future__ import annotations

from typing import Iterator, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat, field_validator, model_validator
from pydantic.alias_generators import to_camel

from layoutsvg.errors import InvalidPathCommand

SCHEMA_VERSION = "unified-layered-1.0"

AspectRatio = Literal["1:1", "4:3", "16:9", "3:2", "2:3", "9:16"]
AnchorName = Literal[
    "center",
    "top_left",
    "top_right",
    "bottom_left",
    "bottom_right",
    "top_center",
    "bottom_center",
    "middle_left",
    "middle_right",
]
CommandName = Literal["M", "L", "C", "Q", "Z"]

COMMAND_ARITY: dict[str, int] = {"M": 2, "L": 2, "C": 6, "Q": 4, "Z": 0}


class DocumentModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Canvas(DocumentModel):
    width: int = Field(512, gt=0)
    height: int = Field(512, gt=0)
    aspect_ratio: AspectRatio = "1:1"
    view_box: tuple[FiniteFloat, FiniteFloat, FiniteFloat, FiniteFloat] | None = None


class RegionBox(DocumentModel):
    """Normalized box, all values fractions of the canvas."""

    x: FiniteFloat
    y: FiniteFloat
    width: FiniteFloat
    height: FiniteFloat


class CustomRegion(DocumentModel):
    name: str = Field(..., min_length=1)
    bounds: RegionBox


class AbsoluteSize(DocumentModel):
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)


class AspectConstrainedSize(DocumentModel):
    width: float = Field(..., gt=0)
    aspect: float = Field(..., gt=0)


class SizeSpec(DocumentModel):
    absolute: AbsoluteSize | None = None
    relative: float | None = Field(None, gt=0, le=1)
    aspect_constrained: AspectConstrainedSize | None = None

    @model_validator(mode="after")
    def _exactly_one(self) -> SizeSpec:
        given = [v for v in (self.absolute, self.relative, self.aspect_constrained) if v is not None]
        if len(given) != 1:
            raise ValueError("size needs exactly one of absolute, relative, aspect_constrained")
        return self


class RepetitionSpec(DocumentModel):
    type: Literal["grid", "radial"]
    count: Union[int, tuple[int, int]]
    spacing: float | None = Field(None, gt=0)
    radius: float | None = Field(None, gt=0)

    @field_validator("count")
    @classmethod
    def _positive_count(cls, v: int | tuple[int, int]) -> int | tuple[int, int]:
        values = v if isinstance(v, tuple) else (v,)
        if any(c < 1 for c in values):
            raise ValueError("repeat count must be positive")
        return v


class LayoutSpec(DocumentModel):
    region: str | None = None
    anchor: AnchorName | None = None
    offset: tuple[FiniteFloat, FiniteFloat] | None = None
    size: SizeSpec | None = None
    repeat: RepetitionSpec | None = None
    z_index: int | None = None


class PathCommand(DocumentModel):
    cmd: CommandName
    coords: list[FiniteFloat] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_arity(self) -> PathCommand:
        expected = COMMAND_ARITY[self.cmd]
        if len(self.coords) != expected:
            raise InvalidPathCommand(
                f"{self.cmd} expects {expected} coordinates, got {len(self.coords)}"
            )
        return self

    def points(self) -> list[tuple[float, float]]:
        c = self.coords
        return [(c[i], c[i + 1]) for i in range(0, len(c), 2)]


class PathStyle(DocumentModel):
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float | None = Field(None, ge=0)
    stroke_linecap: Literal["butt", "round", "square"] | None = None
    stroke_linejoin: Literal["miter", "round", "bevel"] | None = None
    opacity: float | None = Field(None, ge=0, le=1)


class ShapePath(DocumentModel):
    id: str = Field(..., min_length=1)
    style: PathStyle = Field(default_factory=PathStyle)
    commands: list[PathCommand] = Field(default_factory=list)
    layout: LayoutSpec | None = None


class Layer(DocumentModel):
    id: str
    label: str = ""
    paths: list[ShapePath] = Field(default_factory=list)
    layout: LayoutSpec | None = None

    @property
    def region(self) -> str:
        """Resolved region of the layer, ``center`` when unset."""
        if self.layout is not None and self.layout.region:
            return self.layout.region
        return "center"


class LayoutConfig(DocumentModel):
    regions: list[CustomRegion] = Field(default_factory=list)
    global_anchor: AnchorName | None = None
    global_offset: tuple[FiniteFloat, FiniteFloat] | None = None


class Document(DocumentModel):
    version: Literal["unified-layered-1.0"] = SCHEMA_VERSION
    canvas: Canvas = Field(default_factory=Canvas)
    layout: LayoutConfig | None = None
    layers: list[Layer] = Field(default_factory=list)
    # Commands already absolute; never serialized.
    layout_resolved: bool = Field(False, exclude=True)

    def iter_paths(self) -> Iterator[tuple[Layer, ShapePath]]:
        for layer in self.layers:
            for path in layer.paths:
                yield layer, path

    def iter_commands(self) -> Iterator[PathCommand]:
        for _, path in self.iter_paths():
            yield from path.commands

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
