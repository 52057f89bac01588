"""Grounding items passed to the prompt builder.

A closed tagged union keyed on ``kind``. Unknown kinds fail validation at the
request boundary instead of being silently ignored.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class StylePack(BaseModel):
    kind: Literal["style_pack"] = "style_pack"
    name: str
    palette: list[str] = Field(default_factory=list)
    stroke_width: float | None = None
    notes: str = ""


class Motif(BaseModel):
    kind: Literal["motif"] = "motif"
    name: str
    description: str
    commands_hint: str = ""


class GlossaryEntry(BaseModel):
    kind: Literal["glossary"] = "glossary"
    term: str
    definition: str


class DesignRule(BaseModel):
    kind: Literal["rule"] = "rule"
    rule: str
    priority: Literal["must", "should"] = "should"


class FewShotExample(BaseModel):
    kind: Literal["few_shot"] = "few_shot"
    prompt: str
    document: str = Field(..., description="Example design document as JSON text")


GroundingItem = Annotated[
    Union[StylePack, Motif, GlossaryEntry, DesignRule, FewShotExample],
    Field(discriminator="kind"),
]
