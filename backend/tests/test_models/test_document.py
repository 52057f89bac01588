"""Tests for the design document models."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from layoutsvg.models.document import Document, LayoutSpec, PathCommand, SizeSpec
from tests.conftest import SUN_DOCUMENT


def test_parses_camel_case_json():
    doc = Document.model_validate(SUN_DOCUMENT)
    assert doc.canvas.aspect_ratio == "1:1"
    assert doc.layers[0].paths[0].style.stroke_width == 2
    assert doc.layers[0].layout.region == "top_right"


def test_accepts_snake_case_names():
    spec = LayoutSpec.model_validate({"region": "center", "z_index": 3})
    assert spec.z_index == 3


def test_command_arity_enforced():
    with pytest.raises(ValidationError):
        PathCommand(cmd="M", coords=[1.0])
    with pytest.raises(ValidationError):
        PathCommand(cmd="C", coords=[1, 2, 3, 4])
    with pytest.raises(ValidationError):
        PathCommand(cmd="Z", coords=[0, 0])


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_numbers_rejected(value):
    with pytest.raises(ValidationError):
        PathCommand(cmd="M", coords=[value, 1.0])
    with pytest.raises(ValidationError):
        LayoutSpec(offset=(value, 0.0))
    with pytest.raises(ValidationError):
        Document.model_validate({"canvas": {"viewBox": [0, 0, value, 512]}})


def test_unknown_command_rejected():
    with pytest.raises(ValidationError):
        PathCommand(cmd="A", coords=[1, 2])


def test_command_points():
    cmd = PathCommand(cmd="Q", coords=[1, 2, 3, 4])
    assert cmd.points() == [(1, 2), (3, 4)]


def test_size_needs_exactly_one_form():
    with pytest.raises(ValidationError):
        SizeSpec()
    with pytest.raises(ValidationError):
        SizeSpec(relative=0.5, absolute={"width": 10, "height": 10})
    assert SizeSpec(relative=0.5).relative == 0.5


def test_models_are_frozen(sun_document):
    with pytest.raises(ValidationError):
        sun_document.canvas.width = 100


def test_layer_region_defaults_to_center(sun_document):
    assert sun_document.layers[0].region == "top_right"
    assert sun_document.layers[1].region == "center"


def test_to_json_uses_aliases_and_hides_resolution_flag(sun_document):
    resolved = sun_document.model_copy(update={"layout_resolved": True})
    data = json.loads(resolved.to_json())
    assert "aspectRatio" in data["canvas"]
    assert "layoutResolved" not in data
    assert "layout_resolved" not in data


def test_iter_commands(sun_document):
    assert len(list(sun_document.iter_commands())) == 9
