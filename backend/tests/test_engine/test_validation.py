"""Tests for document validation and repair."""

from __future__ import annotations

import pytest

from layoutsvg.engine.aspect import default_canvas
from layoutsvg.engine.validation import DocumentValidator, extract_json_payload
from layoutsvg.errors import SchemaValidationError, StructuralValidationError
from tests.conftest import DUPLICATE_LAYER_DOCUMENT, line_layer, sun_document_data, sun_document_json


@pytest.fixture
def validator() -> DocumentValidator:
    return DocumentValidator()


def _commands(data: dict, layer: int = 0, path: int = 0) -> list[tuple[str, list[float]]]:
    return [(c["cmd"], c["coords"]) for c in data["layers"][layer]["paths"][path]["commands"]]


def _doc(*layers: dict, **extra) -> dict:
    data = {
        "version": "unified-layered-1.0",
        "canvas": {"width": 512, "height": 512, "aspectRatio": "1:1"},
        "layers": list(layers),
    }
    data.update(extra)
    return data


def _raw_path_layer(layer_id: str, commands: list, **path_fields) -> dict:
    path = {"id": f"{layer_id}_path", "commands": commands}
    path.update(path_fields)
    return {"id": layer_id, "label": layer_id.title(), "paths": [path]}


class TestExtractJsonPayload:
    def test_plain(self):
        assert extract_json_payload(sun_document_json())["version"] == "unified-layered-1.0"

    def test_fenced_with_prose(self):
        assert extract_json_payload(sun_document_json(fenced=True))["layers"][0]["id"] == "sun"

    def test_not_json(self):
        with pytest.raises(SchemaValidationError, match="not valid JSON"):
            extract_json_payload("I cannot draw that.")

    def test_not_an_object(self):
        with pytest.raises(SchemaValidationError, match="not an object"):
            extract_json_payload("[1, 2, 3]")


class TestValidate:
    def test_valid_document(self, validator, sun_data):
        outcome = validator.validate(sun_data)
        assert outcome.ok
        assert outcome.errors == []
        assert not outcome.sanitized
        assert outcome.document.layers[0].id == "sun"
        outcome.raise_for_errors()

    def test_local_coordinates_not_clamped(self, validator, sun_data):
        outcome = validator.validate(sun_data)
        assert outcome.document.layers[0].paths[0].commands[0].coords == [-20, 0]

    def test_layout_resolved_key_ignored(self, validator, sun_data):
        sun_data["layoutResolved"] = True
        outcome = validator.validate(sun_data)
        assert outcome.ok
        assert not outcome.document.layout_resolved

    def test_duplicate_layer_ids(self, validator):
        outcome = validator.validate(DUPLICATE_LAYER_DOCUMENT)
        assert not outcome.ok
        assert outcome.structural
        assert any("layer1" in e for e in outcome.errors)
        with pytest.raises(StructuralValidationError):
            outcome.raise_for_errors()

    def test_schema_error(self, validator, sun_data):
        sun_data["version"] = "2.0"
        outcome = validator.validate(sun_data)
        assert not outcome.ok
        assert not outcome.structural
        assert outcome.errors[0].startswith("Schema validation: version")
        with pytest.raises(SchemaValidationError):
            outcome.raise_for_errors()

    def test_bad_arity_is_schema_error(self, validator):
        outcome = validator.validate(_doc(_raw_path_layer("x", [{"cmd": "M", "coords": [1]}])))
        assert not outcome.ok
        assert any("M expects 2 coordinates" in e for e in outcome.errors)

    def test_no_layers(self, validator):
        outcome = validator.validate(_doc())
        assert outcome.errors == ["Document has no layers"]

    def test_must_start_with_m(self, validator):
        outcome = validator.validate(_doc(_raw_path_layer("x", [{"cmd": "L", "coords": [1, 1]}])))
        assert "Path 'x_path' must start with M" in outcome.errors

    def test_unknown_region(self, validator):
        outcome = validator.validate(_doc(line_layer("x", (0, 0), (1, 1), layout={"region": "sky"})))
        assert outcome.structural
        assert any("'sky'" in e for e in outcome.errors)

    def test_custom_region_accepted(self, validator):
        data = _doc(
            line_layer("x", (0, 0), (1, 1), layout={"region": "sky"}),
            layout={"regions": [{"name": "sky", "bounds": {"x": 0, "y": 0, "width": 1, "height": 0.3}}]},
        )
        assert validator.validate(data).ok

    def test_reserved_custom_region(self, validator):
        data = _doc(
            line_layer("x", (0, 0), (1, 1)),
            layout={"regions": [{"name": "center", "bounds": {"x": 0, "y": 0, "width": 1, "height": 1}}]},
        )
        outcome = validator.validate(data)
        assert not outcome.ok
        assert any("reserved" in e for e in outcome.errors)

    def test_absolute_coordinates_clamped(self, validator):
        outcome = validator.validate(_doc(line_layer("x", (10, 10), (600, -5))))
        assert outcome.ok
        assert outcome.sanitized
        assert outcome.document.layers[0].paths[0].commands[1].coords == [512, 0]
        assert outcome.issues[0].path_id == "x_path"
        assert (outcome.issues[0].x, outcome.issues[0].y) == (600, -5)
        assert any("outside the canvas" in w for w in outcome.warnings)

    def test_coordinates_rounded(self, validator):
        outcome = validator.validate(_doc(line_layer("x", (10.4567, 20.001), (30, 40))))
        assert outcome.document.layers[0].paths[0].commands[0].coords == [10.46, 20.0]

    def test_accepts_document_instance(self, validator, sun_document):
        assert validator.validate(sun_document).ok

    def test_non_finite_coordinate_is_schema_error(self, validator, sun_data):
        sun_data["layers"][1]["paths"][0]["commands"][0]["coords"] = [float("nan"), 400]
        outcome = validator.validate(sun_data)
        assert not outcome.ok
        assert not outcome.structural
        assert any("finite" in e for e in outcome.errors)

    def test_moved_onto_requested_canvas(self, validator):
        data = _doc(line_layer("x", (0, 0), (1000, 500)))
        data["canvas"] = {"width": 1000, "height": 1000, "aspectRatio": "16:9"}
        outcome = validator.validate(data, default_canvas("9:16"))
        assert outcome.ok
        assert outcome.sanitized
        canvas = outcome.document.canvas
        assert (canvas.width, canvas.height, canvas.aspect_ratio) == (288, 512, "9:16")
        assert outcome.document.layers[0].paths[0].commands[1].coords == [288, 256]
        assert outcome.issues == []
        assert "Rescaled content from 1000x1000 to the 9:16 canvas 288x512" in outcome.warnings

    def test_same_size_canvas_only_retagged(self, validator):
        data = _doc(line_layer("x", (0, 0), (100, 50)))
        data["canvas"]["aspectRatio"] = "16:9"
        outcome = validator.validate(data, default_canvas("1:1"))
        assert outcome.document.canvas.aspect_ratio == "1:1"
        assert outcome.document.layers[0].paths[0].commands[1].coords == [100, 50]
        assert not outcome.sanitized


class TestRepair:
    def test_clean_document_unchanged(self, validator, sun_data):
        result = validator.repair(sun_data)
        assert not result.changed
        assert validator.validate(result.data).ok

    def test_does_not_mutate_input(self, validator):
        raw = {"layers": [{"id": "a", "paths": [{"id": "p", "commands": [{"cmd": "L", "coords": [1, 1]}]}]}]}
        validator.repair(raw)
        assert raw["layers"][0]["paths"][0]["commands"][0]["cmd"] == "L"

    def test_version_and_canvas(self, validator):
        result = validator.repair({"layers": [line_layer("a", (0, 0), (1, 1))]})
        assert result.data["version"] == "unified-layered-1.0"
        assert result.data["canvas"] == {"width": 512, "height": 512, "aspectRatio": "1:1"}
        assert "Set schema version" in result.actions
        assert "Added default canvas" in result.actions

    def test_unknown_aspect_ratio(self, validator):
        raw = _doc(line_layer("a", (0, 0), (1, 1)))
        raw["canvas"] = {"width": 1000, "height": 560, "aspectRatio": "16:10"}
        result = validator.repair(raw)
        assert result.data["canvas"]["aspectRatio"] == "16:9"
        assert validator.validate(result.data).ok

    def test_missing_canvas_size(self, validator):
        raw = _doc(line_layer("a", (0, 0), (1, 1)))
        raw["canvas"] = {"aspectRatio": "9:16"}
        result = validator.repair(raw)
        assert (result.data["canvas"]["width"], result.data["canvas"]["height"]) == (288, 512)

    def test_duplicate_ids_renamed(self, validator):
        result = validator.repair(DUPLICATE_LAYER_DOCUMENT)
        assert [layer["id"] for layer in result.data["layers"]] == ["layer1", "layer1_2"]
        assert validator.validate(result.data).ok

    def test_missing_ids_and_labels(self, validator):
        raw = _doc({"paths": [{"commands": [{"cmd": "M", "coords": [0, 0]}]}]})
        result = validator.repair(raw)
        layer = result.data["layers"][0]
        assert layer["id"] == "layer_1"
        assert layer["label"] == "Layer 1"
        assert layer["paths"][0]["id"] == "layer_1_path_1"
        assert validator.validate(result.data).ok

    def test_unknown_region_and_anchor_removed(self, validator):
        raw = _doc(line_layer("a", (0, 0), (1, 1), layout={"region": "sky", "anchor": "middle", "offset": [2, -3]}))
        result = validator.repair(raw)
        layout = result.data["layers"][0]["layout"]
        assert "region" not in layout
        assert "anchor" not in layout
        assert layout["offset"] == [1.0, -1.0]
        assert "Removed unknown region 'sky' from layer 'a'" in result.actions
        assert "Clamped offset on layer 'a'" in result.actions

    def test_invalid_custom_region_dropped(self, validator):
        raw = _doc(
            line_layer("a", (0, 0), (1, 1), layout={"region": "center"}),
            layout={"regions": [{"name": "center", "bounds": {"x": 0, "y": 0, "width": 1, "height": 1}}]},
        )
        result = validator.repair(raw)
        assert result.data["layout"]["regions"] == []
        assert validator.validate(result.data).ok

    def test_relative_and_shorthand_commands(self, validator):
        raw = _doc(_raw_path_layer("a", [
            {"cmd": "m", "coords": [10, 10]},
            {"cmd": "h", "coords": [20]},
            {"cmd": "l", "coords": [0, 10, -10, 0]},
            {"cmd": "z"},
        ]))
        result = validator.repair(raw)
        assert _commands(result.data) == [
            ("M", [10, 10]),
            ("L", [30, 10]),
            ("L", [30, 20]),
            ("L", [20, 20]),
            ("Z", []),
        ]
        assert validator.validate(result.data).ok

    def test_repeated_move_pairs_become_lines(self, validator):
        raw = _doc(_raw_path_layer("a", [{"cmd": "M", "coords": [0, 0, 5, 5, 9]}]))
        result = validator.repair(raw)
        assert _commands(result.data) == [("M", [0, 0]), ("L", [5, 5])]

    def test_leading_close_and_line(self, validator):
        raw = _doc(_raw_path_layer("a", [
            {"cmd": "Z", "coords": []},
            {"cmd": "L", "coords": [1, 1]},
            {"cmd": "L", "coords": [2, 2]},
        ]))
        result = validator.repair(raw)
        assert _commands(result.data)[0] == ("M", [1, 1])
        assert "Path 'a_path' now starts with M" in result.actions

    def test_malformed_commands_dropped(self, validator):
        raw = _doc(_raw_path_layer("a", [
            {"cmd": "M", "coords": [0, 0]},
            {"cmd": "A", "coords": [1, 1, 0, 0, 1, 5, 5]},
            {"cmd": "L", "coords": ["x", 1]},
            "L 5 5",
            {"cmd": "L", "coords": [3, 3]},
        ]))
        result = validator.repair(raw)
        assert _commands(result.data) == [("M", [0, 0]), ("L", [3, 3])]

    def test_path_data_string(self, validator):
        raw = _doc(_raw_path_layer("a", [], d="M 0 0 L 10 0 L 10 10 Z"))
        result = validator.repair(raw)
        commands = _commands(result.data)
        assert commands[0] == ("M", [0, 0])
        assert commands[-1] == ("Z", [])
        assert "d" not in result.data["layers"][0]["paths"][0]
        assert validator.validate(result.data).ok

    def test_empty_path_dropped(self, validator):
        raw = _doc({"id": "a", "label": "A", "paths": [
            {"id": "empty", "commands": []},
            {"id": "ok", "commands": [{"cmd": "M", "coords": [1, 1]}]},
        ]})
        result = validator.repair(raw)
        assert [p["id"] for p in result.data["layers"][0]["paths"]] == ["ok"]
        assert "Dropped path 'empty' with no usable commands" in result.actions

    def test_non_finite_values_dropped(self, validator):
        nan, inf = float("nan"), float("inf")
        raw = _doc(_raw_path_layer("a", [
            {"cmd": "M", "coords": [0, 0]},
            {"cmd": "L", "coords": [nan, 5]},
            {"cmd": "L", "coords": [inf, 5]},
            {"cmd": "L", "coords": [3, 3]},
        ], layout={"region": "top_left", "offset": [nan, 0]}))
        raw["canvas"] = {"width": nan, "height": 512, "aspectRatio": "1:1"}
        result = validator.repair(raw)
        assert _commands(result.data) == [("M", [0, 0]), ("L", [3, 3])]
        assert "offset" not in result.data["layers"][0]["paths"][0]["layout"]
        assert "Removed malformed offset from path 'a_path'" in result.actions
        assert (result.data["canvas"]["width"], result.data["canvas"]["height"]) == (512, 512)
        assert validator.validate(result.data).ok

    def test_garbage_never_raises(self, validator):
        result = validator.repair({"canvas": "big", "layers": "many", "layout": {"regions": [{"name": 3}]}})
        assert result.data["layers"] == []
        assert result.changed
