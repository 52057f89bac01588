"""Tests for the document interpreter."""

from __future__ import annotations

import pytest

from layoutsvg.engine.interpreter import DocumentInterpreter
from layoutsvg.errors import InvalidCustomRegion
from layoutsvg.models.document import Document
from layoutsvg.svg.parser import iter_path_tags
from tests.conftest import line_layer, make_document, sun_document_data

SUN_D = "M 407.52 84.48 L 447.52 84.48 L 427.52 104.48 Z"
GROUND_D = "M 0 400 L 512 400 L 512 512 L 0 512 Z"


@pytest.fixture
def interpreter() -> DocumentInterpreter:
    return DocumentInterpreter()


class TestResolveLayout:
    def test_sun_moved_into_top_right(self, interpreter, sun_document):
        resolved = interpreter.resolve_layout(sun_document)
        sun = resolved.layers[0].paths[0]
        assert [c.coords for c in sun.commands[:3]] == [
            pytest.approx([407.52, 84.48]),
            pytest.approx([447.52, 84.48]),
            pytest.approx([427.52, 104.48]),
        ]

    def test_absolute_layer_untouched(self, interpreter, sun_document):
        resolved = interpreter.resolve_layout(sun_document)
        assert resolved.layers[1].paths[0] is sun_document.layers[1].paths[0]

    def test_input_not_mutated(self, interpreter, sun_document):
        before = sun_document.to_json()
        interpreter.resolve_layout(sun_document)
        assert sun_document.to_json() == before
        assert not sun_document.layout_resolved

    def test_resolving_twice_is_stable(self, interpreter, sun_document):
        once = interpreter.resolve_layout(sun_document)
        assert once.layout_resolved
        assert interpreter.resolve_layout(once) is once

    def test_identity_layout_keeps_commands(self, interpreter):
        doc = make_document(line_layer("x", (10, 10), (20, 20), layout={"region": "center", "anchor": "center"}))
        resolved = interpreter.resolve_layout(doc)
        assert resolved.layers[0].paths[0].commands is doc.layers[0].paths[0].commands

    def test_custom_region(self, interpreter):
        doc = make_document(
            line_layer("title", (0, 0), (10, 0), layout={"region": "banner", "anchor": "top_left"}),
            layout={"regions": [{"name": "banner", "bounds": {"x": 0.5, "y": 0.5, "width": 0.5, "height": 0.25}}]},
        )
        resolved = interpreter.resolve_layout(doc)
        assert resolved.layers[0].paths[0].commands[0].coords == [256, 256]

    def test_custom_region_shadowing_reserved_name(self, interpreter):
        doc = make_document(
            line_layer("x", (0, 0), (1, 1)),
            layout={"regions": [{"name": "center", "bounds": {"x": 0, "y": 0, "width": 1, "height": 1}}]},
        )
        with pytest.raises(InvalidCustomRegion):
            interpreter.resolve_layout(doc)


class TestToMarkup:
    def test_sun_document(self, interpreter, sun_document):
        markup = interpreter.to_markup(sun_document)
        assert markup.startswith('<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 512 512" width="512" height="512">')
        assert markup.endswith("</svg>")
        assert "<!-- Layer: Sun -->" in markup
        assert '<g id="sun" data-label="Sun" data-region="top_right" data-anchor="center">' in markup
        paths = iter_path_tags(markup)
        assert [p["id"] for p in paths] == ["sun_disc", "ground_rect"]
        assert paths[0]["d"] == SUN_D
        assert paths[0]["fill"] == "#FDB813"
        assert paths[0]["stroke-width"] == "2"
        assert paths[1]["d"] == GROUND_D
        assert paths[1]["stroke"] == "none"

    def test_layer_order_preserved(self, interpreter, sun_document):
        markup = interpreter.to_markup(sun_document)
        assert markup.index('id="sun"') < markup.index('id="ground"')

    def test_z_index_reorders_layers(self, interpreter):
        doc = make_document(
            line_layer("front", (0, 0), (1, 1), layout={"zIndex": 2}),
            line_layer("back", (0, 0), (1, 1), layout={"zIndex": 1}),
        )
        markup = interpreter.to_markup(doc)
        assert markup.index('id="back"') < markup.index('id="front"')
        assert 'data-z-index="1"' in markup

    def test_view_box_from_canvas(self, interpreter):
        doc = make_document(line_layer("x", (0, 0), (1, 1)))
        doc = doc.model_copy(update={"canvas": doc.canvas.model_copy(update={"view_box": (-10, -10.5, 100, 100)})})
        assert 'viewBox="-10 -10.50 100 100"' in interpreter.to_markup(doc)

    def test_label_escaped(self, interpreter):
        doc = make_document(line_layer("x", (0, 0), (1, 1), label="Sun & <Moon> -- night"))
        markup = interpreter.to_markup(doc)
        assert "<!-- Layer: Sun &amp; &lt;Moon&gt; - - night -->" in markup
        assert 'data-label="Sun &amp; &lt;Moon&gt; -- night"' in markup

    def test_output_validates(self, interpreter, sun_document):
        assert interpreter.validate(interpreter.to_markup(sun_document)).valid

    def test_empty_document_renders(self, interpreter):
        markup = interpreter.to_markup(Document())
        assert interpreter.validate(markup).valid


class TestValidate:
    def test_missing_root(self, interpreter):
        result = interpreter.validate("<g></g>")
        assert not result.valid
        assert "Missing <svg> root element" in result.errors

    def test_missing_namespace_and_view_box(self, interpreter):
        result = interpreter.validate("<svg></svg>")
        assert "Missing SVG namespace" in result.errors
        assert "Missing viewBox attribute" in result.errors

    def test_bad_path_data(self, interpreter):
        markup = (
            '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 10">'
            '<path id="bad" d="L 1 1 C 1 2"/></svg>'
        )
        result = interpreter.validate(markup)
        assert not result.valid
        assert result.issues[0].path_id == "bad"
        assert any("must start with M" in e for e in result.errors)
        assert any("C expects 6 coordinates" in e for e in result.errors)

    def test_relative_command_rejected(self, interpreter):
        markup = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 10"><path d="M 0 0 l 1 1"/></svg>'
        assert not interpreter.validate(markup).valid


class TestBounds:
    def test_bounds_of_commands(self, interpreter, sun_document):
        bounds = interpreter.compute_bounds(interpreter.resolve_layout(sun_document))
        assert (bounds.min_x, bounds.min_y, bounds.max_x, bounds.max_y) == pytest.approx((0, 84.48, 512, 512))
        assert bounds.width == pytest.approx(512)

    def test_empty_document_spans_canvas(self, interpreter):
        bounds = interpreter.compute_bounds(make_document(width=288, height=512, aspect="9:16"))
        assert (bounds.width, bounds.height) == (288, 512)


def test_retarget(interpreter):
    data = sun_document_data()
    data["canvas"]["viewBox"] = [0, 0, 10, 10]
    doc = Document.model_validate(data)
    wide = interpreter.retarget(doc, "16:9")
    assert (wide.canvas.width, wide.canvas.height, wide.canvas.aspect_ratio) == (512, 288, "16:9")
    assert wide.canvas.view_box is None
    assert wide.layers == doc.layers
    assert 'viewBox="0 0 512 288"' in interpreter.to_markup(wide)


def test_retarget_unknown_ratio(interpreter, sun_document):
    with pytest.raises(ValueError):
        interpreter.retarget(sun_document, "5:4")
