"""Shared test fixtures."""

from __future__ import annotations

import copy
import json

import pytest

from layoutsvg.models.document import Document


# Sun in the top-right region drawn around its local origin, ground in absolute pixels.
SUN_DOCUMENT = {
    "version": "unified-layered-1.0",
    "canvas": {"width": 512, "height": 512, "aspectRatio": "1:1"},
    "layers": [
        {
            "id": "sun",
            "label": "Sun",
            "layout": {"region": "top_right", "anchor": "center"},
            "paths": [
                {
                    "id": "sun_disc",
                    "style": {"fill": "#FDB813", "stroke": "#F59E0B", "strokeWidth": 2},
                    "commands": [
                        {"cmd": "M", "coords": [-20, 0]},
                        {"cmd": "L", "coords": [20, 0]},
                        {"cmd": "L", "coords": [0, 20]},
                        {"cmd": "Z", "coords": []},
                    ],
                }
            ],
        },
        {
            "id": "ground",
            "label": "Ground",
            "paths": [
                {
                    "id": "ground_rect",
                    "style": {"fill": "#22C55E"},
                    "commands": [
                        {"cmd": "M", "coords": [0, 400]},
                        {"cmd": "L", "coords": [512, 400]},
                        {"cmd": "L", "coords": [512, 512]},
                        {"cmd": "L", "coords": [0, 512]},
                        {"cmd": "Z", "coords": []},
                    ],
                }
            ],
        },
    ],
}

# Two layers sharing one id.
DUPLICATE_LAYER_DOCUMENT = {
    "version": "unified-layered-1.0",
    "canvas": {"width": 512, "height": 512, "aspectRatio": "1:1"},
    "layers": [
        {
            "id": "layer1",
            "label": "First",
            "paths": [{"id": "a", "commands": [{"cmd": "M", "coords": [10, 10]}, {"cmd": "L", "coords": [20, 20]}]}],
        },
        {
            "id": "layer1",
            "label": "Second",
            "paths": [{"id": "b", "commands": [{"cmd": "M", "coords": [30, 30]}, {"cmd": "L", "coords": [40, 40]}]}],
        },
    ],
}


def sun_document_data() -> dict:
    return copy.deepcopy(SUN_DOCUMENT)


def sun_document_json(fenced: bool = False) -> str:
    text = json.dumps(SUN_DOCUMENT)
    if fenced:
        return f"Here is the document:\n```json\n{text}\n```"
    return text


def make_document(*layers: dict, width: int = 512, height: int = 512, aspect: str = "1:1", **extra) -> Document:
    data = {
        "canvas": {"width": width, "height": height, "aspectRatio": aspect},
        "layers": list(layers),
    }
    data.update(extra)
    return Document.model_validate(data)


def line_layer(layer_id: str, *points: tuple[float, float], **fields) -> dict:
    """Layer with one open polyline path through ``points``."""
    commands = [{"cmd": "M", "coords": list(points[0])}]
    commands += [{"cmd": "L", "coords": list(p)} for p in points[1:]]
    layer = {
        "id": layer_id,
        "label": fields.pop("label", layer_id.title()),
        "paths": [{"id": f"{layer_id}_path", "style": fields.pop("style", {}), "commands": commands}],
    }
    layer.update(fields)
    return layer


@pytest.fixture
def sun_document() -> Document:
    return Document.model_validate(SUN_DOCUMENT)


@pytest.fixture
def sun_data() -> dict:
    return sun_document_data()
