"""Validation and one-pass repair of generated design documents.

``validate`` is strict about structure and lenient about coordinates: values
are rounded and clamped to the canvas, with each clamp reported. ``repair``
works on the raw JSON so it can fix what the models refuse to construct.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from layoutsvg.engine.aspect import ASPECT_SIZES, closest_ratio, default_canvas
from layoutsvg.engine.coordinates import needs_resolution
from layoutsvg.engine.layers import LayerAnalyzer
from layoutsvg.engine.regions import ANCHOR_OFFSETS, RegionCatalog
from layoutsvg.errors import (
    InvalidCustomRegion,
    OutOfBoundsCoordinate,
    SchemaValidationError,
    StructuralValidationError,
)
from layoutsvg.models.document import (
    COMMAND_ARITY,
    SCHEMA_VERSION,
    Canvas,
    Document,
    PathCommand,
    RegionBox,
)
from layoutsvg.svg.parser import path_data_to_commands

logger = logging.getLogger(__name__)

COORDINATE_PRECISION = 2


def extract_json_payload(text: str) -> dict[str, Any]:
    """Pull a JSON object out of model output, stripping fences and prose."""
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", text.strip())
    cleaned = re.sub(r"\n?```\s*$", "", cleaned)
    cleaned = cleaned.strip()

    json_match = re.search(r"\{[\s\S]*\}", cleaned)
    if json_match:
        cleaned = json_match.group(0)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise SchemaValidationError([f"Response is not valid JSON: {e}"]) from e
    if not isinstance(data, dict):
        raise SchemaValidationError(["Response JSON is not an object"])
    return data


@dataclass
class ValidationOutcome:
    ok: bool
    document: Document | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    issues: list[OutOfBoundsCoordinate] = field(default_factory=list)
    sanitized: bool = False
    structural: bool = False  # errors came from ids/regions, not the schema

    def raise_for_errors(self) -> None:
        if self.ok:
            return
        if self.structural:
            raise StructuralValidationError(self.errors)
        raise SchemaValidationError(self.errors)


@dataclass
class RepairResult:
    data: dict[str, Any]
    actions: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.actions)


def _format_pydantic_errors(exc: ValidationError) -> list[str]:
    out = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        out.append(f"Schema validation: {loc}: {err.get('msg', 'invalid')}")
    return out


class DocumentValidator:
    def __init__(self, analyzer: LayerAnalyzer | None = None) -> None:
        self.analyzer = analyzer or LayerAnalyzer()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, raw: dict[str, Any] | Document, canvas: Canvas | None = None) -> ValidationOutcome:
        """Validate and sanitize ``raw``.

        When ``canvas`` is given the document is moved onto it first, its
        coordinates scaled from the canvas the model drew on.
        """
        if isinstance(raw, Document):
            document = raw
        else:
            data = {k: v for k, v in raw.items() if k not in ("layout_resolved", "layoutResolved")}
            try:
                document = Document.model_validate(data)
            except ValidationError as e:
                return ValidationOutcome(ok=False, errors=_format_pydantic_errors(e))

        if not document.layers:
            return ValidationOutcome(ok=False, errors=["Document has no layers"])

        catalog = RegionCatalog()
        errors: list[str] = []
        if document.layout is not None:
            for region in document.layout.regions:
                try:
                    catalog.register_custom(region.name, region.bounds)
                except InvalidCustomRegion as e:
                    errors.append(str(e))

        layer_result = self.analyzer.validate(document.layers, catalog)
        errors.extend(layer_result.errors)
        for _, path in document.iter_paths():
            if path.commands and path.commands[0].cmd != "M":
                errors.append(f"Path {path.id!r} must start with M")
        if errors:
            return ValidationOutcome(
                ok=False,
                document=document,
                errors=errors,
                warnings=layer_result.warnings,
                structural=True,
            )

        warnings = list(layer_result.warnings)
        rescaled = False
        if canvas is not None:
            document, note = self._conform_canvas(document, canvas)
            if note:
                warnings.append(note)
                rescaled = True
        sanitized, issues = self._sanitize(document)
        warnings.extend(str(issue) for issue in issues)
        return ValidationOutcome(
            ok=True,
            document=sanitized,
            warnings=warnings,
            issues=issues,
            sanitized=bool(issues) or rescaled,
        )

    @staticmethod
    def _conform_canvas(document: Document, canvas: Canvas) -> tuple[Document, str | None]:
        current = document.canvas
        if (current.width, current.height) == (canvas.width, canvas.height):
            target = canvas.model_copy(update={"view_box": current.view_box})
            if target != current:
                document = document.model_copy(update={"canvas": target})
            return document, None

        sx, sy = canvas.width / current.width, canvas.height / current.height
        view_box = None
        if current.view_box is not None:
            vx, vy, vw, vh = current.view_box
            view_box = (vx * sx, vy * sy, vw * sx, vh * sy)
        target = canvas.model_copy(update={"view_box": view_box})
        layers = []
        for layer in document.layers:
            paths = []
            for path in layer.paths:
                commands = [
                    PathCommand(
                        cmd=command.cmd,
                        coords=[v * (sx if i % 2 == 0 else sy) for i, v in enumerate(command.coords)],
                    )
                    for command in path.commands
                ]
                paths.append(path.model_copy(update={"commands": commands}))
            layers.append(layer.model_copy(update={"paths": paths}))
        note = (
            f"Rescaled content from {current.width}x{current.height} "
            f"to the {canvas.aspect_ratio} canvas {canvas.width}x{canvas.height}"
        )
        logger.info(note)
        return document.model_copy(update={"canvas": target, "layers": layers}), note

    @staticmethod
    def _sanitize(document: Document) -> tuple[Document, list[OutOfBoundsCoordinate]]:
        """Round every coordinate and clamp pairs to the canvas."""
        width, height = document.canvas.width, document.canvas.height
        issues: list[OutOfBoundsCoordinate] = []
        layers = []
        for layer in document.layers:
            paths = []
            for path in layer.paths:
                local = needs_resolution(document, layer, path)
                commands = []
                for command in path.commands:
                    coords: list[float] = []
                    for x, y in command.points():
                        # Local coordinates are clamped after resolution instead.
                        if not local:
                            cx = min(max(x, 0.0), width)
                            cy = min(max(y, 0.0), height)
                            if (cx, cy) != (x, y):
                                issues.append(OutOfBoundsCoordinate(path.id, x, y))
                            x, y = cx, cy
                        coords.extend((round(x, COORDINATE_PRECISION), round(y, COORDINATE_PRECISION)))
                    commands.append(PathCommand(cmd=command.cmd, coords=coords))
                paths.append(path.model_copy(update={"commands": commands}))
            layers.append(layer.model_copy(update={"paths": paths}))
        return document.model_copy(update={"layers": layers}), issues

    # ------------------------------------------------------------------
    # Repair
    # ------------------------------------------------------------------

    def repair(self, raw: dict[str, Any]) -> RepairResult:
        """Single best-effort pass over raw JSON; never raises."""
        data = json.loads(json.dumps(raw, default=str)) if isinstance(raw, dict) else {}
        actions: list[str] = []

        if data.get("version") != SCHEMA_VERSION:
            data["version"] = SCHEMA_VERSION
            actions.append("Set schema version")

        self._repair_canvas(data, actions)
        valid_regions = self._repair_custom_regions(data, actions)

        layers = data.get("layers")
        if not isinstance(layers, list):
            layers = []
            actions.append("Replaced missing layer list")
        repaired_layers = []
        seen_layer_ids: set[str] = set()
        for index, layer in enumerate(layers):
            if not isinstance(layer, dict):
                actions.append(f"Dropped malformed layer at position {index}")
                continue
            layer_id = self._unique_id(layer.get("id"), f"layer_{index + 1}", seen_layer_ids)
            if layer_id != layer.get("id"):
                actions.append(f"Renamed layer at position {index} to {layer_id!r}")
            layer["id"] = layer_id
            if not layer.get("label"):
                layer["label"] = layer_id.replace("_", " ").title()
            self._repair_layout(layer, f"layer {layer_id!r}", valid_regions, actions)

            paths = layer.get("paths") if isinstance(layer.get("paths"), list) else []
            repaired_paths = []
            seen_path_ids: set[str] = set()
            for path_index, path in enumerate(paths):
                if not isinstance(path, dict):
                    actions.append(f"Dropped malformed path in layer {layer_id!r}")
                    continue
                path_id = self._unique_id(path.get("id"), f"{layer_id}_path_{path_index + 1}", seen_path_ids)
                if path_id != path.get("id"):
                    actions.append(f"Renamed path in layer {layer_id!r} to {path_id!r}")
                path["id"] = path_id
                if not isinstance(path.get("style"), dict):
                    path["style"] = {}
                self._repair_layout(path, f"path {path_id!r}", valid_regions, actions)
                commands = self._repair_commands(path, actions)
                if not commands:
                    actions.append(f"Dropped path {path_id!r} with no usable commands")
                    continue
                path["commands"] = commands
                path.pop("d", None)
                repaired_paths.append(path)
            layer["paths"] = repaired_paths
            repaired_layers.append(layer)
        data["layers"] = repaired_layers

        if actions:
            logger.info("Repaired document: %s", "; ".join(actions))
        return RepairResult(data=data, actions=actions)

    @staticmethod
    def _unique_id(value: Any, fallback: str, seen: set[str]) -> str:
        base = value if isinstance(value, str) and value else fallback
        candidate = base
        n = 2
        while candidate in seen:
            candidate = f"{base}_{n}"
            n += 1
        seen.add(candidate)
        return candidate

    @staticmethod
    def _repair_canvas(data: dict[str, Any], actions: list[str]) -> None:
        canvas = data.get("canvas")
        if not isinstance(canvas, dict):
            data["canvas"] = default_canvas("1:1").model_dump(by_alias=True, exclude_none=True)
            actions.append("Added default canvas")
            return
        ratio = canvas.get("aspectRatio", canvas.get("aspect_ratio"))
        width, height = canvas.get("width"), canvas.get("height")
        numeric = all(
            isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)
            for v in (width, height)
        )
        if ratio not in ASPECT_SIZES:
            ratio = closest_ratio(width, height) if numeric else "1:1"
            actions.append(f"Set aspect ratio to {ratio}")
        if not numeric or width <= 0 or height <= 0:
            width, height = ASPECT_SIZES[ratio]
            actions.append("Set canvas size from aspect ratio")
        canvas.pop("aspect_ratio", None)
        canvas.update({"width": int(round(width)), "height": int(round(height)), "aspectRatio": ratio})

    @staticmethod
    def _repair_custom_regions(data: dict[str, Any], actions: list[str]) -> set[str]:
        layout = data.get("layout")
        if not isinstance(layout, dict):
            return set()
        catalog = RegionCatalog()
        kept = []
        for region in layout.get("regions") or []:
            try:
                name = region["name"]
                b = region["bounds"]
                catalog.register_custom(name, RegionBox(**b))
            except (InvalidCustomRegion, KeyError, TypeError, ValueError) as e:
                actions.append(f"Dropped invalid custom region: {e}")
                continue
            kept.append(region)
        layout["regions"] = kept
        return set(catalog.custom_names)

    @staticmethod
    def _repair_layout(
        owner: dict[str, Any], label: str, custom_regions: set[str], actions: list[str]
    ) -> None:
        layout = owner.get("layout")
        if layout is None:
            return
        if not isinstance(layout, dict):
            owner.pop("layout")
            actions.append(f"Dropped malformed layout on {label}")
            return
        catalog = RegionCatalog()
        region = layout.get("region")
        if region is not None and not (catalog.is_valid(region) or region in custom_regions):
            layout.pop("region")
            actions.append(f"Removed unknown region {region!r} from {label}")
        anchor = layout.get("anchor")
        if anchor is not None and anchor not in ANCHOR_OFFSETS:
            layout.pop("anchor")
            actions.append(f"Removed unknown anchor {anchor!r} from {label}")
        offset = layout.get("offset")
        if offset is not None:
            try:
                ox, oy = (float(v) for v in offset)
                if not (math.isfinite(ox) and math.isfinite(oy)):
                    raise ValueError(f"non-finite offset {offset!r}")
            except (TypeError, ValueError):
                layout.pop("offset")
                actions.append(f"Removed malformed offset from {label}")
            else:
                clamped = [max(-1.0, min(1.0, ox)), max(-1.0, min(1.0, oy))]
                if clamped != [ox, oy]:
                    actions.append(f"Clamped offset on {label}")
                layout["offset"] = clamped

    def _repair_commands(self, path: dict[str, Any], actions: list[str]) -> list[dict[str, Any]]:
        raw = path.get("commands")
        if not raw and isinstance(path.get("d"), str):
            try:
                raw = path_data_to_commands(path["d"])
                actions.append(f"Converted path data of {path['id']!r} to commands")
            except Exception as e:
                logger.warning("Could not parse path data of %s: %s", path["id"], e)
                raw = []
        if not isinstance(raw, list):
            return []

        out: list[dict[str, Any]] = []
        cx = cy = 0.0  # current point
        sx = sy = 0.0  # subpath start
        for item in raw:
            cmd, coords = self._split_command(item)
            if cmd is None:
                actions.append(f"Dropped malformed command in {path['id']!r}")
                continue
            relative = cmd.islower()
            letter = cmd.upper()

            if letter in ("H", "V"):
                for value in coords:
                    if letter == "H":
                        cx = cx + value if relative else value
                    else:
                        cy = cy + value if relative else value
                    out.append({"cmd": "L", "coords": [cx, cy]})
                actions.append(f"Converted {cmd} to L in {path['id']!r}")
                continue
            if letter not in COMMAND_ARITY:
                actions.append(f"Dropped unsupported command {cmd!r} in {path['id']!r}")
                continue
            if letter == "Z":
                out.append({"cmd": "Z", "coords": []})
                cx, cy = sx, sy
                continue

            arity = COMMAND_ARITY[letter]
            usable = len(coords) - len(coords) % arity
            if usable == 0:
                actions.append(f"Dropped {cmd} with {len(coords)} coordinates in {path['id']!r}")
                continue
            if usable != len(coords) or usable > arity:
                actions.append(f"Split or trimmed {cmd} coordinates in {path['id']!r}")
            if relative:
                actions.append(f"Converted relative {cmd} in {path['id']!r}")
            for start in range(0, usable, arity):
                chunk = coords[start:start + arity]
                if relative:
                    chunk = [v + (cx if i % 2 == 0 else cy) for i, v in enumerate(chunk)]
                # Repeated move pairs are implicit line-tos.
                this = letter if not (letter == "M" and start > 0) else "L"
                out.append({"cmd": this, "coords": chunk})
                cx, cy = chunk[-2], chunk[-1]
                if this == "M":
                    sx, sy = cx, cy

        while out and out[0]["cmd"] == "Z":
            out.pop(0)
        if out and out[0]["cmd"] != "M":
            first = out[0]
            if first["cmd"] == "L":
                first["cmd"] = "M"
            else:
                out.insert(0, {"cmd": "M", "coords": first["coords"][:2]})
            actions.append(f"Path {path['id']!r} now starts with M")
        return out

    @staticmethod
    def _split_command(item: Any) -> tuple[str | None, list[float]]:
        if not isinstance(item, dict):
            return None, []
        cmd = item.get("cmd", item.get("command"))
        if not isinstance(cmd, str) or len(cmd) != 1:
            return None, []
        coords = item.get("coords", [])
        if not isinstance(coords, list):
            return None, []
        try:
            values = [float(v) for v in coords]
        except (TypeError, ValueError):
            return None, []
        if any(math.isnan(v) or math.isinf(v) for v in values):
            return None, []
        return cmd, values
