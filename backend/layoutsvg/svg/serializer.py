"""Write SVG markup from resolved design documents."""

from __future__ import annotations

from html import escape
from typing import Any, Iterable

from layoutsvg.models.document import PathCommand

SVG_NS = "http://www.w3.org/2000/svg"


def format_number(value: float) -> str:
    """Integer text when exact, otherwise two decimals."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    text = f"{value:.2f}"
    return "0" if text in ("-0.00", "0.00") else text


def serialize_path_data(commands: Iterable[PathCommand]) -> str:
    parts: list[str] = []
    for command in commands:
        if command.coords:
            parts.append(command.cmd + " " + " ".join(format_number(c) for c in command.coords))
        else:
            parts.append(command.cmd)
    return " ".join(parts)


def attr_string(attrs: dict[str, Any]) -> str:
    """Render attributes in insertion order, skipping ``None`` values."""
    rendered = []
    for name, value in attrs.items():
        if value is None:
            continue
        if isinstance(value, float):
            value = format_number(value)
        rendered.append(f'{name}="{escape(str(value), quote=True)}"')
    return " ".join(rendered)


def open_svg(view_box: str, width: float, height: float) -> str:
    return f'<svg {attr_string({"xmlns": SVG_NS, "viewBox": view_box, "width": float(width), "height": float(height)})}>'


def format_view_box(values: Iterable[float]) -> str:
    return " ".join(format_number(v) for v in values)
