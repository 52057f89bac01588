"""Lightweight SVG reading: tag/attribute extraction and path-data parsing.

Markup checks use regexes over our own emitted output. Foreign path strings
(``d`` attributes with relative commands, arcs, shorthand curves) are read
through svgpathtools and reduced to absolute M/L/Q/C/Z commands.
"""

from __future__ import annotations

import logging
import re

from svgpathtools import Arc, CubicBezier, Line, QuadraticBezier, parse_path

from layoutsvg.models.document import COMMAND_ARITY

logger = logging.getLogger(__name__)

_PATH_TAG = re.compile(r"<path\b([^>]*?)/?>", re.IGNORECASE)
_ATTR = re.compile(r'([\w:-]+)\s*=\s*"([^"]*)"')
_VIEWBOX = re.compile(r'viewBox\s*=\s*"([^"]*)"')
_D_TOKEN = re.compile(r"[A-Za-z]|[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_D_JUNK = re.compile(r"[^\sA-Za-z0-9.,+\-eE]")


def parse_attributes(fragment: str) -> dict[str, str]:
    return dict(_ATTR.findall(fragment))


def iter_path_tags(markup: str) -> list[dict[str, str]]:
    """Attributes of every ``<path>`` element, in document order."""
    return [parse_attributes(m.group(1)) for m in _PATH_TAG.finditer(markup)]


def extract_view_box(markup: str) -> tuple[float, float, float, float] | None:
    match = _VIEWBOX.search(markup)
    if not match:
        return None
    try:
        parts = [float(v) for v in match.group(1).replace(",", " ").split()]
    except ValueError:
        return None
    if len(parts) != 4:
        return None
    return (parts[0], parts[1], parts[2], parts[3])


def check_path_data(d: str) -> list[str]:
    """Problems in ``d`` against the strict absolute M/L/C/Q/Z grammar."""
    problems: list[str] = []
    if _D_JUNK.search(d):
        problems.append("unexpected characters in path data")
    tokens = _D_TOKEN.findall(d)
    if not tokens:
        return problems + ["empty path data"]

    i = 0
    first = True
    while i < len(tokens):
        cmd = tokens[i]
        if cmd not in COMMAND_ARITY:
            problems.append(f"unexpected token {cmd!r}")
            i += 1
            continue
        if first and cmd != "M":
            problems.append("path data must start with M")
        first = False
        arity = COMMAND_ARITY[cmd]
        args = tokens[i + 1:i + 1 + arity]
        if len(args) != arity or any(a.isalpha() for a in args):
            problems.append(f"{cmd} expects {arity} coordinates")
            i += 1
            while i < len(tokens) and not tokens[i].isalpha():
                i += 1
            continue
        i += 1 + arity
        if i < len(tokens) and not tokens[i].isalpha():
            problems.append(f"{cmd} has extra coordinates")
            while i < len(tokens) and not tokens[i].isalpha():
                i += 1
    return problems


def _xy(z: complex) -> list[float]:
    return [float(z.real), float(z.imag)]


def path_data_to_commands(d: str) -> list[dict]:
    """Convert any SVG path string into absolute command dicts.

    Arcs become cubic approximations when svgpathtools can provide them,
    otherwise straight lines to their end point.
    """
    path = parse_path(d)
    commands: list[dict] = []
    current: complex | None = None
    for subpath in path.continuous_subpaths():
        start = subpath.start
        if current is None or start != current:
            commands.append({"cmd": "M", "coords": _xy(start)})
        for segment in subpath:
            if isinstance(segment, Line):
                commands.append({"cmd": "L", "coords": _xy(segment.end)})
            elif isinstance(segment, QuadraticBezier):
                commands.append({"cmd": "Q", "coords": _xy(segment.control) + _xy(segment.end)})
            elif isinstance(segment, CubicBezier):
                commands.append({
                    "cmd": "C",
                    "coords": _xy(segment.control1) + _xy(segment.control2) + _xy(segment.end),
                })
            elif isinstance(segment, Arc):
                commands.extend(_arc_commands(segment))
        if subpath.isclosed():
            commands.append({"cmd": "Z", "coords": []})
        current = subpath.end
    return commands


def _arc_commands(arc: Arc) -> list[dict]:
    try:
        cubics = list(arc.as_cubic_curves())
    except (AttributeError, ValueError) as e:
        logger.debug("Arc approximation unavailable, using a line: %s", e)
        return [{"cmd": "L", "coords": _xy(arc.end)}]
    return [
        {"cmd": "C", "coords": _xy(c.control1) + _xy(c.control2) + _xy(c.end)}
        for c in cubics
    ]
