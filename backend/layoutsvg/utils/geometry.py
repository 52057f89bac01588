"""Leaf-node geometry helpers over path commands. No engine imports."""

from __future__ import annotations

from typing import Iterable

import numpy as np
from numpy.typing import NDArray

from layoutsvg.models.document import PathCommand


def command_points(commands: Iterable[PathCommand]) -> NDArray[np.float64]:
    """Stack every coordinate pair (control points included) into an Nx2 array."""
    coords: list[float] = []
    for command in commands:
        coords.extend(command.coords)
    if not coords:
        return np.empty((0, 2), dtype=np.float64)
    return np.asarray(coords, dtype=np.float64).reshape(-1, 2)


def bbox(points: NDArray[np.float64]) -> tuple[float, float, float, float]:
    """Compute (xmin, ymin, xmax, ymax) bounding box."""
    if len(points) == 0:
        return (0.0, 0.0, 0.0, 0.0)
    return (
        float(np.min(points[:, 0])),
        float(np.min(points[:, 1])),
        float(np.max(points[:, 0])),
        float(np.max(points[:, 1])),
    )


def bbox_xywh(points: NDArray[np.float64]) -> tuple[float, float, float, float]:
    """Same as :func:`bbox` but as (x, y, width, height)."""
    xmin, ymin, xmax, ymax = bbox(points)
    return (xmin, ymin, xmax - xmin, ymax - ymin)


def translate(points: NDArray[np.float64], dx: float, dy: float) -> NDArray[np.float64]:
    return points + np.array([dx, dy], dtype=np.float64)


def scale_about(
    points: NDArray[np.float64], factor: float, cx: float, cy: float
) -> NDArray[np.float64]:
    origin = np.array([cx, cy], dtype=np.float64)
    return (points - origin) * factor + origin


def clamp(points: NDArray[np.float64], width: float, height: float) -> NDArray[np.float64]:
    out = points.copy()
    np.clip(out[:, 0], 0.0, width, out=out[:, 0])
    np.clip(out[:, 1], 0.0, height, out=out[:, 1])
    return out


def rebuild_commands(
    commands: list[PathCommand], points: NDArray[np.float64]
) -> list[PathCommand]:
    """Inverse of :func:`command_points`: pour transformed points back into commands."""
    flat = points.reshape(-1).tolist()
    out: list[PathCommand] = []
    i = 0
    for command in commands:
        n = len(command.coords)
        out.append(PathCommand(cmd=command.cmd, coords=flat[i:i + n]))
        i += n
    return out
