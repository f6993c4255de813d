"""Matplotlib rendering of a layout suggestion."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np

from .scene_io import PlacementSpec, SceneSpec


def rectangle_corners(x: float, y: float, theta: float, length: float, width: float) -> np.ndarray:
    """Corners `(4, 2)` of a rotated rectangle (width along local x, length along local y)."""
    hw, hl = width * 0.5, length * 0.5
    local = np.array([[-hw, -hl], [hw, -hl], [hw, hl], [-hw, hl]], dtype=float)
    c, s = math.cos(theta), math.sin(theta)
    rot = np.array([[c, -s], [s, c]], dtype=float)
    return local @ rot.T + np.array([x, y], dtype=float)


def region_corners(spec: SceneSpec, placement: PlacementSpec, vertex_ids: Sequence[int]) -> np.ndarray:
    """World corners `(4, 2)` of a region polygon attached to `placement`."""
    local = np.array([spec.vertices[i][0:2] for i in vertex_ids], dtype=float)
    theta = placement.rotation[1]
    c, s = math.cos(theta), math.sin(theta)
    rot = np.array([[c, -s], [s, c]], dtype=float)
    return local @ rot.T + np.array(placement.position[0:2], dtype=float)


def _closed(poly: np.ndarray) -> np.ndarray:
    return np.vstack([poly, poly[0]])


def plot_layout(spec: SceneSpec, placements: Sequence[PlacementSpec], total: float, filename: Path) -> None:
    """Plot the surface, clearance regions and objects, and save the image.

    Args:
        spec: Scene (surface, vertices and regions).
        placements: Placements to draw, one per object.
        total: Total cost shown in the title.
        filename: Output image path.
    """
    fig, ax = plt.subplots(figsize=(10, 8))

    surface = np.array(spec.surface, dtype=float)
    ax.plot(*_closed(surface).T, "k-", linewidth=2)

    for region in spec.clearances:
        poly = region_corners(spec, placements[region.owner], region.vertices)
        ax.fill(*_closed(poly).T, color="tab:blue", alpha=0.15)

    for p in placements:
        poly = rectangle_corners(p.position[0], p.position[1], p.rotation[1], p.length, p.width)
        ax.fill(*_closed(poly).T, color="0.6" if p.frozen else "tab:green", alpha=0.7)
        ax.plot(*_closed(poly).T, "k-", linewidth=0.8)
        # Facing direction.
        theta = p.rotation[1]
        ax.arrow(p.position[0], p.position[1], 0.3 * math.cos(theta), 0.3 * math.sin(theta), head_width=0.08)
        if p.name:
            ax.annotate(p.name, (p.position[0], p.position[1]), fontsize=7, ha="center", va="center")

    fx, fy, _ = spec.focal_point
    ax.plot([fx], [fy], "r*", markersize=12)

    ax.set_aspect("equal")
    ax.set_title(f"Layout cost: {total:.4f}")
    fig.savefig(filename)
    plt.close(fig)
