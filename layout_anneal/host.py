"""Host side of a search: upload, launch, download.

This module turns a `SceneSpec` into device arrays, checks that the requested
grid is launchable, runs `scheduler.run_blocks` and copies the winners back
into plain Python objects. Every stage reports failures with the error
taxonomy in `layout_anneal.errors`; the first failure aborts the run.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Any, Sequence

import jax
import numpy as np

from .constants import COST_TERMS, DEFAULT_BLOCK_MEMORY, FLOAT_BYTES, PAIRWISE_MODES
from .costs import evaluate_cost
from .errors import ExecutionFailure, LaunchFailure, TransferFailure, classify_runtime_error
from .scene import CostBreakdown, Layout, Regions, Relationships, Scene
from .scene_io import PlacementSpec, RegionSpec, SceneSpec
from .scheduler import BlockResult, run_blocks

# Per-lane-group resident state: two layouts and two cost breakdowns.
_PLACEMENT_FLOATS = 3 + 3 + 1 + 2
_BREAKDOWN_FLOATS = len(COST_TERMS) + 1


@dataclass
class Suggestion:
    """One block's winning layout."""

    placements: list[PlacementSpec]
    cost: dict[str, float]
    group: int
    beta: float
    accepted: int

    def to_json(self) -> dict[str, Any]:
        return {
            "cost": dict(self.cost),
            "group": self.group,
            "beta": self.beta,
            "accepted": self.accepted,
            "placements": [
                {
                    "name": p.name,
                    "position": list(p.position),
                    "rotation": list(p.rotation),
                    "length": p.length,
                    "width": p.width,
                    "frozen": p.frozen,
                }
                for p in self.placements
            ],
        }


def wall_clock_seed() -> int:
    """Seed derived from the wall clock (fits a 32-bit PRNG seed)."""
    return time.time_ns() % (2**31 - 1)


def block_memory_bytes(n_objects: int, n_groups: int) -> int:
    """Working memory one block needs: 2 layouts + 2 breakdowns per lane group."""
    per_group = 2 * n_objects * _PLACEMENT_FLOATS + 2 * _BREAKDOWN_FLOATS
    return per_group * n_groups * FLOAT_BYTES


def check_launch(
    n_blocks: int,
    n_groups: int,
    n_objects: int,
    iterations: int,
    *,
    max_block_bytes: int = DEFAULT_BLOCK_MEMORY,
    pairwise: str = "relational",
) -> None:
    """Raise `LaunchFailure` if the requested grid cannot be launched."""
    if n_blocks < 1:
        raise LaunchFailure(f"grid must have at least one block, got {n_blocks}")
    if n_groups < 1:
        raise LaunchFailure(f"blocks must have at least one lane group, got {n_groups}")
    if iterations < 0:
        raise LaunchFailure(f"iterations must be >= 0, got {iterations}")
    if pairwise not in PAIRWISE_MODES:
        raise LaunchFailure(f"unknown pairwise mode {pairwise!r} (expected one of {list(PAIRWISE_MODES)})")
    need = block_memory_bytes(n_objects, n_groups)
    if need > max_block_bytes:
        raise LaunchFailure(
            f"per-block working memory {need} B for {n_groups} groups x {n_objects} objects "
            f"exceeds the {max_block_bytes} B limit"
        )


def _regions_to_arrays(regions: Sequence[RegionSpec]) -> Regions:
    ids = np.array([r.vertices for r in regions], dtype=np.int32).reshape(-1, 4)
    owner = np.array([r.owner for r in regions], dtype=np.int32).reshape(-1)
    return Regions(vertex_ids=ids, owner=owner)


def scene_arrays(spec: SceneSpec) -> Scene:
    """Pack a `SceneSpec` into a host-side (NumPy) `Scene`."""
    rels = spec.relationships
    relationships = Relationships(
        source=np.array([r.source for r in rels], dtype=np.int32),
        target=np.array([r.target for r in rels], dtype=np.int32),
        distance=np.array([r.distance for r in rels], dtype=np.float32).reshape(-1, 2),
        angle=np.array([r.angle for r in rels], dtype=np.float32).reshape(-1, 2),
        exponent=np.array([r.exponent for r in rels], dtype=np.float32),
    )
    return Scene(
        weights=np.array(spec.weights, dtype=np.float32),
        centroid=np.array(spec.centroid, dtype=np.float32),
        focal=np.array(spec.focal_point, dtype=np.float32),
        relationships=relationships,
        clearances=_regions_to_arrays(spec.clearances),
        off_limits=_regions_to_arrays(spec.off_limits),
        vertices=np.array(spec.vertices, dtype=np.float32).reshape(-1, 3),
        surface=np.array(spec.surface, dtype=np.float32).reshape(4, 2),
    )


def layout_arrays(placements: Sequence[PlacementSpec]) -> Layout:
    """Pack placements into a host-side (NumPy) `Layout`."""
    return Layout(
        position=np.array([p.position for p in placements], dtype=np.float32).reshape(-1, 3),
        rotation=np.array([p.rotation for p in placements], dtype=np.float32).reshape(-1, 3),
        frozen=np.array([p.frozen for p in placements], dtype=bool),
        size=np.array([(p.length, p.width) for p in placements], dtype=np.float32).reshape(-1, 2),
    )


def flat_placements(spec: SceneSpec, n_suggestions: int) -> list[PlacementSpec]:
    """Flat placement array (objects x suggestions): every block starts from the scene layout."""
    return [p for _ in range(n_suggestions) for p in spec.objects]


def upload_scene(spec: SceneSpec) -> Scene:
    """Copy the scene to the default device."""
    try:
        scene = jax.device_put(scene_arrays(spec))
        jax.block_until_ready(scene)
    except RuntimeError as exc:
        raise classify_runtime_error(exc, TransferFailure, "scene upload failed") from exc
    return scene


def upload_layouts(placements: Sequence[PlacementSpec], n_objects: int) -> Layout:
    """Copy a flat placement array to the device as `(blocks, n_objects, ...)` layouts."""
    host = layout_arrays(placements)
    n_blocks = len(placements) // max(n_objects, 1)
    batched = Layout(*(np.reshape(a, (n_blocks, n_objects) + a.shape[1:]) for a in host))
    try:
        layouts = jax.device_put(batched)
        jax.block_until_ready(layouts)
    except RuntimeError as exc:
        raise classify_runtime_error(exc, TransferFailure, "layout upload failed") from exc
    return layouts


def download_results(result: BlockResult, template: Sequence[PlacementSpec]) -> list[Suggestion]:
    """Copy block winners back to the host and check that they are finite."""
    try:
        host = jax.device_get(result)
    except RuntimeError as exc:
        raise classify_runtime_error(exc, TransferFailure, "result download failed") from exc

    totals = np.asarray(host.cost.total)
    if not np.all(np.isfinite(totals)):
        bad = [int(i) for i in np.flatnonzero(~np.isfinite(totals))]
        raise ExecutionFailure(f"non-finite cost in blocks {bad}")

    suggestions = []
    for b in range(totals.shape[0]):
        placements = [
            PlacementSpec(
                position=tuple(float(v) for v in host.layout.position[b, i]),  # type: ignore[arg-type]
                rotation=tuple(float(v) for v in host.layout.rotation[b, i]),  # type: ignore[arg-type]
                length=float(host.layout.size[b, i, 0]),
                width=float(host.layout.size[b, i, 1]),
                frozen=bool(host.layout.frozen[b, i]),
                name=template[i].name,
            )
            for i in range(len(template))
        ]
        cost = {name: float(getattr(host.cost, name)[b]) for name in CostBreakdown._fields}
        suggestions.append(
            Suggestion(
                placements=placements,
                cost=cost,
                group=int(host.group[b]),
                beta=float(host.beta[b]),
                accepted=int(host.accepted[b]),
            )
        )
    return suggestions


def search_layouts(
    spec: SceneSpec,
    *,
    suggestions: int = 1,
    groups: int = 32,
    iterations: int = 1000,
    seed: int | None = None,
    pairwise: str = "relational",
    max_block_bytes: int = DEFAULT_BLOCK_MEMORY,
) -> list[Suggestion]:
    """Run a full search and return one suggestion per block.

    Args:
        spec: Scene and starting layout.
        suggestions: Number of blocks (independent suggestions).
        groups: Chains per block.
        iterations: Proposals per chain.
        seed: Root PRNG seed; the wall clock is used when omitted.
        pairwise: `"relational"` or `"legacy"` pairwise term.
        max_block_bytes: Per-block working-memory budget.

    Raises:
        LaunchFailure, AllocationFailure, TransferFailure, ExecutionFailure.
    """
    check_launch(
        suggestions,
        groups,
        spec.n_objects,
        iterations,
        max_block_bytes=max_block_bytes,
        pairwise=pairwise,
    )
    seed = wall_clock_seed() if seed is None else int(seed)

    scene = upload_scene(spec)
    layouts = upload_layouts(flat_placements(spec, suggestions), spec.n_objects)

    try:
        result = run_blocks(jax.random.PRNGKey(seed), layouts, scene, groups, iterations, pairwise=pairwise)
        jax.block_until_ready(result)
    except RuntimeError as exc:
        raise classify_runtime_error(exc, ExecutionFailure, "search failed") from exc

    return download_results(result, spec.objects)


def score_layout(spec: SceneSpec, *, pairwise: str = "relational") -> dict[str, float]:
    """Cost breakdown of the scene's starting layout."""
    scene = upload_scene(spec)
    try:
        layout = jax.device_put(layout_arrays(spec.objects))
        jax.block_until_ready(layout)
    except RuntimeError as exc:
        raise classify_runtime_error(exc, TransferFailure, "layout upload failed") from exc
    try:
        cost = jax.device_get(evaluate_cost(layout, scene, pairwise=pairwise))
    except RuntimeError as exc:
        raise classify_runtime_error(exc, ExecutionFailure, "cost evaluation failed") from exc
    out = {name: float(getattr(cost, name)) for name in CostBreakdown._fields}
    if not math.isfinite(out["total"]):
        raise ExecutionFailure("non-finite total cost")
    return out
