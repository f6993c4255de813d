"""JAX cost terms for a furniture layout.

Every term is a pure function of `(layout, scene)` and reduces over objects,
relationships or regions with a single vectorized sum, so identical inputs
always produce identical values. `evaluate_cost` combines the eight terms into
a `CostBreakdown` whose `total` is the weighted sum.

Sign conventions: the relational, focal-point, symmetry and alignment terms
are rewards expressed as negative costs; balance, clearance, off-limits and
surface-area terms are non-negative penalties.
"""

from __future__ import annotations

from functools import partial

import jax
import jax.numpy as jnp

from .constants import EPS, PAIRWISE_MODES, SYMMETRY_BASE, SYMMETRY_ROT_WEIGHT, TWO_PI
from .geometry import (
    complement_rectangles,
    object_bboxes,
    pairwise_intersection_areas,
    region_bboxes,
    surface_bbox,
)
from .scene import CostBreakdown, Layout, Relationships, Scene


def wrap_angle(angle: jax.Array) -> jax.Array:
    """Wrap an angle into `[-pi, pi)`."""
    return jnp.mod(angle + jnp.pi, TWO_PI) - jnp.pi


def distance_score(dist: jax.Array, start: jax.Array, end: jax.Array, exponent: jax.Array) -> jax.Array:
    """1 inside `[start, end]`, decaying as a power law outside of it."""
    near = (dist / jnp.maximum(start, EPS)) ** exponent
    far = (end / jnp.maximum(dist, EPS)) ** exponent
    return jnp.where(dist < start, near, jnp.where(dist > end, far, 1.0))


def angle_score(bearing: jax.Array, start: jax.Array, end: jax.Array) -> jax.Array:
    """Score a bearing against a forbidden slice `[start, end]` (radians).

    Outside the slice the score is 1. Inside it, the score drops linearly with
    the distance to the nearest slice boundary, normalized by half of the
    allowed (non-forbidden) arc, and is clamped at 0. The slice may wrap
    through zero; `start == end` means nothing is forbidden and a slice
    spanning a full turn (`end - start >= 2 pi`) forbids every bearing.
    """
    full = (end - start) >= TWO_PI
    width = jnp.mod(end - start, TWO_PI)
    offset = jnp.mod(bearing - start, TWO_PI)
    inside = (width > 0.0) & (offset < width)
    to_boundary = jnp.minimum(offset, width - offset)
    half_allowed = jnp.maximum((TWO_PI - width) * 0.5, EPS)
    penalized = jnp.clip(1.0 - to_boundary / half_allowed, 0.0, 1.0)
    return jnp.where(full, 0.0, jnp.where(inside, penalized, 1.0))


def _relationship_geometry(layout: Layout, rels: Relationships) -> tuple[jax.Array, jax.Array]:
    src = layout.position[rels.source, 0:2]
    tgt = layout.position[rels.target, 0:2]
    d = tgt - src
    dist = jnp.sqrt(jnp.sum(d * d, axis=-1))
    bearing = jnp.mod(jnp.arctan2(d[:, 1], d[:, 0]) - layout.theta()[rels.source], TWO_PI)
    return dist, bearing


def pairwise_cost(layout: Layout, rels: Relationships) -> jax.Array:
    """Relational term: `-sum(distance_score * angle_score)`, each row in `[-1, 0]`."""
    dist, bearing = _relationship_geometry(layout, rels)
    d_score = distance_score(dist, rels.distance[:, 0], rels.distance[:, 1], rels.exponent)
    a_score = angle_score(bearing, rels.angle[:, 0], rels.angle[:, 1])
    return -jnp.sum(d_score * a_score)


def legacy_pairwise_cost(layout: Layout, rels: Relationships) -> jax.Array:
    """Quadratic near/far penalty on the relationship distance, no angle component."""
    dist, _ = _relationship_geometry(layout, rels)
    start = rels.distance[:, 0]
    end = rels.distance[:, 1]
    near = jnp.maximum(start - dist, 0.0)
    far = jnp.maximum(dist - end, 0.0)
    return jnp.sum(near * near + far * far)


def visual_balance_cost(layout: Layout, centroid: jax.Array) -> jax.Array:
    """Distance between the area-weighted centroid of all objects and `centroid`."""
    area = layout.size[:, 0] * layout.size[:, 1]
    total_area = jnp.maximum(jnp.sum(area), EPS)
    center = jnp.sum(layout.position[:, 0:2] * area[:, None], axis=0) / total_area
    d = center - centroid
    return jnp.sqrt(jnp.sum(d * d))


def focal_point_cost(layout: Layout, focal: jax.Array) -> jax.Array:
    """`-sum(cos(facing - direction to the focal point))`."""
    d = focal[0:2] - layout.position[:, 0:2]
    direction = jnp.arctan2(d[:, 1], d[:, 0])
    return -jnp.sum(jnp.cos(direction - layout.theta()))


def reflect_layout(layout: Layout, focal: jax.Array) -> tuple[jax.Array, jax.Array]:
    """Mirror positions and rotations across the focal axis.

    The axis passes through `focal[:2]` with direction angle `focal[2]`.

    Returns:
        `(xy, theta)` of the reflections, shapes `(N, 2)` and `(N,)`.
    """
    phi = focal[2]
    axis = jnp.stack([jnp.cos(phi), jnp.sin(phi)])
    rel = layout.position[:, 0:2] - focal[0:2]
    along = jnp.sum(rel * axis, axis=-1)
    mirrored = 2.0 * along[:, None] * axis - rel + focal[0:2]
    return mirrored, 2.0 * phi - layout.theta()


def symmetry_cost(layout: Layout, focal: jax.Array) -> jax.Array:
    """`-sum_i max_j (5 - sqrt(|p_j - refl(p_i)|) - 0.4 |wrap(theta_j - refl(theta_i))|)`."""
    mirrored_xy, mirrored_theta = reflect_layout(layout, focal)
    d = layout.position[None, :, 0:2] - mirrored_xy[:, None, :]
    dist = jnp.sqrt(jnp.sum(d * d, axis=-1))
    drot = jnp.abs(wrap_angle(layout.theta()[None, :] - mirrored_theta[:, None]))
    match = SYMMETRY_BASE - jnp.sqrt(dist) - SYMMETRY_ROT_WEIGHT * drot
    return -jnp.sum(jnp.max(match, axis=1))


def alignment_cost(layout: Layout) -> jax.Array:
    """`-sum_{i != j} cos(4 theta_i - theta_j)` over ordered pairs."""
    theta = layout.theta()
    n = theta.shape[0]
    m = jnp.cos(4.0 * theta[:, None] - theta[None, :])
    off_diag = 1.0 - jnp.eye(n, dtype=m.dtype)
    return -jnp.sum(m * off_diag)


def clearance_cost(layout: Layout, scene: Scene, obj_boxes: jax.Array, clear_boxes: jax.Array) -> jax.Array:
    """Overlap of every clearance region with every object other than its owner."""
    areas = pairwise_intersection_areas(clear_boxes, obj_boxes)  # (K, N)
    n = layout.n_objects
    not_owner = scene.clearances.owner[:, None] != jnp.arange(n)[None, :]
    return jnp.sum(jnp.where(not_owner, areas, 0.0))


def off_limits_cost(obj_boxes: jax.Array) -> jax.Array:
    """Overlap of every unordered object pair (collision penalty)."""
    areas = pairwise_intersection_areas(obj_boxes, obj_boxes)
    return jnp.sum(jnp.triu(areas, k=1))


def surface_area_cost(scene: Scene, obj_boxes: jax.Array, clear_boxes: jax.Array) -> jax.Array:
    """Area of objects and clearance regions extending past the surface."""
    outside = complement_rectangles(surface_bbox(scene.surface))
    boxes = jnp.concatenate([clear_boxes, obj_boxes], axis=0)
    return jnp.sum(pairwise_intersection_areas(boxes, outside))


@partial(jax.jit, static_argnames=["pairwise"])
def evaluate_cost(layout: Layout, scene: Scene, pairwise: str = "relational") -> CostBreakdown:
    """Evaluate every cost term and the weighted total.

    Args:
        layout: Configuration to score (unbatched).
        scene: Static scene data.
        pairwise: `"relational"` (distance and bearing) or `"legacy"`
            (quadratic distance penalty).

    Returns:
        A `CostBreakdown` of scalars.

    Raises:
        ValueError: If `pairwise` is not one of `constants.PAIRWISE_MODES`.
    """
    if pairwise not in PAIRWISE_MODES:
        raise ValueError(f"Unknown pairwise mode {pairwise!r} (expected one of {list(PAIRWISE_MODES)})")

    obj_boxes = object_bboxes(layout)
    clear_boxes = region_bboxes(layout, scene.clearances, scene.vertices)

    if pairwise == "legacy":
        pair = legacy_pairwise_cost(layout, scene.relationships)
    else:
        pair = pairwise_cost(layout, scene.relationships)

    terms = (
        pair,
        visual_balance_cost(layout, scene.centroid),
        focal_point_cost(layout, scene.focal),
        symmetry_cost(layout, scene.focal),
        alignment_cost(layout),
        clearance_cost(layout, scene, obj_boxes, clear_boxes),
        off_limits_cost(obj_boxes),
        surface_area_cost(scene, obj_boxes, clear_boxes),
    )
    total = jnp.dot(scene.weights, jnp.stack(terms))
    return CostBreakdown(*terms, total)
